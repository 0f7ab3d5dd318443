"""
This file is part of feldspar.

feldspar is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published by
the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

feldspar is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with feldspar.  If not, see <https://www.gnu.org/licenses/>.
"""

from threading import Lock
from typing import Dict, Iterator, List, Set

from feldspar.dkg.models import Complaint, ComplaintReason
from feldspar.types import ComplaintKey, ParticipantId
from feldspar.utilities.logging import Logger


class ComplaintManager:
    """
    Append-only registry of complaints seen during one round.

    At most one complaint is kept per (accuser, accused) pair; the first one filed wins.
    No punitive action is taken here: consumers read `accused()` to decide who is
    disqualified.
    """

    def __init__(self):
        self.log = Logger(self.__class__.__name__)
        self.__complaints: Dict[ComplaintKey, Complaint] = dict()
        self.__lock = Lock()

    def file(self, complaint: Complaint) -> bool:
        if complaint.reason not in ComplaintReason.ALL:
            raise ValueError(f"Unknown complaint reason '{complaint.reason}'")
        if complaint.accuser == complaint.accused:
            raise ValueError(f"Participant {complaint.accuser} cannot complain about itself")

        with self.__lock:
            if complaint.key in self.__complaints:
                return False
            self.__complaints[complaint.key] = complaint

        self.log.warn(f"Participant {complaint.accuser} complained about participant "
                      f"{complaint.accused}: {complaint.reason}")
        return True

    def count(self) -> int:
        return len(self.__complaints)

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[Complaint]:
        with self.__lock:
            complaints = list(self.__complaints.values())
        return iter(complaints)

    def __contains__(self, key: ComplaintKey) -> bool:
        return key in self.__complaints

    def against(self, accused: ParticipantId) -> List[Complaint]:
        return [c for c in self if c.accused == accused]

    def by(self, accuser: ParticipantId) -> List[Complaint]:
        return [c for c in self if c.accuser == accuser]

    def accused(self) -> Set[ParticipantId]:
        return {c.accused for c in self}
