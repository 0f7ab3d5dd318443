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

from typing import NamedTuple, NewType, Tuple

ParticipantId = NewType("ParticipantId", int)
RoundId = NewType("RoundId", str)
FieldElement = int

# affine (x, y) coordinates; (0, 0) is the point at infinity
Point = Tuple[int, int]


class ComplaintKey(NamedTuple):
    accuser: ParticipantId
    accused: ParticipantId
