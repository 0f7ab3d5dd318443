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

from typing import Collection, Dict, Iterable, Iterator, Optional

from feldspar.crypto.commitments import FeldmanCommitmentScheme
from feldspar.crypto.polynomial import Polynomial
from feldspar.dkg.models import Commitment, Share, Verdict
from feldspar.types import ParticipantId


class ShareSet:
    """The shares one issuer's polynomial yields for every participant, itself included."""

    def __init__(self, shares: Dict[ParticipantId, Share]):
        self.__shares = dict(shares)

    @classmethod
    def generate(cls, polynomial: Polynomial, participant_ids: Iterable[ParticipantId]) -> 'ShareSet':
        participant_ids = list(participant_ids)
        if len(set(participant_ids)) != len(participant_ids):
            raise ValueError(f"Participant ids must be unique: {participant_ids}")
        shares = {x: Share(x=x, y=polynomial.evaluate(x)) for x in participant_ids}
        return cls(shares)

    def __getitem__(self, recipient: ParticipantId) -> Share:
        return self.__shares[recipient]

    def __contains__(self, recipient: ParticipantId) -> bool:
        return recipient in self.__shares

    def __iter__(self) -> Iterator[Share]:
        return iter(self.__shares.values())

    def __len__(self) -> int:
        return len(self.__shares)

    def __repr__(self):
        return f"{self.__class__.__name__}(recipients={sorted(self.__shares)})"

    @property
    def recipients(self):
        return sorted(self.__shares)


class ShareVerifier:

    def __init__(self,
                 scheme: FeldmanCommitmentScheme,
                 valid_indices: Optional[Collection[ParticipantId]] = None):
        self.scheme = scheme
        self.valid_indices = frozenset(valid_indices) if valid_indices is not None else None

    def verify(self, sender: ParticipantId, share: Share, commitment: Commitment) -> Verdict:
        """
        Checks a share received from `sender` against that sender's published commitment.

        Pure: the caller decides what to do with an INVALID verdict (file one complaint and
        exclude the share from aggregation).
        """
        if self.valid_indices is not None and sender not in self.valid_indices:
            return Verdict.INVALID
        if self.scheme.verify_share(share, commitment, valid_indices=self.valid_indices):
            return Verdict.VALID
        return Verdict.INVALID
