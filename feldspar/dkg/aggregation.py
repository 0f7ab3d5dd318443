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

from typing import Iterable, Mapping

from feldspar.crypto.context import CryptoContext
from feldspar.crypto.polynomial import interpolate_at_zero
from feldspar.dkg.models import FinalShare, Share
from feldspar.exceptions import InsufficientShares
from feldspar.types import FieldElement, ParticipantId


class ShareAggregator:

    def __init__(self, participant_id: ParticipantId, context: CryptoContext):
        self.participant_id = participant_id
        self.context = context

    def finalize(self,
                 received_shares: Mapping[ParticipantId, Share],
                 qualified: Iterable[ParticipantId]) -> FinalShare:
        """Sums the verified shares issued by the qualified participants."""
        qualified = tuple(sorted(set(qualified)))
        if not qualified:
            raise InsufficientShares(f"Participant {self.participant_id} has no qualified issuers")

        missing = [issuer for issuer in qualified if issuer not in received_shares]
        if missing:
            raise InsufficientShares(f"Participant {self.participant_id} holds no share from {missing}")

        value = 0
        for issuer in qualified:
            share = received_shares[issuer]
            if share.x != self.participant_id:
                raise ValueError(f"Share from {issuer} was evaluated at {share.x}, "
                                 f"not at {self.participant_id}")
            value = (value + share.y) % self.context.order

        return FinalShare(participant_id=self.participant_id, value=value, qualified=qualified)


def reconstruct_secret(final_shares: Iterable[FinalShare],
                       threshold: int,
                       context: CryptoContext) -> FieldElement:
    """
    Recovers the joint secret from at least `threshold` final shares.

    Only meaningful for shares finalized over the same qualified set; never part of a
    normal round, where the joint secret must stay unknown.
    """
    points = {}
    qualified_sets = set()
    for final_share in final_shares:
        points[final_share.participant_id] = final_share.value
        qualified_sets.add(final_share.qualified)

    if len(qualified_sets) > 1:
        raise ValueError("Final shares were computed over different qualified sets")
    if len(points) < threshold:
        raise InsufficientShares(f"Reconstruction needs {threshold} final shares, got {len(points)}")

    return interpolate_at_zero(points, context=context)
