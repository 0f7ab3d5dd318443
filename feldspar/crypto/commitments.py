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

from typing import Collection, Iterable, Optional

from feldspar.crypto.context import CryptoContext
from feldspar.crypto.polynomial import Polynomial
from feldspar.dkg.models import Commitment, Share
from feldspar.types import Point


class FeldmanCommitmentScheme:
    """
    Feldman verifiable secret sharing over the context's curve.

    Committing publishes G * a_i for every coefficient; a share (x, y) is then checked with

        G * y == sum(A_i * x^i)

    which holds for honestly evaluated shares and reveals nothing about the coefficients
    beyond their discrete-log commitments.
    """

    def __init__(self, context: CryptoContext):
        self.context = context

    def commit(self, polynomial: Polynomial) -> Commitment:
        points = tuple(self.context.base_multiply(a) for a in polynomial.coefficients)
        return Commitment(points=points)

    def evaluate(self, commitment: Commitment, x: int) -> Point:
        """sum(A_i * x^i), accumulated Horner-style on the curve."""
        result = self.context.IDENTITY
        for point in reversed(commitment.points):
            result = self.context.add(self.context.multiply(result, x), point)
        return result

    def verify_share(self,
                     share: Share,
                     commitment: Commitment,
                     valid_indices: Optional[Collection[int]] = None) -> bool:
        if not len(commitment):
            return False
        if isinstance(share.x, bool) or not isinstance(share.x, int) or not isinstance(share.y, int):
            return False
        if not 0 < share.x < self.context.order:
            return False
        if valid_indices is not None and share.x not in valid_indices:
            return False
        if not 0 <= share.y < self.context.order:
            return False

        expected = self.evaluate(commitment, share.x)
        actual = self.context.base_multiply(share.y)
        return expected == actual

    def public_share_point(self, commitments: Iterable[Commitment], x: int) -> Point:
        """Public image G * s_x of participant x's final share, computable by anyone."""
        self.context.validate_index(x)
        return self.context.sum_points(self.evaluate(c, x) for c in commitments)

    def group_public_key(self, commitments: Iterable[Commitment]) -> Point:
        return self.context.sum_points(c.public_contribution for c in commitments)
