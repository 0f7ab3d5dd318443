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

from typing import Mapping, Optional, Sequence, Tuple

from feldspar.crypto.context import CryptoContext
from feldspar.crypto.randomness import RandomnessSource
from feldspar.crypto.utils import secure_random_range
from feldspar.types import FieldElement


class Polynomial:
    """
    f(x) = a0 + a1*x + ... + a(t-1)*x^(t-1) over the curve's scalar field.

    a0 is the owner's secret contribution.  Instances are immutable and never leave the
    participant that generated them.
    """

    def __init__(self, coefficients: Sequence[int], context: CryptoContext):
        if not coefficients:
            raise ValueError("A polynomial needs at least one coefficient")
        self.context = context
        self.__coefficients = tuple(context.scalar(c) for c in coefficients)

    @classmethod
    def generate(cls,
                 threshold: int,
                 randomness: RandomnessSource,
                 context: CryptoContext,
                 secret: Optional[int] = None) -> 'Polynomial':
        if threshold < 1:
            raise ValueError(f"Threshold must be at least 1, got {threshold}")
        if secret is None:
            secret = secure_random_range(1, context.order)
        elif not 0 < secret < context.order:
            raise ValueError("Secret contribution must lie in [1, N-1]")
        coefficients = [secret] + list(randomness.generate(threshold - 1))
        return cls(coefficients=coefficients, context=context)

    @property
    def coefficients(self) -> Tuple[FieldElement, ...]:
        return self.__coefficients

    @property
    def secret(self) -> FieldElement:
        return self.__coefficients[0]

    @property
    def threshold(self) -> int:
        return len(self.__coefficients)

    @property
    def degree(self) -> int:
        return len(self.__coefficients) - 1

    def __len__(self):
        return len(self.__coefficients)

    def __repr__(self):
        # coefficients are secret
        return f"{self.__class__.__name__}(degree={self.degree})"

    def evaluate(self, x: int) -> FieldElement:
        """Horner evaluation at a participant index; x = 0 would reveal the secret."""
        self.context.validate_index(x)
        n = self.context.order
        result = 0
        for coefficient in reversed(self.__coefficients):
            result = (result * x + coefficient) % n
        return result


def lagrange_coefficient(i: int, indices: Sequence[int], context: CryptoContext) -> FieldElement:
    """Basis polynomial for index `i` over `indices`, evaluated at zero."""
    n = context.order
    numerator, denominator = 1, 1
    for j in indices:
        if j == i:
            continue
        numerator = (numerator * -j) % n
        denominator = (denominator * (i - j)) % n
    if not denominator:
        raise ValueError(f"Duplicate evaluation points in {list(indices)}")
    return (numerator * pow(denominator, -1, n)) % n


def interpolate_at_zero(points: Mapping[int, int], context: CryptoContext) -> FieldElement:
    """Reconstructs f(0) from {x: f(x)}; needs at least `threshold` points to be meaningful."""
    if not points:
        raise ValueError("Cannot interpolate without points")
    indices = [context.validate_index(x) for x in points]
    if len(set(indices)) != len(indices):
        raise ValueError("Evaluation points must be distinct")
    n = context.order
    secret = 0
    for x, y in points.items():
        secret = (secret + y * lagrange_coefficient(x, indices, context)) % n
    return secret
