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

from typing import Iterable

from py_ecc.secp256k1 import secp256k1

from feldspar.crypto.constants import COMPRESSED_POINT_SIZE, SCALAR_SIZE, UNCOMPRESSED_POINT_SIZE
from feldspar.exceptions import InvalidIndex, InvalidPoint
from feldspar.types import FieldElement, Point


class CryptoContext:
    """
    Curve parameters and group arithmetic shared by every DKG component.

    A context is constructed once and passed explicitly to the components that need it;
    nothing in feldspar reaches for a module-level curve.  Points are affine ``(x, y)``
    tuples as used by ``py_ecc``, with ``(0, 0)`` standing for the point at infinity.
    """

    IDENTITY: Point = (0, 0)

    def __init__(self,
                 name: str,
                 field_modulus: int,
                 order: int,
                 generator: Point,
                 b: int):
        self.name = name
        self.field_modulus = field_modulus
        self.order = order
        self.generator = generator
        self.b = b

    @classmethod
    def secp256k1(cls) -> 'CryptoContext':
        return cls(name='secp256k1',
                   field_modulus=secp256k1.P,
                   order=secp256k1.N,
                   generator=secp256k1.G,
                   b=secp256k1.B)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name})"

    def __eq__(self, other) -> bool:
        try:
            return (self.order, self.field_modulus, self.generator) == (other.order, other.field_modulus, other.generator)
        except AttributeError:
            return False

    def __hash__(self):
        return hash((self.order, self.field_modulus, self.generator))

    #
    # Scalars
    #

    def scalar(self, value: int) -> FieldElement:
        return value % self.order

    def scalar_to_bytes(self, value: int) -> bytes:
        return self.scalar(value).to_bytes(SCALAR_SIZE, byteorder='big')

    def scalar_from_bytes(self, data: bytes) -> FieldElement:
        return self.scalar(int.from_bytes(data, byteorder='big'))

    def validate_index(self, x: int) -> int:
        """Participant indices double as evaluation points; zero is reserved for the secret."""
        if isinstance(x, bool) or not isinstance(x, int):
            raise InvalidIndex(f"Participant index must be an integer, got {x!r}")
        if not 0 < x < self.order:
            raise InvalidIndex(f"Participant index {x} is outside [1, {self.order - 1}]")
        return x

    #
    # Points
    #

    def is_identity(self, point: Point) -> bool:
        return not point[1]

    def is_on_curve(self, point: Point) -> bool:
        if self.is_identity(point):
            return True
        x, y = point
        p = self.field_modulus
        return (y * y - x * x * x - self.b) % p == 0

    def add(self, a: Point, b: Point) -> Point:
        return secp256k1.add(a, b)

    def multiply(self, point: Point, scalar: int) -> Point:
        return secp256k1.multiply(point, self.scalar(scalar))

    def base_multiply(self, scalar: int) -> Point:
        return self.multiply(self.generator, scalar)

    def sum_points(self, points: Iterable[Point]) -> Point:
        total = self.IDENTITY
        for point in points:
            total = self.add(total, point)
        return total

    #
    # Encoding
    #

    def encode_point(self, point: Point) -> bytes:
        """SEC1 compressed encoding."""
        if self.is_identity(point):
            raise InvalidPoint("The point at infinity has no compressed encoding")
        x, y = point
        prefix = b'\x03' if y & 1 else b'\x02'
        return prefix + x.to_bytes(COMPRESSED_POINT_SIZE - 1, byteorder='big')

    def encode_point_uncompressed(self, point: Point) -> bytes:
        if self.is_identity(point):
            raise InvalidPoint("The point at infinity has no uncompressed encoding")
        half = UNCOMPRESSED_POINT_SIZE // 2
        return point[0].to_bytes(half, byteorder='big') + point[1].to_bytes(half, byteorder='big')

    def decode_point(self, data: bytes) -> Point:
        if len(data) != COMPRESSED_POINT_SIZE or data[0] not in (2, 3):
            raise InvalidPoint(f"Expected a {COMPRESSED_POINT_SIZE} byte compressed point, got {len(data)} bytes")

        p = self.field_modulus
        x = int.from_bytes(data[1:], byteorder='big')
        if x >= p:
            raise InvalidPoint("x coordinate exceeds the field modulus")

        # p = 3 mod 4 for secp256k1, so the square root is a single exponentiation
        y_squared = (pow(x, 3, p) + self.b) % p
        y = pow(y_squared, (p + 1) // 4, p)
        if (y * y) % p != y_squared:
            raise InvalidPoint("x coordinate is not on the curve")
        if (y & 1) != (data[0] & 1):
            y = p - y
        return x, y
