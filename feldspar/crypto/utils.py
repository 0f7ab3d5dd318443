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

from secrets import SystemRandom

from cryptography.hazmat.primitives import hashes

from feldspar.crypto.constants import SHA256
from feldspar.exceptions import EntropyError

SYSTEM_RAND = SystemRandom()


def secure_random(num_bytes: int) -> bytes:
    """
    Returns an amount `num_bytes` of data from the OS's random device.
    If a randomness source isn't found, raises `EntropyError`.

    :param num_bytes: Number of bytes to return.

    :return: bytes
    """
    try:
        return SYSTEM_RAND.getrandbits(num_bytes * 8).to_bytes(num_bytes, byteorder='big')
    except (NotImplementedError, OSError) as e:
        raise EntropyError(f"System entropy source failed: {e}") from e


def secure_random_range(min: int, max: int) -> int:
    """
    Returns a number from a secure random source between the range of
    `min` and `max` - 1.

    :param min: Minimum number in the range
    :param max: Maximum number in the range

    :return: int
    """
    try:
        return SYSTEM_RAND.randrange(min, max)
    except (NotImplementedError, OSError) as e:
        raise EntropyError(f"System entropy source failed: {e}") from e


def sha256_digest(*messages: bytes) -> bytes:
    """
    Accepts an iterable containing bytes and digests it returning a
    SHA256 digest of 32 bytes

    :param bytes: Data to hash

    :rtype: bytes
    :return: bytestring of digested data
    """
    _hash_ctx = hashes.Hash(SHA256)
    for message in messages:
        _hash_ctx.update(bytes(message))
    digest = _hash_ctx.finalize()
    return digest
