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

from cryptography.hazmat.primitives import hashes

# Component sizes
SCALAR_SIZE = 32
COMPRESSED_POINT_SIZE = 33
UNCOMPRESSED_POINT_SIZE = 64  # x || y, no prefix
SIGNATURE_SIZE = 65  # r || s || v
CHANNEL_PUBLIC_KEY_SIZE = 32
RANDOMNESS_SALT_SIZE = 32

# Digest Lengths
SHA256_DIGEST_LENGTH = 32

# Hashes
SHA256 = hashes.SHA256()

# Domain separation tags
ORACLE_COEFFICIENT_DOMAIN = b'feldspar-oracle-coefficient-v1'
ORACLE_ATTESTATION_DOMAIN = b'feldspar-oracle-attestation-v1'
SHARE_CHANNEL_DOMAIN = b'feldspar-share-channel-v1'
