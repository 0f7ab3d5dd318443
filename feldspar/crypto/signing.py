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

from typing import Optional, Union

from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from feldspar.crypto.constants import SIGNATURE_SIZE
from feldspar.crypto.context import CryptoContext
from feldspar.crypto.utils import sha256_digest
from feldspar.dkg.models import FinalShare, PartialSignature
from feldspar.exceptions import InvalidShare, NoFinalShare
from feldspar.types import Point


class ThresholdSigner:
    """
    Produces partial signatures with a participant's final share as the ECDSA private scalar.

    Each partial verifies against the signer's public share point, which anyone can derive
    from the published commitments.  Combining partials into a group signature is left to
    the consumer.
    """

    def __init__(self, context: CryptoContext):
        self.context = context

    @staticmethod
    def digest(message: Union[bytes, str]) -> bytes:
        if isinstance(message, str):
            message = message.encode()
        return sha256_digest(message)

    def sign(self, final_share: Optional[FinalShare], message: Union[bytes, str]) -> PartialSignature:
        if final_share is None:
            raise NoFinalShare("Cannot sign before the final share has been computed")
        if not final_share.value:
            raise InvalidShare(f"Final share of participant {final_share.participant_id} is zero")

        private_key = keys.PrivateKey(self.context.scalar_to_bytes(final_share.value))
        message_digest = self.digest(message)
        signature = private_key.sign_msg_hash(message_digest)
        return PartialSignature(participant_id=final_share.participant_id,
                                signature=signature.to_bytes(),
                                message_digest=message_digest)

    def verify(self, partial: PartialSignature, public_point: Point) -> bool:
        if len(partial.signature) != SIGNATURE_SIZE:
            return False
        try:
            public_key = keys.PublicKey(self.context.encode_point_uncompressed(public_point))
            signature = keys.Signature(signature_bytes=partial.signature)
            return public_key.verify_msg_hash(partial.message_digest, signature)
        except (BadSignature, ValidationError, ValueError):
            return False
