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

import json
from typing import Callable, Optional

from nacl.exceptions import CryptoError
from nacl.public import Box, PrivateKey, PublicKey

from feldspar.crypto.constants import CHANNEL_PUBLIC_KEY_SIZE, SCALAR_SIZE, SHARE_CHANNEL_DOMAIN
from feldspar.crypto.context import CryptoContext
from feldspar.dkg.models import ChannelMessage, Share
from feldspar.exceptions import DecryptionError
from feldspar.types import ParticipantId


class ChannelKeypair:
    """Curve25519 keypair used only for point-to-point share delivery."""

    def __init__(self, private_key: Optional[PrivateKey] = None):
        self.__private_key = private_key or PrivateKey.generate()
        self.public_key = self.__private_key.public_key

    def __bytes__(self):
        return bytes(self.public_key)

    def fingerprint(self) -> str:
        return bytes(self.public_key).hex()[:16]

    def encrypt(self, plaintext: bytes, recipient_public_key: PublicKey) -> bytes:
        return bytes(Box(self.__private_key, recipient_public_key).encrypt(plaintext))

    def decrypt(self, ciphertext: bytes, sender_public_key: PublicKey) -> bytes:
        try:
            return Box(self.__private_key, sender_public_key).decrypt(ciphertext)
        except (CryptoError, ValueError, TypeError) as e:
            raise DecryptionError(f"Could not authenticate share ciphertext: {e}") from e


def load_channel_public_key(data: bytes) -> PublicKey:
    if len(data) != CHANNEL_PUBLIC_KEY_SIZE:
        raise ValueError(f"Channel public keys are {CHANNEL_PUBLIC_KEY_SIZE} bytes, got {len(data)}")
    return PublicKey(bytes(data))


class ShareChannel:
    """
    Packages shares for a single recipient.

    Packages are encrypted with an authenticated Box keyed by the sender's channel secret
    and the recipient's channel public key, so only the recipient can read a share and the
    recipient knows who produced it.  Sender and recipient indices are also bound inside
    the plaintext; a package replayed under different routing metadata is rejected.
    """

    def __init__(self,
                 owner: ParticipantId,
                 keypair: ChannelKeypair,
                 resolve_public_key: Callable[[ParticipantId], PublicKey],
                 context: CryptoContext):
        self.owner = owner
        self.keypair = keypair
        self.context = context
        self._resolve_public_key = resolve_public_key

    def _public_key_of(self, participant: ParticipantId) -> PublicKey:
        try:
            return self._resolve_public_key(participant)
        except KeyError:
            raise DecryptionError(f"No channel key known for participant {participant}")

    def package(self, share: Share, recipient: ParticipantId) -> ChannelMessage:
        plaintext = json.dumps({
            'domain': SHARE_CHANNEL_DOMAIN.decode(),
            'sender': self.owner,
            'recipient': recipient,
            'x': share.x,
            'y': self.context.scalar_to_bytes(share.y).hex(),
        }, sort_keys=True).encode()
        ciphertext = self.keypair.encrypt(plaintext, self._public_key_of(recipient))
        return ChannelMessage(sender=self.owner, recipient=recipient, ciphertext=ciphertext)

    def unpackage(self, message: ChannelMessage, sender: ParticipantId) -> Share:
        if message.recipient != self.owner:
            raise DecryptionError(f"Package addressed to {message.recipient}, not {self.owner}")
        if message.sender != sender:
            raise DecryptionError(f"Package claims sender {message.sender}, expected {sender}")

        plaintext = self.keypair.decrypt(message.ciphertext, self._public_key_of(sender))
        try:
            payload = json.loads(plaintext.decode())
            if payload['domain'] != SHARE_CHANNEL_DOMAIN.decode():
                raise ValueError("wrong domain")
            if payload['sender'] != sender or payload['recipient'] != self.owner:
                raise ValueError("routing mismatch")
            y_bytes = bytes.fromhex(payload['y'])
            if len(y_bytes) != SCALAR_SIZE:
                raise ValueError("bad share length")
            x = payload['x']
            if isinstance(x, bool) or not isinstance(x, int):
                raise ValueError("bad share index")
        except (ValueError, KeyError, TypeError, UnicodeDecodeError) as e:
            raise DecryptionError(f"Malformed share package from {sender}: {e}") from e

        return Share(x=ParticipantId(x), y=int.from_bytes(y_bytes, byteorder='big'))
