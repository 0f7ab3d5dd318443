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
from abc import ABC, abstractmethod
from itertools import count as counter
from threading import Lock
from typing import Dict, Optional, Union

import maya
import requests
from eth_keys import keys
from eth_keys.exceptions import BadSignature, ValidationError

from feldspar.crypto.constants import ORACLE_ATTESTATION_DOMAIN, SCALAR_SIZE
from feldspar.crypto.utils import secure_random, sha256_digest
from feldspar.dkg.models import VRFProof
from feldspar.utilities.logging import Logger


class Oracle(ABC):

    class OracleError(RuntimeError):
        """Base class for Oracle-related exceptions"""

    name = NotImplemented
    api_url = NotImplemented

    def _probe_oracle(self, params: Optional[dict] = None, timeout: float = 10) -> dict:
        try:
            response = requests.get(self.api_url, params=params, timeout=timeout)
        except requests.exceptions.RequestException as e:
            error = f"Failed to probe oracle at {self.api_url}: {str(e)}"
            raise self.OracleError(error)

        if response.status_code != 200:
            error = f"Failed to probe oracle at {self.api_url} with status code {response.status_code}"
            raise self.OracleError(error)

        try:
            return response.json()
        except ValueError as e:
            raise self.OracleError(f"Oracle at {self.api_url} returned a non-JSON response: {e}")

    def __repr__(self):
        return f"{self.name} ({self.api_url})"


class RandomnessOracle(Oracle):
    """
    Base class for verifiable randomness oracles.

    An oracle answers a request with a batch of random words and an attestation over them.
    Anybody holding the oracle's public key can check the attestation; participants are
    expected to do so themselves rather than trust whoever relayed the proof.
    """

    def __init__(self, public_key: Union[keys.PublicKey, bytes]):
        if not isinstance(public_key, keys.PublicKey):
            public_key = keys.PublicKey(bytes(public_key))
        self.public_key = public_key

    @abstractmethod
    def request_randomness(self, count: int) -> VRFProof:
        raise NotImplementedError

    @staticmethod
    def attestation_digest(request_id: str, random_values, provenance: Dict[str, str]) -> bytes:
        encoded_values = b''.join(int(v).to_bytes(SCALAR_SIZE, byteorder='big') for v in random_values)
        encoded_provenance = json.dumps(provenance, sort_keys=True).encode()
        return sha256_digest(ORACLE_ATTESTATION_DOMAIN,
                             request_id.encode(),
                             len(random_values).to_bytes(4, byteorder='big'),
                             encoded_values,
                             encoded_provenance)

    def verify(self, proof: VRFProof) -> bool:
        digest = self.attestation_digest(request_id=proof.request_id,
                                         random_values=proof.random_values,
                                         provenance=proof.provenance)
        try:
            signature = keys.Signature(signature_bytes=bytes(proof.signature))
            return self.public_key.verify_msg_hash(digest, signature)
        except (BadSignature, ValidationError, ValueError):
            return False


class LocalRandomnessOracle(RandomnessOracle):
    """In-process oracle that signs fresh OS randomness; the reference collaborator for simulations."""

    name = "Local randomness oracle"
    api_url = "local://"

    def __init__(self, signing_key: Optional[keys.PrivateKey] = None):
        self.__signing_key = signing_key or keys.PrivateKey(secure_random(SCALAR_SIZE))
        self.__request_ids = counter(1)
        self.__lock = Lock()
        self.log = Logger(self.__class__.__name__)
        super().__init__(public_key=self.__signing_key.public_key)

    def request_randomness(self, count: int) -> VRFProof:
        if count < 0:
            raise ValueError(f"Cannot request a negative number ({count}) of random words")
        with self.__lock:
            request_id = f"local-{next(self.__request_ids)}"
        random_values = tuple(int.from_bytes(secure_random(SCALAR_SIZE), byteorder='big') for _ in range(count))
        provenance = {'source': self.name, 'timestamp': maya.now().iso8601()}
        digest = self.attestation_digest(request_id, random_values, provenance)
        signature = self.__signing_key.sign_msg_hash(digest)
        self.log.debug(f"Fulfilled randomness request {request_id} with {count} words")
        return VRFProof(request_id=request_id,
                        random_values=random_values,
                        signature=signature.to_bytes(),
                        provenance=provenance)


class HTTPRandomnessOracle(RandomnessOracle):
    """
    Client for a randomness oracle exposed over HTTP.

    The endpoint is queried with ``?count=<n>`` and must answer with JSON of the form
    ``{"request_id": str, "random_values": [hex], "provenance": {str: str}, "signature": hex}``.
    """

    name = "HTTP randomness oracle"

    def __init__(self, api_url: str, public_key: Union[keys.PublicKey, bytes], timeout: float = 10):
        self.api_url = api_url
        self.timeout = timeout
        super().__init__(public_key=public_key)

    def request_randomness(self, count: int) -> VRFProof:
        raw_data = self._probe_oracle(params={'count': count}, timeout=self.timeout)
        try:
            return VRFProof(
                request_id=str(raw_data['request_id']),
                random_values=tuple(int(value, 16) for value in raw_data['random_values']),
                provenance={str(k): str(v) for k, v in raw_data.get('provenance', {}).items()},
                signature=bytes.fromhex(raw_data['signature']),
            )
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            raise self.OracleError(f"Malformed randomness response from {self.api_url}: {e}")
