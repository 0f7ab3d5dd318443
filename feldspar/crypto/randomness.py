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

from abc import ABC, abstractmethod
from dataclasses import replace
from typing import List, Optional, Set

from feldspar.crypto.constants import ORACLE_COEFFICIENT_DOMAIN, RANDOMNESS_SALT_SIZE, SCALAR_SIZE
from feldspar.crypto.context import CryptoContext
from feldspar.crypto.utils import secure_random, secure_random_range, sha256_digest
from feldspar.dkg.models import VRFProof
from feldspar.exceptions import OracleUnavailable, VerificationFailed
from feldspar.types import FieldElement, ParticipantId
from feldspar.utilities.logging import Logger
from feldspar.utilities.oracles import RandomnessOracle


class RandomnessSource(ABC):
    """Supplies field elements for polynomial coefficients."""

    def __init__(self, context: CryptoContext):
        self.context = context
        self.log = Logger(self.__class__.__name__)

    @abstractmethod
    def generate(self, count: int) -> List[FieldElement]:
        """Returns `count` non-zero field elements."""
        raise NotImplementedError

    @property
    def last_proof(self) -> Optional[VRFProof]:
        """Proof backing the most recent draw, if the source has one to publish."""
        return None


class SystemRandomness(RandomnessSource):
    """Coefficients drawn independently and uniformly from the OS CSPRNG."""

    def generate(self, count: int) -> List[FieldElement]:
        if count < 0:
            raise ValueError(f"Cannot generate a negative number ({count}) of field elements")
        return [secure_random_range(1, self.context.order) for _ in range(count)]


def derive_coefficient(context: CryptoContext,
                       participant_id: ParticipantId,
                       salt: bytes,
                       request_id: str,
                       position: int,
                       value: int) -> FieldElement:
    """
    Binds a public oracle word to one participant's private salt.

    The oracle word contributes unpredictability that anybody can audit; the salt keeps the
    resulting coefficient private to its owner.  A zero result is re-hashed with a counter.
    """
    attempt = 0
    while True:
        digest = sha256_digest(ORACLE_COEFFICIENT_DOMAIN,
                               participant_id.to_bytes(SCALAR_SIZE, byteorder='big'),
                               salt,
                               request_id.encode(),
                               position.to_bytes(4, byteorder='big'),
                               int(value).to_bytes(SCALAR_SIZE, byteorder='big'),
                               attempt.to_bytes(4, byteorder='big'))
        coefficient = context.scalar_from_bytes(digest)
        if coefficient:
            return coefficient
        attempt += 1


class OracleRandomness(RandomnessSource):
    """
    Adapter over an external verifiable randomness oracle.

    Every draw is re-verified locally before use, and a proof is consumed at most once.
    Oracle words are never used directly as coefficients: they are hashed together with
    the participant's index and a private salt (see `derive_coefficient`), so two
    participants handed the same draw still end up with unrelated polynomials.
    """

    def __init__(self,
                 oracle: RandomnessOracle,
                 participant_id: ParticipantId,
                 context: CryptoContext,
                 salt: Optional[bytes] = None):
        super().__init__(context=context)
        self.oracle = oracle
        self.participant_id = participant_id
        self.__salt = salt or secure_random(RANDOMNESS_SALT_SIZE)
        self.__consumed_requests: Set[str] = set()
        self._last_proof: Optional[VRFProof] = None

    @property
    def last_proof(self) -> Optional[VRFProof]:
        return self._last_proof

    def generate(self, count: int) -> List[FieldElement]:
        try:
            proof = self.oracle.request_randomness(count)
        except RandomnessOracle.OracleError as e:
            raise OracleUnavailable(f"Randomness oracle {self.oracle} is unavailable: {e}") from e
        return self.consume(proof, count=count)

    def consume(self, proof: VRFProof, count: int) -> List[FieldElement]:
        if proof.request_id in self.__consumed_requests:
            raise VerificationFailed(f"Randomness request {proof.request_id} was already consumed")
        if len(proof.random_values) != count:
            raise VerificationFailed(f"Randomness request {proof.request_id} returned "
                                     f"{len(proof.random_values)} words; expected {count}")
        if not self.oracle.verify(proof):
            raise VerificationFailed(f"Proof for randomness request {proof.request_id} does not verify")

        self.__consumed_requests.add(proof.request_id)
        self._last_proof = replace(proof, verified=True)
        self.log.debug(f"Participant {self.participant_id} consumed verified randomness "
                       f"request {proof.request_id} ({count} words)")

        return [derive_coefficient(context=self.context,
                                   participant_id=self.participant_id,
                                   salt=self.__salt,
                                   request_id=proof.request_id,
                                   position=position,
                                   value=value)
                for position, value in enumerate(proof.random_values)]
