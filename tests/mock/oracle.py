from typing import Optional

from feldspar.dkg.models import VRFProof
from feldspar.utilities.oracles import LocalRandomnessOracle, RandomnessOracle


class SharedDrawOracle(LocalRandomnessOracle):
    """Hands every requester the very same signed draw."""

    name = "Shared draw oracle"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.draw: Optional[VRFProof] = None
        self.requests = 0

    def request_randomness(self, count: int) -> VRFProof:
        self.requests += 1
        if self.draw is None:
            self.draw = super().request_randomness(count)
        return self.draw


class ForgingOracle(LocalRandomnessOracle):
    """Signs one draw but hands out different values under that signature."""

    name = "Forging oracle"

    def request_randomness(self, count: int) -> VRFProof:
        proof = super().request_randomness(count)
        forged_values = tuple(value ^ 1 for value in proof.random_values)
        return VRFProof(request_id=proof.request_id,
                        random_values=forged_values,
                        signature=proof.signature,
                        provenance=proof.provenance)


class UnreachableOracle(RandomnessOracle):

    name = "Unreachable oracle"
    api_url = "https://unreachable.feldspar.test"

    def request_randomness(self, count: int) -> VRFProof:
        raise self.OracleError(f"Failed to probe oracle at {self.api_url}: connection refused")
