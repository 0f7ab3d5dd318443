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

from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Dict, Iterator, Tuple

from feldspar.types import ComplaintKey, FieldElement, ParticipantId, Point


class RoundPhase(IntEnum):
    """Per-participant round phases; transitions only ever move forward."""
    IDLE = 0
    POLYNOMIAL_GENERATED = 1
    COMMITMENT_PUBLISHED = 2
    SHARES_DISTRIBUTED = 3
    SHARES_VERIFIED = 4
    FINAL_SHARE_COMPUTED = 5
    FAILED = 99


class CompletionPolicy(Enum):
    ALL = "all"
    QUORUM = "quorum"


class Verdict(Enum):
    VALID = "valid"
    INVALID = "invalid"


class ComplaintReason:
    INVALID_SHARE = "invalid_share"
    UNDECRYPTABLE_SHARE = "undecryptable_share"
    MISSING_SHARE = "missing_share"
    INVALID_COMMITMENT = "invalid_commitment"
    UNVERIFIABLE_RANDOMNESS = "unverifiable_randomness"
    CONFLICTING_COMMITMENT = "conflicting_commitment"
    CORRELATED_COEFFICIENTS = "correlated_coefficients"

    ALL = (
        INVALID_SHARE,
        UNDECRYPTABLE_SHARE,
        MISSING_SHARE,
        INVALID_COMMITMENT,
        UNVERIFIABLE_RANDOMNESS,
        CONFLICTING_COMMITMENT,
        CORRELATED_COEFFICIENTS,
    )


@dataclass(frozen=True)
class Share:
    x: ParticipantId
    y: FieldElement


@dataclass(frozen=True)
class Commitment:
    """Public curve points ``A_i = G * a_i`` for each coefficient of an issuer's polynomial."""
    points: Tuple[Point, ...]

    def __len__(self) -> int:
        return len(self.points)

    def __getitem__(self, index: int) -> Point:
        return self.points[index]

    def __iter__(self) -> Iterator[Point]:
        return iter(self.points)

    @property
    def public_contribution(self) -> Point:
        return self.points[0]


@dataclass(frozen=True)
class VRFProof:
    request_id: str
    random_values: Tuple[int, ...]
    signature: bytes
    provenance: Dict[str, str] = field(default_factory=dict)
    verified: bool = False  # set by the consumer after local verification, never trusted from the wire


@dataclass(frozen=True)
class Complaint:
    accuser: ParticipantId
    accused: ParticipantId
    reason: str
    timestamp: float

    @property
    def key(self) -> ComplaintKey:
        return ComplaintKey(accuser=self.accuser, accused=self.accused)


@dataclass(frozen=True)
class ChannelMessage:
    sender: ParticipantId
    recipient: ParticipantId
    ciphertext: bytes


@dataclass(frozen=True)
class FinalShare:
    participant_id: ParticipantId
    value: FieldElement
    qualified: Tuple[ParticipantId, ...]


@dataclass(frozen=True)
class PartialSignature:
    participant_id: ParticipantId
    signature: bytes
    message_digest: bytes
