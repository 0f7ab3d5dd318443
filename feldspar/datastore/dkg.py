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

from collections import defaultdict
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from nacl.public import PublicKey

from feldspar.dkg.models import Commitment, FinalShare, RoundPhase, Share, Verdict, VRFProof
from feldspar.types import ParticipantId, RoundId


@dataclass(frozen=True)
class ParticipantState:
    """Point-in-time view of one participant's round, safe to hand to callers."""
    participant_id: ParticipantId
    round_id: RoundId
    phase: RoundPhase
    commitments_received: Tuple[ParticipantId, ...]
    shares_received: Tuple[ParticipantId, ...]
    complaints: int
    qualified: Tuple[ParticipantId, ...]
    error: Optional[str] = None

    @property
    def failed(self) -> bool:
        return self.phase == RoundPhase.FAILED

    @property
    def complete(self) -> bool:
        return self.phase == RoundPhase.FINAL_SHARE_COMPUTED


class RoundStorage:
    """A simple in-memory storage for one participant's DKG round data"""

    # public data
    _KEY_COMMITMENTS = "commitments"
    _KEY_CHANNEL_KEYS = "channel_keys"
    _KEY_RANDOMNESS_PROOFS = "randomness_proofs"
    _KEY_VERDICTS = "verdicts"
    # private data
    _KEY_SHARES = "shares"
    _KEY_FINAL_SHARES = "final_shares"

    _KEYS = [
        _KEY_COMMITMENTS,
        _KEY_CHANNEL_KEYS,
        _KEY_RANDOMNESS_PROOFS,
        _KEY_VERDICTS,
        _KEY_SHARES,
        _KEY_FINAL_SHARES,
    ]

    def __init__(self):
        self._data = defaultdict(lambda: defaultdict(dict))

    def clear(self, round_id: RoundId):
        for key in self._KEYS:
            try:
                del self._data[key][round_id]
            except KeyError:
                continue

    #
    # Commitments
    #

    def store_commitment(self, round_id: RoundId, issuer: ParticipantId, commitment: Commitment) -> None:
        if issuer in self._data[self._KEY_COMMITMENTS][round_id]:
            raise ValueError(f"A commitment from {issuer} is already stored for round {round_id}")
        self._data[self._KEY_COMMITMENTS][round_id][issuer] = commitment

    def get_commitment(self, round_id: RoundId, issuer: ParticipantId) -> Optional[Commitment]:
        return self._data[self._KEY_COMMITMENTS][round_id].get(issuer)

    def get_commitments(self, round_id: RoundId) -> Dict[ParticipantId, Commitment]:
        return dict(self._data[self._KEY_COMMITMENTS][round_id])

    def store_channel_key(self, round_id: RoundId, participant: ParticipantId, public_key: PublicKey) -> None:
        self._data[self._KEY_CHANNEL_KEYS][round_id][participant] = public_key

    def get_channel_key(self, round_id: RoundId, participant: ParticipantId) -> PublicKey:
        # KeyError for unknown participants
        return self._data[self._KEY_CHANNEL_KEYS][round_id][participant]

    def store_randomness_proof(self, round_id: RoundId, issuer: ParticipantId, proof: VRFProof) -> None:
        self._data[self._KEY_RANDOMNESS_PROOFS][round_id][issuer] = proof

    def get_randomness_proof(self, round_id: RoundId, issuer: ParticipantId) -> Optional[VRFProof]:
        return self._data[self._KEY_RANDOMNESS_PROOFS][round_id].get(issuer)

    #
    # Shares
    #

    def store_share(self, round_id: RoundId, issuer: ParticipantId, share: Share) -> bool:
        """Stores the share received from `issuer`; returns False if one was already stored."""
        shares = self._data[self._KEY_SHARES][round_id]
        if issuer in shares:
            return False
        shares[issuer] = share
        return True

    def get_share(self, round_id: RoundId, issuer: ParticipantId) -> Optional[Share]:
        return self._data[self._KEY_SHARES][round_id].get(issuer)

    def get_shares(self, round_id: RoundId) -> Dict[ParticipantId, Share]:
        return dict(self._data[self._KEY_SHARES][round_id])

    def store_verdict(self,
                      round_id: RoundId,
                      verifier: ParticipantId,
                      issuer: ParticipantId,
                      verdict: Verdict) -> None:
        self._data[self._KEY_VERDICTS][round_id][(verifier, issuer)] = verdict

    def get_verdict(self, round_id: RoundId, verifier: ParticipantId, issuer: ParticipantId) -> Optional[Verdict]:
        return self._data[self._KEY_VERDICTS][round_id].get((verifier, issuer))

    def get_verdicts(self, round_id: RoundId) -> Dict[Tuple[ParticipantId, ParticipantId], Verdict]:
        return dict(self._data[self._KEY_VERDICTS][round_id])

    #
    # Final Share
    #

    def store_final_share(self, round_id: RoundId, final_share: FinalShare) -> None:
        if round_id in self._data[self._KEY_FINAL_SHARES]:
            # the final share is terminal for a round
            raise ValueError(f"Final share for round {round_id} was already computed")
        self._data[self._KEY_FINAL_SHARES][round_id] = final_share

    def get_final_share(self, round_id: RoundId) -> Optional[FinalShare]:
        return self._data[self._KEY_FINAL_SHARES].get(round_id)
