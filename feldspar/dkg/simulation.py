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

from dataclasses import dataclass, field, replace
from typing import Dict, Iterable, Optional, Set, Tuple, Union

from feldspar.config.rounds import RoundConfiguration
from feldspar.crypto.context import CryptoContext
from feldspar.crypto.utils import secure_random
from feldspar.dkg.models import Complaint, PartialSignature, Share
from feldspar.dkg.participant import Participant
from feldspar.network.log import BroadcastLog, InMemoryBroadcastLog
from feldspar.types import ParticipantId
from feldspar.utilities.concurrency import run_in_threads
from feldspar.utilities.logging import Logger
from feldspar.utilities.oracles import LocalRandomnessOracle, RandomnessOracle

Fault = Tuple[int, int]  # (issuer, recipient)


class MisbehavingParticipant(Participant):
    """Sends `y + 1` instead of its honest share to some recipients and nothing at all to others."""

    def __init__(self, *args,
                 corrupt_recipients: Iterable[int] = (),
                 withhold_recipients: Iterable[int] = (),
                 **kwargs):
        self.corrupt_recipients: Set[int] = set(corrupt_recipients)
        self.withhold_recipients: Set[int] = set(withhold_recipients)
        super().__init__(*args, **kwargs)

    def _share_for(self, recipient: ParticipantId) -> Share:
        share = super()._share_for(recipient)
        if recipient in self.corrupt_recipients:
            self.log.warn(f"Participant {self.id} is corrupting its share for {recipient}")
            return replace(share, y=self.context.scalar(share.y + 1))
        return share

    def _send_share(self, recipient: ParticipantId) -> None:
        if recipient in self.withhold_recipients:
            self.log.warn(f"Participant {self.id} is withholding its share from {recipient}")
            return
        super()._send_share(recipient)


@dataclass
class SimulationResult:
    participants: Dict[ParticipantId, Participant]
    outcomes: Dict[ParticipantId, object] = field(default_factory=dict)
    errors: Dict[ParticipantId, BaseException] = field(default_factory=dict)

    @property
    def succeeded(self) -> Dict[ParticipantId, Participant]:
        return {pid: p for pid, p in self.participants.items() if pid not in self.errors}

    @property
    def partial_signatures(self) -> Dict[ParticipantId, PartialSignature]:
        return {pid: o for pid, o in self.outcomes.items() if isinstance(o, PartialSignature)}

    def complaints(self) -> Tuple[Complaint, ...]:
        """Every distinct complaint seen by any participant."""
        merged = dict()
        for participant in self.participants.values():
            for complaint in participant.complaints:
                merged.setdefault(complaint.key, complaint)
        return tuple(merged[key] for key in sorted(merged))


def generate_round_id() -> str:
    return f"round-{secure_random(8).hex()}"


def simulate_round(config: RoundConfiguration,
                   message: Optional[Union[bytes, str]] = None,
                   broadcast_log: Optional[BroadcastLog] = None,
                   oracle: Optional[RandomnessOracle] = None,
                   corruptions: Iterable[Fault] = (),
                   withholdings: Iterable[Fault] = (),
                   round_id: Optional[str] = None,
                   context: Optional[CryptoContext] = None) -> SimulationResult:
    """Runs every participant of `config` in its own thread against one shared log."""
    log = Logger("simulation")
    round_id = round_id or generate_round_id()
    broadcast_log = broadcast_log or InMemoryBroadcastLog(name=round_id)
    if config.randomness == RoundConfiguration.ORACLE_RANDOMNESS and oracle is None:
        oracle = config.produce_oracle() or LocalRandomnessOracle()

    faults: Dict[int, Dict[str, Set[int]]] = dict()
    for kind, pairs in (('corrupt_recipients', corruptions), ('withhold_recipients', withholdings)):
        for issuer, recipient in pairs:
            if issuer not in config.participants or recipient not in config.participants:
                raise ValueError(f"Fault {issuer}:{recipient} names a non-member")
            faults.setdefault(issuer, dict()).setdefault(kind, set()).add(recipient)

    participants = dict()
    for participant_id in config.participant_ids:
        kwargs = dict(participant_id=participant_id,
                      config=config,
                      broadcast_log=broadcast_log,
                      round_id=round_id,
                      context=context,
                      oracle=oracle)
        if participant_id in faults:
            participants[participant_id] = MisbehavingParticipant(**faults[participant_id], **kwargs)
        else:
            participants[participant_id] = Participant(**kwargs)

    log.info(f"Simulating round {round_id} with {config!r}")
    futures = run_in_threads({pid: (lambda p=p: p.run(message=message)) for pid, p in participants.items()})

    result = SimulationResult(participants=participants)
    for participant_id, future in futures.items():
        try:
            result.outcomes[participant_id] = future.get(timeout=0)
        except Exception as e:
            result.errors[participant_id] = e
    return result
