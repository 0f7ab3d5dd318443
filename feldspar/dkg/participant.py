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

from threading import Event
from typing import Callable, Dict, List, Optional, Set, Tuple, Union

import maya

from feldspar.config.rounds import RoundConfiguration
from feldspar.crypto.channel import ChannelKeypair, ShareChannel, load_channel_public_key
from feldspar.crypto.commitments import FeldmanCommitmentScheme
from feldspar.crypto.context import CryptoContext
from feldspar.crypto.polynomial import Polynomial
from feldspar.crypto.randomness import OracleRandomness, RandomnessSource, SystemRandomness
from feldspar.crypto.signing import ThresholdSigner
from feldspar.datastore.dkg import ParticipantState, RoundStorage
from feldspar.dkg.aggregation import ShareAggregator
from feldspar.dkg.complaints import ComplaintManager
from feldspar.dkg.models import (
    ChannelMessage,
    Commitment,
    CompletionPolicy,
    Complaint,
    ComplaintReason,
    FinalShare,
    PartialSignature,
    RoundPhase,
    Share,
    Verdict,
)
from feldspar.dkg.records import (
    ComplaintRecord,
    PolynomialCommitmentRecord,
    Record,
    ShareDistributionRecord,
    ShareVerificationRecord,
    parse_record,
)
from feldspar.dkg.shares import ShareSet, ShareVerifier
from feldspar.exceptions import (
    DecryptionError,
    InsufficientShares,
    InvalidRecord,
    NoFinalShare,
    PhaseError,
    ReplicationTimeout,
)
from feldspar.network.log import BroadcastLog
from feldspar.types import ParticipantId, Point, RoundId
from feldspar.utilities.concurrency import wait_for
from feldspar.utilities.logging import Logger
from feldspar.utilities.oracles import RandomnessOracle


class Participant:
    """
    One participant's view of a joint-Feldman DKG round.

    The participant walks strictly forward through `RoundPhase`, talking to its peers only
    through the broadcast log: commitments, encrypted shares, verdicts and complaints are
    all log records.  Records are consumed by `sync`, which can be called at any time and
    tolerates duplicate or replayed delivery.

    The qualified set (QUAL) is every issuer whose share to this participant verified and
    against whom no complaint has been seen on the log.  Every verifier publishes a verdict
    for every committed issuer, and an INVALID or missing share is always complained about
    before its verdict is published, so participants fixing QUAL over the same verdicts agree
    on it.

    Complaints are not adjudicated: a single complaint from any member removes the accused
    from everyone's QUAL, and the accused has no way to answer it (for instance by revealing
    the disputed share).  One malicious participant can therefore fail an ALL round, or evict
    honest issuers under QUORUM.
    """

    def __init__(self,
                 participant_id: int,
                 config: RoundConfiguration,
                 broadcast_log: BroadcastLog,
                 round_id: str,
                 context: Optional[CryptoContext] = None,
                 randomness: Optional[RandomnessSource] = None,
                 oracle: Optional[RandomnessOracle] = None,
                 channel_keypair: Optional[ChannelKeypair] = None,
                 storage: Optional[RoundStorage] = None,
                 cancel_event: Optional[Event] = None):

        self.id = ParticipantId(participant_id)
        self.config = config
        self.broadcast_log = broadcast_log
        self.round_id = RoundId(round_id)
        self.log = Logger(f"participant-{self.id}")

        self.context = context or CryptoContext.secp256k1()
        self.context.validate_index(self.id)
        if self.id not in config.participants:
            raise ValueError(f"Participant {self.id} is not a member of round {self.round_id}")

        if randomness is None:
            if config.randomness == RoundConfiguration.ORACLE_RANDOMNESS:
                oracle = oracle or config.produce_oracle()
                if oracle is None:
                    raise ValueError("Oracle randomness requires an oracle")
                randomness = OracleRandomness(oracle=oracle, participant_id=self.id, context=self.context)
            else:
                randomness = SystemRandomness(context=self.context)
        if oracle is None and isinstance(randomness, OracleRandomness):
            oracle = randomness.oracle
        self.randomness = randomness
        self.oracle = oracle

        self.scheme = FeldmanCommitmentScheme(context=self.context)
        self.verifier = ShareVerifier(scheme=self.scheme, valid_indices=config.participant_ids)
        self.aggregator = ShareAggregator(participant_id=self.id, context=self.context)
        self.signer = ThresholdSigner(context=self.context)
        self.complaints = ComplaintManager()
        self.storage = storage or RoundStorage()

        self.channel_keypair = channel_keypair or ChannelKeypair()
        self.channel = ShareChannel(owner=self.id,
                                    keypair=self.channel_keypair,
                                    resolve_public_key=lambda pid: self.storage.get_channel_key(self.round_id, pid),
                                    context=self.context)

        self.cancel_event = cancel_event or Event()
        self.phase = RoundPhase.IDLE
        self.error: Optional[str] = None

        self.__polynomial: Optional[Polynomial] = None
        self.commitment: Optional[Commitment] = None
        self.share_set: Optional[ShareSet] = None
        self._pending_packages: Dict[ParticipantId, ChannelMessage] = dict()
        self._shares_sent: Set[ParticipantId] = set()
        self._cursor = 0

        self._handlers: Dict[str, Callable[[Record], None]] = {
            PolynomialCommitmentRecord.TYPE: self._handle_commitment,
            ShareDistributionRecord.TYPE: self._handle_share_distribution,
            ShareVerificationRecord.TYPE: self._handle_share_verification,
            ComplaintRecord.TYPE: self._handle_complaint,
        }

        self.broadcast_log.on_peer_joined(self._peer_joined)
        self.broadcast_log.join(self.peer_name)

    def __repr__(self):
        return f"{self.__class__.__name__}(id={self.id}, round={self.round_id}, phase={self.phase.name})"

    @property
    def peer_name(self) -> str:
        return f"{self.round_id}/participant-{self.id}"

    @property
    def others(self) -> List[ParticipantId]:
        return [p for p in self.config.participant_ids if p != self.id]

    #
    # Phases
    #

    def _require_phase(self, *phases: RoundPhase) -> None:
        if self.phase == RoundPhase.FAILED:
            raise PhaseError(f"Round {self.round_id} already failed for participant {self.id}: {self.error}")
        if self.phase not in phases:
            expected = ", ".join(p.name for p in phases)
            raise PhaseError(f"Participant {self.id} is in phase {self.phase.name}; expected {expected}")

    def _advance(self, phase: RoundPhase) -> None:
        self.log.debug(f"Participant {self.id} round {self.round_id}: {self.phase.name} -> {phase.name}")
        self.phase = phase

    def _fail(self, error: BaseException) -> None:
        self.error = f"{error.__class__.__name__}: {error}"
        if self.phase != RoundPhase.FAILED:
            self.log.error(f"Participant {self.id} failed round {self.round_id} in phase "
                           f"{self.phase.name}: {self.error}")
        self.phase = RoundPhase.FAILED

    def _wait(self,
              condition: Callable[[], bool],
              description: str,
              allow_quorum: bool = False,
              timeout: Optional[float] = None) -> None:
        def _synced_condition() -> bool:
            self.sync()
            return condition()

        try:
            wait_for(_synced_condition,
                     timeout=self.config.replication_timeout if timeout is None else timeout,
                     interval=self.config.poll_interval,
                     cancel_event=self.cancel_event,
                     description=description)
        except ReplicationTimeout:
            if allow_quorum and self.config.completion_policy == CompletionPolicy.QUORUM:
                self.log.warn(f"Participant {self.id} proceeding with a quorum after waiting for {description}")
                return
            raise

    def generate_polynomial(self) -> None:
        self._require_phase(RoundPhase.IDLE)
        self.__polynomial = Polynomial.generate(threshold=self.config.threshold,
                                                randomness=self.randomness,
                                                context=self.context)
        self._advance(RoundPhase.POLYNOMIAL_GENERATED)

    def publish_commitment(self) -> None:
        self._require_phase(RoundPhase.POLYNOMIAL_GENERATED)
        self.commitment = self.scheme.commit(self.__polynomial)
        record = PolynomialCommitmentRecord.build(round_id=self.round_id,
                                                  sender=self.id,
                                                  commitment=self.commitment,
                                                  channel_public_key=bytes(self.channel_keypair),
                                                  context=self.context,
                                                  randomness_proof=self.randomness.last_proof)
        self.broadcast_log.append(record.to_dict())
        self._advance(RoundPhase.COMMITMENT_PUBLISHED)

    def await_commitments(self) -> None:
        self._require_phase(RoundPhase.COMMITMENT_PUBLISHED)
        self._wait(lambda: len(self.storage.get_commitments(self.round_id)) >= self.config.n,
                   description="commitments",
                   allow_quorum=True)
        received = len(self.storage.get_commitments(self.round_id))
        if received < self.config.required_issuers:
            raise InsufficientShares(f"Only {received} commitments arrived; "
                                     f"{self.config.required_issuers} are required")

    def _share_for(self, recipient: ParticipantId) -> Share:
        return self.share_set[recipient]

    def distribute_shares(self) -> None:
        self._require_phase(RoundPhase.COMMITMENT_PUBLISHED)
        self.share_set = ShareSet.generate(polynomial=self.__polynomial,
                                           participant_ids=self.config.participant_ids)

        own_share = self.share_set[self.id]
        verdict = self.verifier.verify(sender=self.id, share=own_share, commitment=self.commitment)
        self._record_verdict(issuer=self.id, verdict=verdict, share=own_share)

        self.sync()
        for recipient in self.others:
            if self.storage.get_commitment(self.round_id, recipient) is None:
                # delivered by _handle_commitment once the channel key arrives
                self.log.warn(f"Participant {recipient} has not committed yet; "
                              f"participant {self.id} will send its share on arrival")
                continue
            self._send_share(recipient)
        self._advance(RoundPhase.SHARES_DISTRIBUTED)

    def _send_share(self, recipient: ParticipantId) -> None:
        if recipient in self._shares_sent:
            return
        message = self.channel.package(self._share_for(recipient), recipient=recipient)
        record = ShareDistributionRecord(round_id=self.round_id,
                                         sender=self.id,
                                         recipient=recipient,
                                         ciphertext=message.ciphertext)
        self.broadcast_log.append(record.to_dict())
        self._shares_sent.add(recipient)

    def await_shares(self) -> None:
        self._require_phase(RoundPhase.SHARES_DISTRIBUTED)
        self._wait(lambda: len(self._pending_packages) >= len(self.others),
                   description="shares",
                   allow_quorum=True)

    def verify_shares(self) -> Dict[ParticipantId, Verdict]:
        self._require_phase(RoundPhase.SHARES_DISTRIBUTED)
        self.sync()
        verdicts = dict()
        for issuer, message in sorted(self._pending_packages.items()):
            if self.storage.get_verdict(self.round_id, self.id, issuer) is not None:
                continue
            try:
                share = self.channel.unpackage(message, sender=issuer)
            except DecryptionError as e:
                self.log.warn(f"Participant {self.id} could not open the share from {issuer}: {e}")
                self._complain(accused=issuer, reason=ComplaintReason.UNDECRYPTABLE_SHARE)
                self._record_verdict(issuer=issuer, verdict=Verdict.INVALID)
                verdicts[issuer] = Verdict.INVALID
                continue

            commitment = self.storage.get_commitment(self.round_id, issuer)
            if commitment is None or share.x != self.id:
                verdict = Verdict.INVALID
            else:
                verdict = self.verifier.verify(sender=issuer, share=share, commitment=commitment)
            # a peer that sees this verdict must already see the complaint
            if verdict == Verdict.INVALID:
                self._complain(accused=issuer, reason=ComplaintReason.INVALID_SHARE)
            self._record_verdict(issuer=issuer, verdict=verdict, share=share)
            verdicts[issuer] = verdict

        for issuer in sorted(self.storage.get_commitments(self.round_id)):
            if issuer == self.id or issuer in self._pending_packages:
                continue
            if self.storage.get_verdict(self.round_id, self.id, issuer) is not None:
                continue
            self.log.warn(f"Participant {self.id} received no share from committed issuer {issuer}")
            self._complain(accused=issuer, reason=ComplaintReason.MISSING_SHARE)
            self._record_verdict(issuer=issuer, verdict=Verdict.INVALID)
            verdicts[issuer] = Verdict.INVALID

        self._advance(RoundPhase.SHARES_VERIFIED)
        return verdicts

    def _record_verdict(self, issuer: ParticipantId, verdict: Verdict, share: Optional[Share] = None) -> None:
        if verdict == Verdict.VALID:
            self.storage.store_share(self.round_id, issuer, share)
        self.storage.store_verdict(self.round_id, verifier=self.id, issuer=issuer, verdict=verdict)
        record = ShareVerificationRecord(round_id=self.round_id, sender=self.id, issuer=issuer, verdict=verdict)
        self.broadcast_log.append(record.to_dict())

    def _verdicts_complete(self) -> bool:
        verdicts = self.storage.get_verdicts(self.round_id)
        issuers = self.storage.get_commitments(self.round_id)
        return all((verifier, issuer) in verdicts
                   for verifier in issuers
                   for issuer in issuers)

    def qualified(self) -> Tuple[ParticipantId, ...]:
        accused = self.complaints.accused()
        received = self.storage.get_shares(self.round_id)
        return tuple(sorted(issuer for issuer in received if issuer not in accused))

    def finalize(self) -> FinalShare:
        self._require_phase(RoundPhase.SHARES_VERIFIED)
        # complaints filed by peers must be visible before QUAL is fixed; a peer may spend
        # a whole timeout waiting on a withheld share before it publishes its verdicts
        self._wait(self._verdicts_complete,
                   description="share verdicts",
                   allow_quorum=True,
                   timeout=2 * self.config.replication_timeout)

        qualified = self.qualified()
        if len(qualified) < self.config.required_issuers:
            raise InsufficientShares(f"Participant {self.id} has {len(qualified)} qualified issuers "
                                     f"{list(qualified)}; {self.config.required_issuers} are required "
                                     f"under the '{self.config.completion_policy.value}' policy")

        final_share = self.aggregator.finalize(received_shares=self.storage.get_shares(self.round_id),
                                               qualified=qualified)
        self.storage.store_final_share(self.round_id, final_share)
        self._advance(RoundPhase.FINAL_SHARE_COMPUTED)
        self.log.info(f"Participant {self.id} computed its final share over QUAL={list(qualified)}")
        return final_share

    @property
    def final_share(self) -> Optional[FinalShare]:
        return self.storage.get_final_share(self.round_id)

    def sign(self, message: Union[bytes, str]) -> PartialSignature:
        if self.phase != RoundPhase.FINAL_SHARE_COMPUTED:
            raise NoFinalShare(f"Participant {self.id} has no final share (phase {self.phase.name})")
        return self.signer.sign(self.final_share, message)

    def run(self, message: Optional[Union[bytes, str]] = None) -> Union[FinalShare, PartialSignature]:
        """Drives the whole round; marks it FAILED and re-raises on any error."""
        try:
            self.generate_polynomial()
            self.publish_commitment()
            self.await_commitments()
            self.distribute_shares()
            self.await_shares()
            self.verify_shares()
            final_share = self.finalize()
            if message is None:
                return final_share
            return self.sign(message)
        except Exception as e:
            self._fail(e)
            raise

    def abort(self, reason: str = "aborted by caller") -> None:
        self.cancel_event.set()
        self._fail(PhaseError(reason))

    def status(self) -> ParticipantState:
        return ParticipantState(participant_id=self.id,
                                round_id=self.round_id,
                                phase=self.phase,
                                commitments_received=tuple(sorted(self.storage.get_commitments(self.round_id))),
                                shares_received=tuple(sorted(self.storage.get_shares(self.round_id))),
                                complaints=self.complaints.count(),
                                qualified=self.qualified(),
                                error=self.error)

    #
    # Public material
    #

    def qualified_commitments(self) -> List[Commitment]:
        qualified = self.final_share.qualified if self.final_share else self.qualified()
        return [self.storage.get_commitment(self.round_id, issuer) for issuer in qualified]

    def public_share_point(self, participant_id: Optional[int] = None) -> Point:
        participant_id = self.id if participant_id is None else participant_id
        return self.scheme.public_share_point(self.qualified_commitments(), participant_id)

    def group_public_key(self) -> Point:
        return self.scheme.group_public_key(self.qualified_commitments())

    #
    # Log
    #

    def sync(self) -> int:
        """Consumes new log records; returns how many were dispatched."""
        dispatched = 0
        for handle, raw_record in self.broadcast_log.iterate(start=self._cursor):
            self._cursor = handle + 1
            try:
                record = parse_record(raw_record)
            except InvalidRecord as e:
                self.log.warn(f"Participant {self.id} skipped malformed record #{handle}: {e}")
                continue
            if record.round_id != self.round_id:
                continue
            if record.sender not in self.config.participants:
                self.log.warn(f"Participant {self.id} skipped record #{handle} from non-member {record.sender}")
                continue
            self._handlers[record.type](record)
            dispatched += 1
        return dispatched

    def _peer_joined(self, peer: str) -> None:
        if peer != self.peer_name:
            self.log.debug(f"Participant {self.id} saw {peer} join the log")

    def _complain(self, accused: ParticipantId, reason: str) -> bool:
        complaint = Complaint(accuser=self.id, accused=accused, reason=reason, timestamp=maya.now().epoch)
        if complaint.key in self.complaints:
            return False
        self.complaints.file(complaint)
        record = ComplaintRecord.from_complaint(round_id=self.round_id, complaint=complaint)
        self.broadcast_log.append(record.to_dict())
        return True

    def _handle_commitment(self, record: PolynomialCommitmentRecord) -> None:
        issuer = record.sender
        try:
            commitment = record.commitment(self.context)
        except InvalidRecord as e:
            self.log.warn(str(e))
            if issuer != self.id:
                self._complain(accused=issuer, reason=ComplaintReason.INVALID_COMMITMENT)
            return

        existing = self.storage.get_commitment(self.round_id, issuer)
        if existing is not None:
            channel_key = bytes(self.storage.get_channel_key(self.round_id, issuer))
            if existing != commitment or channel_key != record.channel_public_key:
                if issuer != self.id:
                    self._complain(accused=issuer, reason=ComplaintReason.CONFLICTING_COMMITMENT)
            return

        if len(commitment) != self.config.threshold:
            self.log.warn(f"Commitment from {issuer} has {len(commitment)} points; "
                          f"expected {self.config.threshold}")
            if issuer != self.id:
                self._complain(accused=issuer, reason=ComplaintReason.INVALID_COMMITMENT)
            return

        self.storage.store_commitment(self.round_id, issuer, commitment)
        self.storage.store_channel_key(self.round_id, issuer, load_channel_public_key(record.channel_public_key))
        if issuer == self.id:
            return

        if self.share_set is not None and self.phase != RoundPhase.FAILED:
            self._send_share(issuer)

        if self.commitment is not None and self._correlated(commitment, self.commitment):
            self._complain(accused=issuer, reason=ComplaintReason.CORRELATED_COEFFICIENTS)

        if not self._randomness_checks_out(record):
            self._complain(accused=issuer, reason=ComplaintReason.UNVERIFIABLE_RANDOMNESS)

    @staticmethod
    def _correlated(theirs: Commitment, ours: Commitment) -> bool:
        return len(ours) > 1 and theirs.points[1:] == ours.points[1:]

    def _randomness_checks_out(self, record: PolynomialCommitmentRecord) -> bool:
        proof = record.randomness_proof
        if proof is None:
            return self.config.randomness != RoundConfiguration.ORACLE_RANDOMNESS
        self.storage.store_randomness_proof(self.round_id, record.sender, proof)
        if self.oracle is None:
            # nothing to check against
            return True
        if len(proof.random_values) != self.config.threshold - 1:
            return False
        return self.oracle.verify(proof)

    def _handle_share_distribution(self, record: ShareDistributionRecord) -> None:
        if record.recipient != self.id:
            return
        message = ChannelMessage(sender=record.sender, recipient=record.recipient, ciphertext=record.ciphertext)
        existing = self._pending_packages.get(record.sender)
        if existing is None:
            self._pending_packages[record.sender] = message
        elif existing != message:
            self.log.warn(f"Participant {self.id} ignored a second, different share from {record.sender}")

    def _handle_share_verification(self, record: ShareVerificationRecord) -> None:
        self.storage.store_verdict(self.round_id,
                                   verifier=record.sender,
                                   issuer=record.issuer,
                                   verdict=record.verdict)

    def _handle_complaint(self, record: ComplaintRecord) -> None:
        try:
            self.complaints.file(record.to_complaint())
        except ValueError as e:
            self.log.warn(f"Participant {self.id} ignored complaint from {record.sender}: {e}")
