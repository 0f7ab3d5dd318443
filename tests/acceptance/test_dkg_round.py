from itertools import combinations
from threading import Timer

import pytest

from feldspar.config.rounds import RoundConfiguration
from feldspar.dkg.aggregation import reconstruct_secret
from feldspar.dkg.models import CompletionPolicy, ComplaintReason, PartialSignature, RoundPhase
from feldspar.dkg.simulation import MisbehavingParticipant, simulate_round
from feldspar.exceptions import InsufficientShares, ReplicationTimeout, RoundCancelled
from tests.constants import SHORT_REPLICATION_TIMEOUT, TEST_MESSAGE


def run_stepwise(participants):
    """Drives every participant through the round in lockstep on a single thread."""
    steps = ('generate_polynomial', 'publish_commitment', 'await_commitments',
             'distribute_shares', 'await_shares', 'verify_shares', 'finalize')
    for step in steps:
        for participant in participants.values():
            getattr(participant, step)()


def test_honest_round_stepwise(context, participants):
    run_stepwise(participants)

    for participant in participants.values():
        assert participant.phase == RoundPhase.FINAL_SHARE_COMPUTED
        assert participant.complaints.count() == 0
        assert participant.final_share.qualified == (1, 2, 3)
        assert participant.status().complete

    # everyone derives the same public material
    group_keys = {participant.group_public_key() for participant in participants.values()}
    assert len(group_keys) == 1

    # each partial signature verifies against the signer's public share point, as anyone can compute it
    observer = participants[3]
    for participant_id, participant in participants.items():
        partial = participant.sign(TEST_MESSAGE)
        assert isinstance(partial, PartialSignature)
        assert observer.signer.verify(partial, observer.public_share_point(participant_id))
        assert not observer.signer.verify(partial, observer.public_share_point(participant_id % 3 + 1))


def test_final_shares_reconstruct_the_group_key(context, participants):
    run_stepwise(participants)
    group_public_key = participants[1].group_public_key()
    final_shares = [participant.final_share for participant in participants.values()]

    for subset in combinations(final_shares, 2):
        secret = reconstruct_secret(subset, threshold=2, context=context)
        assert context.base_multiply(secret) == group_public_key

    # a single share reveals nothing
    with pytest.raises(InsufficientShares):
        reconstruct_secret(final_shares[:1], threshold=2, context=context)


def test_honest_round_threaded(round_config):
    result = simulate_round(round_config, message=TEST_MESSAGE)

    assert not result.errors
    assert not result.complaints()
    assert set(result.partial_signatures) == {1, 2, 3}
    for participant_id, partial in result.partial_signatures.items():
        participant = result.participants[participant_id]
        assert participant.signer.verify(partial, participant.public_share_point())


def test_corrupted_share_is_excluded_under_quorum(round_config_factory):
    config = round_config_factory(completion_policy=CompletionPolicy.QUORUM, quorum=2)
    result = simulate_round(config, message=TEST_MESSAGE, corruptions=[(2, 1)])

    complaint, = result.complaints()
    assert complaint.accuser == 1
    assert complaint.accused == 2
    assert complaint.reason == ComplaintReason.INVALID_SHARE

    assert not result.errors
    for participant in result.participants.values():
        assert participant.final_share.qualified == (1, 3)

    victim = result.participants[1]
    assert victim.signer.verify(result.partial_signatures[1], victim.public_share_point())

    # every participant agrees on the group key built from the qualified issuers
    assert len({p.group_public_key() for p in result.participants.values()}) == 1


def test_corrupted_share_fails_the_round_when_everyone_is_required(round_config):
    result = simulate_round(round_config, corruptions=[(2, 1)])

    assert set(result.errors) == {1, 2, 3}
    assert all(isinstance(error, InsufficientShares) for error in result.errors.values())
    assert all(p.phase == RoundPhase.FAILED for p in result.participants.values())



def test_withheld_share_is_complained_about_under_quorum(round_config_factory, participant_factory):
    config = round_config_factory(completion_policy=CompletionPolicy.QUORUM, quorum=2,
                                  replication_timeout=SHORT_REPLICATION_TIMEOUT)
    participants = participant_factory(config, participant_ids=[1, 2])
    participants.update(participant_factory(config,
                                            participant_ids=[3],
                                            participant_class=MisbehavingParticipant,
                                            withhold_recipients=[1]))
    run_stepwise(participants)

    for participant in participants.values():
        complaint, = participant.complaints
        assert complaint.accuser == 1
        assert complaint.accused == 3
        assert complaint.reason == ComplaintReason.MISSING_SHARE
        assert participant.final_share.qualified == (1, 2)

    # the withholder is evicted everywhere, not only where its share went missing
    assert len({p.group_public_key() for p in participants.values()}) == 1
    bystander = participants[2]
    assert bystander.storage.get_share(bystander.round_id, 3) is not None


def test_withheld_share_is_excluded_in_a_threaded_round(round_config_factory):
    config = round_config_factory(completion_policy=CompletionPolicy.QUORUM, quorum=2,
                                  replication_timeout=SHORT_REPLICATION_TIMEOUT)
    result = simulate_round(config, message=TEST_MESSAGE, withholdings=[(3, 1)])

    assert not result.errors
    complaint, = result.complaints()
    assert (complaint.accuser, complaint.accused) == (1, 3)
    assert complaint.reason == ComplaintReason.MISSING_SHARE
    assert {p.final_share.qualified for p in result.participants.values()} == {(1, 2)}
    assert len({p.group_public_key() for p in result.participants.values()}) == 1


def test_withheld_share_fails_the_round_when_everyone_is_required(round_config_factory):
    config = round_config_factory(replication_timeout=SHORT_REPLICATION_TIMEOUT)
    result = simulate_round(config, withholdings=[(3, 1)])

    assert isinstance(result.errors[1], ReplicationTimeout)
    assert all(p.phase == RoundPhase.FAILED for p in result.participants.values())

def test_oracle_seeded_round(round_config_factory, local_oracle):
    config = round_config_factory(randomness=RoundConfiguration.ORACLE_RANDOMNESS)
    result = simulate_round(config, oracle=local_oracle)

    assert not result.errors
    assert not result.complaints()
    for participant_id, participant in result.participants.items():
        assert participant.randomness.last_proof.verified
        for issuer in (1, 2, 3):
            if issuer != participant_id:
                assert participant.storage.get_randomness_proof(participant.round_id, issuer) is not None


def test_missing_peers_time_out(round_config_factory, participant_factory):
    config = round_config_factory(replication_timeout=SHORT_REPLICATION_TIMEOUT)
    loner = participant_factory(config, participant_ids=[1])[1]

    with pytest.raises(ReplicationTimeout):
        loner.run()
    assert loner.phase == RoundPhase.FAILED
    assert "ReplicationTimeout" in loner.status().error


def test_missing_peers_under_quorum_are_insufficient(round_config_factory, participant_factory):
    config = round_config_factory(replication_timeout=SHORT_REPLICATION_TIMEOUT,
                                  completion_policy=CompletionPolicy.QUORUM)
    loner = participant_factory(config, participant_ids=[1])[1]

    with pytest.raises(InsufficientShares):
        loner.run()
    assert loner.phase == RoundPhase.FAILED


def test_waiting_participant_can_be_aborted(round_config, participant_factory):
    loner = participant_factory(round_config, participant_ids=[1])[1]
    timer = Timer(0.1, loner.abort)
    timer.start()
    try:
        with pytest.raises(RoundCancelled):
            loner.run()
    finally:
        timer.join()
    assert loner.phase == RoundPhase.FAILED
