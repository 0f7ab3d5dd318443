import pytest

from feldspar.crypto.channel import ChannelKeypair
from feldspar.datastore.dkg import ParticipantState, RoundStorage
from feldspar.dkg.models import FinalShare, RoundPhase, Share, Verdict
from tests.constants import OTHER_ROUND_ID, TEST_ROUND_ID


@pytest.fixture(scope='function')
def storage():
    return RoundStorage()


def test_commitments(storage, scheme, polynomial):
    commitment = scheme.commit(polynomial)
    assert storage.get_commitment(TEST_ROUND_ID, 1) is None

    storage.store_commitment(TEST_ROUND_ID, 1, commitment)
    assert storage.get_commitment(TEST_ROUND_ID, 1) == commitment
    assert storage.get_commitments(TEST_ROUND_ID) == {1: commitment}
    assert storage.get_commitments(OTHER_ROUND_ID) == {}

    with pytest.raises(ValueError):
        storage.store_commitment(TEST_ROUND_ID, 1, commitment)


def test_channel_keys(storage):
    public_key = ChannelKeypair().public_key
    storage.store_channel_key(TEST_ROUND_ID, 2, public_key)
    assert storage.get_channel_key(TEST_ROUND_ID, 2) == public_key
    with pytest.raises(KeyError):
        storage.get_channel_key(TEST_ROUND_ID, 3)


def test_first_share_wins(storage):
    assert storage.store_share(TEST_ROUND_ID, 1, Share(x=2, y=10))
    assert not storage.store_share(TEST_ROUND_ID, 1, Share(x=2, y=11))
    assert storage.get_share(TEST_ROUND_ID, 1) == Share(x=2, y=10)
    assert storage.get_shares(TEST_ROUND_ID) == {1: Share(x=2, y=10)}
    assert storage.get_share(OTHER_ROUND_ID, 1) is None


def test_verdicts(storage):
    storage.store_verdict(TEST_ROUND_ID, verifier=2, issuer=1, verdict=Verdict.INVALID)
    storage.store_verdict(TEST_ROUND_ID, verifier=3, issuer=1, verdict=Verdict.VALID)
    assert storage.get_verdict(TEST_ROUND_ID, 2, 1) == Verdict.INVALID
    assert storage.get_verdict(TEST_ROUND_ID, 1, 2) is None
    assert storage.get_verdicts(TEST_ROUND_ID) == {(2, 1): Verdict.INVALID, (3, 1): Verdict.VALID}


def test_final_share_is_terminal(storage):
    final_share = FinalShare(participant_id=1, value=5, qualified=(1, 2))
    assert storage.get_final_share(TEST_ROUND_ID) is None
    storage.store_final_share(TEST_ROUND_ID, final_share)
    assert storage.get_final_share(TEST_ROUND_ID) == final_share
    with pytest.raises(ValueError):
        storage.store_final_share(TEST_ROUND_ID, final_share)


def test_clear_only_affects_one_round(storage):
    storage.store_share(TEST_ROUND_ID, 1, Share(x=2, y=10))
    storage.store_share(OTHER_ROUND_ID, 1, Share(x=2, y=10))
    storage.store_final_share(TEST_ROUND_ID, FinalShare(participant_id=2, value=10, qualified=(1,)))

    storage.clear(TEST_ROUND_ID)
    assert storage.get_shares(TEST_ROUND_ID) == {}
    assert storage.get_final_share(TEST_ROUND_ID) is None
    assert storage.get_shares(OTHER_ROUND_ID) == {1: Share(x=2, y=10)}


def test_participant_state_flags():
    state = ParticipantState(participant_id=1,
                             round_id=TEST_ROUND_ID,
                             phase=RoundPhase.FAILED,
                             commitments_received=(),
                             shares_received=(),
                             complaints=0,
                             qualified=(),
                             error="boom")
    assert state.failed
    assert not state.complete
