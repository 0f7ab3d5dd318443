from typing import Dict, Iterable, Optional

import pytest
from click.testing import CliRunner
from eth_keys import keys

from feldspar.config.rounds import RoundConfiguration
from feldspar.crypto.commitments import FeldmanCommitmentScheme
from feldspar.crypto.context import CryptoContext
from feldspar.crypto.polynomial import Polynomial
from feldspar.crypto.randomness import SystemRandomness
from feldspar.dkg.models import CompletionPolicy
from feldspar.dkg.participant import Participant
from feldspar.network.log import InMemoryBroadcastLog
from feldspar.utilities.logging import Logger
from feldspar.utilities.oracles import LocalRandomnessOracle
from tests.constants import (
    MOCK_ORACLE_SIGNING_KEY,
    NUMBER_OF_PARTICIPANTS,
    TEST_POLL_INTERVAL,
    TEST_REPLICATION_TIMEOUT,
    TEST_ROUND_ID,
    THRESHOLD,
)

test_logger = Logger("test-logger")


#
# Crypto
#

@pytest.fixture(scope='session')
def context():
    return CryptoContext.secp256k1()


@pytest.fixture(scope='session')
def scheme(context):
    return FeldmanCommitmentScheme(context=context)


@pytest.fixture(scope='session')
def system_randomness(context):
    return SystemRandomness(context=context)


@pytest.fixture(scope='function')
def polynomial(context, system_randomness):
    return Polynomial.generate(threshold=THRESHOLD, randomness=system_randomness, context=context)


#
# Oracle
#

@pytest.fixture(scope='session')
def oracle_signing_key():
    return keys.PrivateKey(MOCK_ORACLE_SIGNING_KEY)


@pytest.fixture(scope='function')
def local_oracle(oracle_signing_key):
    return LocalRandomnessOracle(signing_key=oracle_signing_key)


#
# Rounds
#

@pytest.fixture(scope='function')
def round_config_factory(tmp_path):
    def _make(**overrides) -> RoundConfiguration:
        parameters = dict(threshold=THRESHOLD,
                          participants=range(1, NUMBER_OF_PARTICIPANTS + 1),
                          completion_policy=CompletionPolicy.ALL,
                          replication_timeout=TEST_REPLICATION_TIMEOUT,
                          poll_interval=TEST_POLL_INTERVAL,
                          config_root=tmp_path)
        parameters.update(overrides)
        return RoundConfiguration(**parameters)
    return _make


@pytest.fixture(scope='function')
def round_config(round_config_factory):
    return round_config_factory()


@pytest.fixture(scope='function')
def broadcast_log():
    return InMemoryBroadcastLog(name=TEST_ROUND_ID)


@pytest.fixture(scope='function')
def participant_factory(broadcast_log):
    def _make(config: RoundConfiguration,
              participant_ids: Optional[Iterable[int]] = None,
              participant_class=Participant,
              **kwargs) -> Dict[int, Participant]:
        participant_ids = config.participant_ids if participant_ids is None else participant_ids
        kwargs.setdefault('broadcast_log', broadcast_log)
        kwargs.setdefault('round_id', TEST_ROUND_ID)
        return {pid: participant_class(participant_id=pid, config=config, **kwargs) for pid in participant_ids}
    return _make


@pytest.fixture(scope='function')
def participants(round_config, participant_factory):
    return participant_factory(round_config)


#
# CLI
#

@pytest.fixture(scope='function')
def click_runner():
    runner = CliRunner()
    yield runner
