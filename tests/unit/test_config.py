import json

import pytest

from feldspar.config.base import BaseConfiguration
from feldspar.config.rounds import RoundConfiguration
from feldspar.dkg.models import CompletionPolicy
from feldspar.exceptions import ConfigurationError
from feldspar.utilities.oracles import HTTPRandomnessOracle
from tests.constants import MOCK_ORACLE_URL


def test_round_configuration_defaults(round_config):
    assert round_config.n == 3
    assert round_config.participant_ids == [1, 2, 3]
    assert round_config.completion_policy == CompletionPolicy.ALL
    assert round_config.quorum == round_config.threshold
    assert round_config.required_issuers == 3
    assert round_config.randomness == RoundConfiguration.SYSTEM_RANDOMNESS
    assert round_config.produce_oracle() is None


def test_quorum_policy(round_config_factory):
    config = round_config_factory(completion_policy="quorum", quorum=2)
    assert config.completion_policy == CompletionPolicy.QUORUM
    assert config.required_issuers == 2


@pytest.mark.parametrize('overrides', [
    dict(threshold=0),
    dict(threshold=True),
    dict(threshold=4),
    dict(participants=[1, 2, 2]),
    dict(participants=[0, 1, 2]),
    dict(participants=["1", 2, 3]),
    dict(quorum=1),
    dict(quorum=4),
    dict(completion_policy="most"),
    dict(replication_timeout=0),
    dict(poll_interval=-1),
    dict(randomness="dice"),
    dict(oracle_url=MOCK_ORACLE_URL),
    dict(oracle_url=MOCK_ORACLE_URL, oracle_public_key="zz"),
    dict(oracle_url=MOCK_ORACLE_URL, oracle_public_key="ab" * 33),
])
def test_invalid_round_configurations(round_config_factory, overrides):
    with pytest.raises(ConfigurationError):
        round_config_factory(**overrides)


def test_oracle_configuration(round_config_factory, local_oracle):
    public_key = local_oracle.public_key.to_bytes().hex()
    config = round_config_factory(randomness=RoundConfiguration.ORACLE_RANDOMNESS,
                                  oracle_url=MOCK_ORACLE_URL,
                                  oracle_public_key=public_key)
    oracle = config.produce_oracle()
    assert isinstance(oracle, HTTPRandomnessOracle)
    assert oracle.api_url == MOCK_ORACLE_URL
    assert oracle.public_key == local_oracle.public_key


def test_oracle_url_from_environment(monkeypatch, round_config_factory, local_oracle):
    monkeypatch.setenv("FELDSPAR_ORACLE_URL", MOCK_ORACLE_URL)
    config = round_config_factory(oracle_public_key=local_oracle.public_key.to_bytes().hex())
    assert config.oracle_url == MOCK_ORACLE_URL

    monkeypatch.delenv("FELDSPAR_ORACLE_URL")
    assert round_config_factory().oracle_url is None


def test_round_configuration_file_roundtrip(round_config_factory):
    config = round_config_factory(completion_policy=CompletionPolicy.QUORUM, quorum=2)
    filepath = config.to_configuration_file()
    assert filepath == config.config_root / "round.json"

    contents = json.loads(filepath.read_text())
    assert contents['version'] == RoundConfiguration.VERSION
    assert contents['completion_policy'] == "quorum"

    with pytest.raises(FileExistsError):
        config.to_configuration_file(override=False)

    restored = RoundConfiguration.from_configuration_file(filepath=filepath)
    assert restored.serialize() == config.serialize()
    assert restored.required_issuers == 2
    assert restored.filepath == filepath


def test_configuration_versions_are_checked(round_config):
    filepath = round_config.to_configuration_file()
    contents = json.loads(filepath.read_text())
    contents['version'] = RoundConfiguration.VERSION + 1
    filepath.write_text(json.dumps(contents))

    with pytest.raises(BaseConfiguration.OldVersion) as error:
        RoundConfiguration.from_configuration_file(filepath=filepath)
    assert error.value.version == RoundConfiguration.VERSION + 1

    filepath.write_text("{ not json")
    with pytest.raises(ConfigurationError):
        RoundConfiguration.from_configuration_file(filepath=filepath)


def test_configuration_update(round_config):
    filepath = round_config.to_configuration_file()
    round_config.update(replication_timeout=5)
    assert RoundConfiguration.from_configuration_file(filepath=filepath).replication_timeout == 5

    with pytest.raises(ConfigurationError):
        round_config.update(bananas=3)
    with pytest.raises(ConfigurationError):
        round_config.update(threshold=10)


def test_configuration_implementation():
    with pytest.raises(TypeError):
        _bad_item = BaseConfiguration()

    class NoNameItem(BaseConfiguration):
        VERSION = 1

        def static_payload(self) -> dict:
            return super().static_payload()

    with pytest.raises(TypeError):
        _bad_item = NoNameItem()
