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

import os
from pathlib import Path
from typing import Iterable, List, Optional, Union

from feldspar.config.base import BaseConfiguration
from feldspar.config.constants import (
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REPLICATION_TIMEOUT,
    FELDSPAR_ENVVAR_ORACLE_URL,
)
from feldspar.crypto.constants import UNCOMPRESSED_POINT_SIZE
from feldspar.dkg.models import CompletionPolicy
from feldspar.types import ParticipantId
from feldspar.utilities.oracles import HTTPRandomnessOracle


class RoundConfiguration(BaseConfiguration):
    """Parameters every participant of a round must agree on."""

    NAME = 'round'
    VERSION = 1

    SYSTEM_RANDOMNESS = 'system'
    ORACLE_RANDOMNESS = 'oracle'
    RANDOMNESS_SOURCES = (SYSTEM_RANDOMNESS, ORACLE_RANDOMNESS)

    def __init__(self,
                 threshold: int,
                 participants: Iterable[int],
                 completion_policy: Union[CompletionPolicy, str] = CompletionPolicy.ALL,
                 quorum: Optional[int] = None,
                 replication_timeout: float = DEFAULT_REPLICATION_TIMEOUT,
                 poll_interval: float = DEFAULT_POLL_INTERVAL,
                 randomness: str = SYSTEM_RANDOMNESS,
                 oracle_url: Optional[str] = None,
                 oracle_public_key: Optional[str] = None,
                 config_root: Optional[Path] = None,
                 filepath: Optional[Path] = None):

        super().__init__(config_root=config_root, filepath=filepath)

        self.threshold = threshold
        self.participants = list(participants)
        try:
            self.completion_policy = CompletionPolicy(completion_policy)
        except ValueError:
            raise self.ConfigurationError(f"Unknown completion policy '{completion_policy}'; "
                                          f"choose one of {[p.value for p in CompletionPolicy]}")
        self.quorum = quorum if quorum is not None else threshold
        self.replication_timeout = replication_timeout
        self.poll_interval = poll_interval
        self.randomness = randomness
        self.oracle_url = oracle_url or os.environ.get(FELDSPAR_ENVVAR_ORACLE_URL)
        self.oracle_public_key = oracle_public_key

        self.validate()

    def __repr__(self):
        return (f"{self.__class__.__name__}(t={self.threshold}, n={self.n}, "
                f"policy={self.completion_policy.value}, randomness={self.randomness})")

    @property
    def n(self) -> int:
        return len(self.participants)

    @property
    def participant_ids(self) -> List[ParticipantId]:
        return [ParticipantId(p) for p in sorted(self.participants)]

    @property
    def required_issuers(self) -> int:
        """Number of qualified issuers a participant needs before it may finalize."""
        if self.completion_policy == CompletionPolicy.ALL:
            return self.n
        return self.quorum

    def validate(self) -> None:
        if isinstance(self.threshold, bool) or not isinstance(self.threshold, int) or self.threshold < 1:
            raise self.ConfigurationError(f"Threshold must be a positive integer, got {self.threshold!r}")
        for participant in self.participants:
            if isinstance(participant, bool) or not isinstance(participant, int) or participant < 1:
                raise self.ConfigurationError(f"Participant ids are positive integers, got {participant!r}")
        if len(set(self.participants)) != len(self.participants):
            raise self.ConfigurationError(f"Participant ids must be unique: {self.participants}")
        if self.threshold > self.n:
            raise self.ConfigurationError(f"Threshold {self.threshold} exceeds the number of participants ({self.n})")
        if not self.threshold <= self.quorum <= self.n:
            raise self.ConfigurationError(f"Quorum must lie in [{self.threshold}, {self.n}], got {self.quorum}")
        if self.replication_timeout <= 0 or self.poll_interval <= 0:
            raise self.ConfigurationError("Replication timeout and poll interval must be positive")
        if self.randomness not in self.RANDOMNESS_SOURCES:
            raise self.ConfigurationError(f"Unknown randomness source '{self.randomness}'; "
                                          f"choose one of {self.RANDOMNESS_SOURCES}")
        if self.oracle_url and not self.oracle_public_key:
            raise self.ConfigurationError("An oracle URL requires the oracle's public key")
        if self.oracle_public_key:
            try:
                key_bytes = bytes.fromhex(self.oracle_public_key)
            except (TypeError, ValueError):
                raise self.ConfigurationError("Oracle public key must be hex")
            if len(key_bytes) != UNCOMPRESSED_POINT_SIZE:
                raise self.ConfigurationError(f"Oracle public key must be {UNCOMPRESSED_POINT_SIZE} bytes")

    def static_payload(self) -> dict:
        payload = dict(
            threshold=self.threshold,
            participants=list(self.participants),
            completion_policy=self.completion_policy.value,
            quorum=self.quorum,
            replication_timeout=self.replication_timeout,
            poll_interval=self.poll_interval,
            randomness=self.randomness,
            oracle_url=self.oracle_url,
            oracle_public_key=self.oracle_public_key,
        )
        return {**super().static_payload(), **payload}

    def produce_oracle(self) -> Optional[HTTPRandomnessOracle]:
        """The remote oracle this configuration points at, if any."""
        if not self.oracle_url:
            return None
        return HTTPRandomnessOracle(api_url=self.oracle_url,
                                    public_key=bytes.fromhex(self.oracle_public_key),
                                    timeout=self.replication_timeout)
