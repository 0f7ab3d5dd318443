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

import json
from abc import ABC, abstractmethod
from threading import RLock
from typing import Callable, Iterator, List, Set, Tuple

from feldspar.exceptions import InvalidRecord
from feldspar.utilities.logging import Logger

RecordHandle = int
PeerCallback = Callable[[str], None]


class BroadcastLog(ABC):
    """
    Replicated append-only log shared by every participant of a round.

    Readers see records in a single total order, may replay from any position, and
    receive copies: nothing appended by one participant shares identity with what
    another one reads.
    """

    @abstractmethod
    def append(self, record: dict) -> RecordHandle:
        raise NotImplementedError

    @abstractmethod
    def iterate(self, start: RecordHandle = 0) -> Iterator[Tuple[RecordHandle, dict]]:
        """Yields (handle, record) pairs from `start` onwards."""
        raise NotImplementedError

    @abstractmethod
    def on_peer_joined(self, callback: PeerCallback) -> None:
        raise NotImplementedError

    @abstractmethod
    def join(self, peer: str) -> None:
        raise NotImplementedError


class InMemoryBroadcastLog(BroadcastLog):
    """Thread-safe, process-local log used by tests and simulations."""

    def __init__(self, name: str = "in-memory"):
        self.name = name
        self.log = Logger(self.__class__.__name__)
        self.__entries: List[str] = list()
        self.__peers: Set[str] = set()
        self.__callbacks: List[PeerCallback] = list()
        self.__lock = RLock()

    def __len__(self) -> int:
        return len(self.__entries)

    def __repr__(self):
        return f"{self.__class__.__name__}({self.name}, records={len(self)})"

    @property
    def peers(self) -> Set[str]:
        with self.__lock:
            return set(self.__peers)

    def append(self, record: dict) -> RecordHandle:
        if not isinstance(record, dict):
            raise InvalidRecord(f"Log records are JSON objects, got {type(record).__name__}")
        try:
            entry = json.dumps(record, sort_keys=True)
        except (TypeError, ValueError) as e:
            raise InvalidRecord(f"Log records must be JSON serializable: {e}") from e
        with self.__lock:
            self.__entries.append(entry)
            handle = len(self.__entries) - 1
        self.log.debug(f"Appended record #{handle} ({record.get('type')}) to {self.name}")
        return handle

    def iterate(self, start: RecordHandle = 0) -> Iterator[Tuple[RecordHandle, dict]]:
        if start < 0:
            raise ValueError(f"Log positions are non-negative, got {start}")
        with self.__lock:
            entries = self.__entries[start:]
        for offset, entry in enumerate(entries):
            yield start + offset, json.loads(entry)

    def on_peer_joined(self, callback: PeerCallback) -> None:
        with self.__lock:
            self.__callbacks.append(callback)

    def join(self, peer: str) -> None:
        with self.__lock:
            if peer in self.__peers:
                return
            self.__peers.add(peer)
            callbacks = list(self.__callbacks)
        self.log.debug(f"Peer {peer} joined {self.name}")
        for callback in callbacks:
            callback(peer)
