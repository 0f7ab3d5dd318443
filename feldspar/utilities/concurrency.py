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


import sys
import time
from threading import Event, Lock, Thread
from typing import Any, Callable, Dict, Hashable, Optional

from feldspar.exceptions import ReplicationTimeout, RoundCancelled


class FutureResult:

    def __init__(self, value=None, exc_info=None):
        self.value = value
        self.exc_info = exc_info


class Future:
    """
    A simplified future object. Can be set to some value (all further sets are ignored),
    can be waited on.
    """

    def __init__(self):
        self._lock = Lock()
        self._set_event = Event()
        self._value = None

    def _set(self, value):
        with self._lock:
            if not self._set_event.is_set():
                self._value = value
                self._set_event.set()

    def set(self, value):
        self._set(FutureResult(value=value))

    def set_exception(self):
        exc_info = sys.exc_info()
        self._set(FutureResult(exc_info=exc_info))

    def is_set(self):
        return self._set_event.is_set()

    def get(self, timeout: Optional[float] = None):
        if not self._set_event.wait(timeout=timeout):
            raise ReplicationTimeout(f"No result after {timeout} seconds")

        if self._value.exc_info is not None:
            (exc_type, exc_value, exc_traceback) = self._value.exc_info
            if exc_value is None:
                exc_value = exc_type()
            if exc_value.__traceback__ is not exc_traceback:
                raise exc_value.with_traceback(exc_traceback)
            raise exc_value
        else:
            return self._value.value


def wait_for(condition: Callable[[], bool],
             timeout: float,
             interval: float,
             cancel_event: Optional[Event] = None,
             description: str = "condition") -> None:
    """
    Polls `condition` every `interval` seconds until it holds.

    Raises ReplicationTimeout once `timeout` seconds have passed, and RoundCancelled as soon
    as `cancel_event` is set.  The condition is always evaluated at least once.
    """
    if timeout < 0 or interval <= 0:
        raise ValueError(f"Invalid wait parameters: timeout={timeout}, interval={interval}")

    cancel_event = cancel_event or Event()
    deadline = time.monotonic() + timeout
    while True:
        if cancel_event.is_set():
            raise RoundCancelled(f"Cancelled while waiting for {description}")
        if condition():
            return
        remaining = deadline - time.monotonic()
        if remaining <= 0:
            raise ReplicationTimeout(f"Timed out after {timeout} seconds waiting for {description}")
        # wakes early on cancellation
        cancel_event.wait(timeout=min(interval, remaining))


def run_in_threads(workers: Dict[Hashable, Callable[[], Any]],
                   timeout: Optional[float] = None) -> Dict[Hashable, Future]:
    """Runs each worker in its own thread and returns a future per key once all have finished."""
    futures = {key: Future() for key in workers}

    def _run(key, worker):
        try:
            futures[key].set(worker())
        except Exception:
            futures[key].set_exception()

    threads = [Thread(target=_run, args=(key, worker), name=f"worker-{key}", daemon=True)
               for key, worker in workers.items()]
    for thread in threads:
        thread.start()

    deadline = None if timeout is None else time.monotonic() + timeout
    for thread in threads:
        remaining = None if deadline is None else max(0.0, deadline - time.monotonic())
        thread.join(timeout=remaining)
    return futures
