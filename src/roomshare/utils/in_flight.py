"""Single-slot in-flight tokens for lifecycle actions.

A mutating action on a target may have at most one outstanding backend call.
A second trigger with the same key is rejected until the first resolves,
whether it succeeded or failed.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Hashable, Iterator, Set, Tuple

from roomshare.core.exceptions import ActionInFlightError

logger = logging.getLogger(__name__)


class InFlightGuard:
    """Tracks which (action, target) keys currently have a call outstanding."""

    def __init__(self):
        self._keys: Set[Tuple[Hashable, ...]] = set()
        self._lock = threading.Lock()

    @contextmanager
    def claim(self, *key: Hashable) -> Iterator[None]:
        """Hold the slot for ``key`` for the duration of the block.

        Raises:
            ActionInFlightError: If the key is already claimed.
        """
        with self._lock:
            if key in self._keys:
                logger.warning("Rejected duplicate in-flight action: %s", key)
                raise ActionInFlightError(key)
            self._keys.add(key)
        try:
            yield
        finally:
            with self._lock:
                self._keys.discard(key)

    def is_in_flight(self, *key: Hashable) -> bool:
        with self._lock:
            return key in self._keys
