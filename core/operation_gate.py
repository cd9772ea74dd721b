# core/operation_gate.py

"""
Admits one persistence or bulk-import operation at a time per store.

A second request while one is in flight is rejected straight away rather than queued, so two
writes can never interleave.
"""

import logging
import threading
from contextlib import contextmanager
from typing import Iterator

logger = logging.getLogger(__name__)


class OperationBusyError(RuntimeError):
    def __init__(self, requested: str, running: str | None):
        self.requested = requested
        self.running = running
        super().__init__(
            f"Cannot start '{requested}' while '{running or 'another operation'}' is still running."
        )


class OperationGate:

    def __init__(self):
        self._lock = threading.Lock()
        self._running: str | None = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def running(self) -> str | None:
        return self._running

    @contextmanager
    def hold(self, operation: str) -> Iterator[None]:
        """
        Holds the gate for the duration of the `with` block.

        Args:
            operation (str): A short name for the operation, used in messages.

        Raises:
            OperationBusyError: If another operation already holds the gate.
        """
        if not self._lock.acquire(blocking=False):
            logger.warning("Rejected '%s': '%s' is in flight", operation, self._running)
            raise OperationBusyError(operation, self._running)

        self._running = operation

        try:
            yield

        finally:
            self._running = None
            self._lock.release()
