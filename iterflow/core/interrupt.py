"""Cooperative external interrupt of a run."""

from __future__ import annotations

import signal
import threading
from contextlib import contextmanager
from typing import Iterator

from ..logging import get_logger

logger = get_logger(__name__)


class InterruptFlag:
    """Thread-safe stop request polled by the termination policy.

    Setting the flag never interrupts an iteration in progress; the run stops
    at the next iteration boundary.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def set(self) -> None:
        self._event.set()

    def clear(self) -> None:
        self._event.clear()

    def is_set(self) -> bool:
        return self._event.is_set()

    def __repr__(self) -> str:
        return f"InterruptFlag(set={self.is_set()})"


@contextmanager
def sigint_sets(flag: InterruptFlag) -> Iterator[None]:
    """Route SIGINT (Ctrl-C) to ``flag`` for the duration of the block.

    Signal handlers can only be installed from the main thread; elsewhere the
    block runs unchanged.
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not in main thread; SIGINT handler not installed.")
        yield
        return

    def _handler(signum, frame) -> None:
        logger.warning("Interrupt received; stopping after the current iteration.")
        flag.set()

    previous = signal.signal(signal.SIGINT, _handler)
    try:
        yield
    finally:
        signal.signal(signal.SIGINT, previous)


__all__ = ["InterruptFlag", "sigint_sets"]
