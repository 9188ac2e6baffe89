"""Cooperative cancellation for a single cancellation run."""

from __future__ import annotations

import logging
import signal
import threading
from types import FrameType
from typing import Any, Dict, Iterable, Optional

from .errors import UserTermination

logger = logging.getLogger(__name__)

INTERRUPT_SIGNALS = (signal.SIGINT, signal.SIGTERM)


class CancelToken:
    """Cancellation handle threaded through every network call and poll sleep."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise UserTermination()

    def sleep(self, seconds: float) -> None:
        """Wait ``seconds`` unless cancelled first, in which case raise."""

        if self._event.wait(seconds):
            raise UserTermination()


class InterruptListener:
    """Translate operator interrupts into token cancellation.

    The handler sets the token and then raises :class:`KeyboardInterrupt` so a
    request blocked on a socket is abandoned instead of completed. Callers map
    that to :class:`UserTermination`.
    """

    def __init__(
        self, token: CancelToken, signals: Iterable[signal.Signals] = INTERRUPT_SIGNALS
    ) -> None:
        self.token = token
        self.signals = tuple(signals)
        self._previous: Dict[int, Any] = {}

    def install(self) -> "InterruptListener":
        if self._previous:
            return self
        if threading.current_thread() is not threading.main_thread():
            logger.debug("Not on the main thread; interrupt handlers not installed")
            return self
        for sig in self.signals:
            self._previous[sig] = signal.signal(sig, self._handle)
        return self

    def restore(self) -> None:
        for sig, previous in self._previous.items():
            signal.signal(sig, previous)
        self._previous.clear()

    def _handle(self, signum: int, frame: Optional[FrameType]) -> None:
        logger.info("Received %s; stopping", signal.Signals(signum).name)
        self.token.cancel()
        raise KeyboardInterrupt

    def __enter__(self) -> "InterruptListener":
        return self.install()

    def __exit__(self, *exc_info: object) -> None:
        self.restore()


def listen_for_interrupts(token: CancelToken) -> InterruptListener:
    """Install interrupt handlers that cancel ``token`` for the run duration."""

    return InterruptListener(token).install()
