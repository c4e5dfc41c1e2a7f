"""Single-shot timers that drive playout progression."""

import logging
import threading
from typing import Callable

logger = logging.getLogger(__name__)

class ThreadingTimers:
    """Timer facility backed by daemon `threading.Timer` threads.

    `call_later` returns a handle with a `cancel()` method. Cancelling a timer
    that already fired is a no-op.
    """

    def call_later(self, seconds: float, callback: Callable[[], None]) -> threading.Timer:
        timer = threading.Timer(seconds, self._run, args=(callback,))
        timer.daemon = True
        timer.start()
        return timer

    @staticmethod
    def _run(callback):
        try:
            callback()
        except Exception as e:
            logger.error(f"Timer callback failed: {e}", exc_info=True)
