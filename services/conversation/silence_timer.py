"""
Silence Timer

Debounce for the end of a spoken turn: every transcript update re-arms the
timer, and the callback fires once the user has been quiet for `interval`
seconds.
"""

import asyncio
from typing import Callable, Optional

from utils.logging import get_logger

logger = get_logger(__name__)


class SilenceTimer:
    """
    Cancellable one-shot timer on the running event loop.

    Usage:
        timer = SilenceTimer(2.5, on_silence)
        timer.reset()   # on every partial transcript
        timer.cancel()  # on stop / close
    """

    def __init__(self, interval: float, on_silence: Callable[[], None]):
        self.interval = interval
        self.on_silence = on_silence
        self._task: Optional[asyncio.Task] = None

    @property
    def is_pending(self) -> bool:
        return self._task is not None and not self._task.done()

    def reset(self) -> None:
        """(Re)start the countdown from zero."""
        self.cancel()
        self._task = asyncio.ensure_future(self._run())

    def cancel(self) -> None:
        if self._task is not None:
            if not self._task.done():
                self._task.cancel()
            self._task = None

    async def _run(self) -> None:
        await asyncio.sleep(self.interval)
        # Detach first: the callback may cancel() or reset() this timer
        self._task = None
        try:
            self.on_silence()
        except Exception as e:
            logger.error(f"Silence callback failed: {e}", exc_info=True)
