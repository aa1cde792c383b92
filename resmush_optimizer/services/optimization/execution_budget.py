"""
Execution-time budget for hosts that cap the wall-clock runtime of a process.
"""

import logging
import time
from typing import Callable, Optional

logger = logging.getLogger(__name__)


class ExecutionBudget:
    """
    Tracks elapsed time against a maximum and restarts the budget shortly
    before it runs out.

    With ``max_execution_seconds`` at 0 there is no cap and
    ``reset_if_required`` does nothing.
    """

    def __init__(
        self,
        max_execution_seconds: float = 0,
        margin: float = 10,
        on_reset: Optional[Callable[[float], None]] = None,
        clock: Callable[[], float] = time.monotonic
    ):
        """
        Args:
            max_execution_seconds: Host execution cap in seconds
            margin: Reset when elapsed time is within this many seconds of the cap
            on_reset: Hook that re-arms the host cap, called with the cap
            clock: Monotonic clock, injectable for tests
        """
        self.max_execution_seconds = max_execution_seconds
        self.margin = margin
        self.on_reset = on_reset
        self._clock = clock
        self.start = clock()

    @property
    def enabled(self) -> bool:
        return self.max_execution_seconds > 0

    def elapsed(self) -> float:
        return self._clock() - self.start

    def reset_if_required(self) -> bool:
        """
        Restart the budget if the cap is about to expire.

        Returns:
            True if the budget was reset
        """
        if not self.enabled:
            return False

        now = self._clock()
        if now - self.start < self.max_execution_seconds - self.margin:
            return False

        self.start = now
        if self.on_reset is not None:
            self.on_reset(self.max_execution_seconds)
        logger.debug(f"Execution budget reset to {self.max_execution_seconds}s")
        return True
