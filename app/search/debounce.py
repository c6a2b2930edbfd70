"""Debounced query controller.

Raw keystrokes are pushed in; a settled value comes out once input has
been quiet for the configured delay. Clearing the input settles at once.
"""

import asyncio
from collections.abc import Callable

DEFAULT_DELAY_SECONDS = 0.3


class QueryDebouncer:
    """Emit the latest input value after a quiet period.

    Must be used from inside a running event loop. Every ``push``
    cancels the pending emission and schedules a new one.

    Attributes:
        delay: Quiet period in seconds
        settled: Last value emitted (starts empty)
    """

    def __init__(
        self,
        on_settle: Callable[[str], None],
        delay: float = DEFAULT_DELAY_SECONDS,
    ) -> None:
        self.delay = delay
        self.settled = ""
        self._on_settle = on_settle
        self._handle: asyncio.TimerHandle | None = None
        self._pending_value = ""

    @property
    def pending(self) -> bool:
        """True while an emission is scheduled but has not fired."""
        return self._handle is not None

    def push(self, value: str) -> None:
        """Record a new raw input value."""
        self.cancel()
        if value == "":
            self._emit(value)
            return
        loop = asyncio.get_running_loop()
        self._pending_value = value
        self._handle = loop.call_later(self.delay, self._emit, value)

    def flush(self) -> None:
        """Emit the pending value now, if any."""
        if self._handle is None:
            return
        self._handle.cancel()
        self._emit(self._pending_value)

    def cancel(self) -> None:
        """Drop the pending emission without emitting."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None

    def _emit(self, value: str) -> None:
        self._handle = None
        self.settled = value
        self._on_settle(value)
