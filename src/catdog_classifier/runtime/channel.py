"""Single-writer, latest-value channel from the worker to the display."""

from __future__ import annotations

import threading
from collections.abc import Callable
from typing import Any

Dispatch = Callable[[Callable[[], None]], Any]


class ResultChannel:
    """Hold the latest display string and notify the display thread.

    The inference worker is the only writer.  Readers either poll
    :meth:`latest` or receive ``on_update`` callbacks.  When a ``dispatch``
    function is given (for example ``loop.call_soon_threadsafe`` or a GUI
    toolkit's ``after``/``invoke_later``) callbacks are marshalled through
    it onto the display thread; otherwise they run on the writer's thread.
    A delivered callback always reads the value current at delivery time,
    so a stale update is never shown after a newer one.

    Args:
        on_update: Called with the latest display string.
        dispatch: Schedules a zero-argument callable on the display thread.
    """

    def __init__(
        self,
        on_update: Callable[[str], None] | None = None,
        dispatch: Dispatch | None = None,
    ) -> None:
        self._lock = threading.Lock()
        self._latest = ""
        self._version = 0
        self._on_update = on_update
        self._dispatch = dispatch

    @property
    def version(self) -> int:
        """Number of values posted so far."""
        with self._lock:
            return self._version

    def latest(self) -> str:
        with self._lock:
            return self._latest

    def post(self, text: str) -> None:
        """Publish a new display string."""
        with self._lock:
            self._latest = text
            self._version += 1

        if self._on_update is None:
            return
        if self._dispatch is None:
            self._deliver()
        else:
            self._dispatch(self._deliver)

    def _deliver(self) -> None:
        if self._on_update is not None:
            self._on_update(self.latest())
