"""Cooperative deadline shared by every pipeline stage."""

from __future__ import annotations

import time
from typing import Optional

from .errors import AnalysisCancelled


class Deadline:
    """Time budget plus a manual cancel switch.

    Stages call :meth:`check` between files and between matrix rows; the
    check raises :class:`AnalysisCancelled` once the budget is spent or
    :meth:`cancel` has been called. ``seconds=None`` never expires.
    """

    def __init__(self, seconds: Optional[float] = None) -> None:
        self.seconds = seconds
        self._started = time.monotonic()
        self._cancelled = False

    def cancel(self) -> None:
        self._cancelled = True

    @property
    def elapsed(self) -> float:
        return time.monotonic() - self._started

    @property
    def expired(self) -> bool:
        return self.seconds is not None and self.elapsed >= self.seconds

    def check(self, stage: str) -> None:
        if self._cancelled:
            raise AnalysisCancelled(stage, reason="cancelled")
        if self.expired:
            raise AnalysisCancelled(stage)
