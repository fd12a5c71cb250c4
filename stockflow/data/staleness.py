"""Refresh-on-foreground policy."""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = timedelta(minutes=5)


class StalenessRefreshPolicy:
    """Trigger a full refresh when the app returns after a long absence.

    The first foreground event after construction counts from the
    construction time. The last-active mark moves on every event, so
    a refresh failure does not make the next event refresh again.
    """

    def __init__(
        self,
        refresh: Callable[[], object],
        threshold: timedelta | float = DEFAULT_THRESHOLD,
        clock: Callable[[], datetime] | None = None,
    ):
        if not isinstance(threshold, timedelta):
            threshold = timedelta(seconds=threshold)
        self._refresh = refresh
        self.threshold = threshold
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.last_active = self._clock()

    def is_stale(self, now: datetime | None = None) -> bool:
        now = now or self._clock()
        return now - self.last_active > self.threshold

    def on_foreground(self) -> bool:
        """Refresh if stale; returns whether a refresh was triggered."""
        now = self._clock()
        stale = self.is_stale(now)
        self.last_active = now
        if stale:
            logger.info("Data stale after %s, refreshing", self.threshold)
            self._refresh()
        return stale

    def touch(self) -> None:
        """Mark user activity without refreshing."""
        self.last_active = self._clock()
