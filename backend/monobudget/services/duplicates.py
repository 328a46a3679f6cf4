"""Duplicate suppression for statement items."""
import logging
import time
from collections import OrderedDict
from typing import Callable
from monobudget.models.statement import StatementItem

logger = logging.getLogger(__name__)


class DuplicateChecker:
    """
    Bounded, time-windowed filter over statement item ids.

    An id is remembered for `retention_seconds` or until `max_size` newer
    ids push it out, whichever comes first. Size evictions of ids still
    inside the window are logged as warnings.

    `is_duplicate` checks and admits in one step and never awaits, so two
    tasks delivering the same item cannot both get False.
    """

    def __init__(
        self,
        retention_seconds: float = 24 * 60 * 60,
        max_size: int = 10000,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize checker.

        Args:
            retention_seconds: How long an admitted id keeps rejecting repeats
            max_size: Maximum ids remembered; the oldest go first
            clock: Monotonic time source
        """
        self.retention_seconds = retention_seconds
        self.max_size = max_size
        self._clock = clock
        # id -> admission time, oldest first
        self._seen: "OrderedDict[str, float]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._seen)

    def is_duplicate(self, item: StatementItem) -> bool:
        now = self._clock()
        self._evict_expired(now)

        if item.id in self._seen:
            logger.info("Skipping duplicate statement item %s", item.id)
            return True

        self._seen[item.id] = now
        while len(self._seen) > self.max_size:
            evicted_id, admitted = self._seen.popitem(last=False)
            logger.warning(
                "Duplicate filter is full, forgetting statement %s %.0f s before its window ends",
                evicted_id,
                admitted + self.retention_seconds - now,
            )
        return False

    def _evict_expired(self, now: float):
        cutoff = now - self.retention_seconds
        while self._seen:
            oldest_id, admitted = next(iter(self._seen.items()))
            if admitted >= cutoff:
                break
            del self._seen[oldest_id]
