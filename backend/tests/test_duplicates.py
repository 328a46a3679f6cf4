"""Tests for duplicate suppression."""
import logging

from monobudget.services.duplicates import DuplicateChecker
from conftest import make_item


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def test_first_occurrence_is_not_duplicate():
    """Test a new id is admitted."""
    checker = DuplicateChecker(clock=FakeClock())

    assert checker.is_duplicate(make_item("s1")) is False
    assert len(checker) == 1


def test_repeat_within_window_is_duplicate():
    """Test the same id is rejected while inside the retention window."""
    clock = FakeClock()
    checker = DuplicateChecker(retention_seconds=60, clock=clock)

    assert checker.is_duplicate(make_item("s1")) is False
    clock.now += 59
    assert checker.is_duplicate(make_item("s1")) is True


def test_repeat_after_window_is_admitted_again():
    """Test an id is forgotten once the retention window has passed."""
    clock = FakeClock()
    checker = DuplicateChecker(retention_seconds=60, clock=clock)

    checker.is_duplicate(make_item("s1"))
    clock.now += 61

    assert checker.is_duplicate(make_item("s1")) is False


def test_duplicate_check_uses_item_id_only():
    """Test two items with the same id but different content are duplicates."""
    checker = DuplicateChecker(clock=FakeClock())

    checker.is_duplicate(make_item("s1", amount=-100))

    assert checker.is_duplicate(make_item("s1", amount=-200, description="Other")) is True
    assert checker.is_duplicate(make_item("s2", amount=-100)) is False


def test_size_bound_evicts_oldest():
    """Test the memory stays bounded and the oldest ids go first."""
    clock = FakeClock()
    checker = DuplicateChecker(retention_seconds=3600, max_size=3, clock=clock)

    for i in range(5):
        clock.now += 1
        checker.is_duplicate(make_item(f"s{i}"))

    assert len(checker) == 3
    assert checker.is_duplicate(make_item("s4")) is True
    assert checker.is_duplicate(make_item("s0")) is False


def test_expired_ids_are_evicted():
    """Test expired ids do not accumulate."""
    clock = FakeClock()
    checker = DuplicateChecker(retention_seconds=10, clock=clock)

    for i in range(4):
        checker.is_duplicate(make_item(f"s{i}"))
    clock.now += 11
    checker.is_duplicate(make_item("fresh"))

    assert len(checker) == 1


def test_size_eviction_inside_window_is_logged(caplog):
    """Test forgetting an id before its retention window ends is reported."""
    clock = FakeClock()
    checker = DuplicateChecker(retention_seconds=3600, max_size=1, clock=clock)

    checker.is_duplicate(make_item("s1"))
    with caplog.at_level(logging.WARNING, logger="monobudget.services.duplicates"):
        checker.is_duplicate(make_item("s2"))

    assert any("s1" in record.getMessage() for record in caplog.records)
