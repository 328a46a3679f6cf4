"""Tests for transfer detection and the transfer payee cache."""
import asyncio

import pytest

from monobudget.adapters.mock import MockBudgetBackend
from monobudget.exceptions import BudgetBackendError
from monobudget.services.transfer_cache import TransferPayeeCache
from monobudget.services.transfer_detector import TransferDetector
from conftest import IBAN_A, IBAN_B, make_item


@pytest.fixture
def budget():
    return MockBudgetBackend(transfer_payees={"ynab-a": "payee-to-a", "ynab-b": "payee-to-b"})


@pytest.fixture
def detector(accounts, budget):
    return TransferDetector(accounts, TransferPayeeCache(budget))


@pytest.mark.asyncio
async def test_ordinary_item_is_not_transfer(detector, budget):
    """Test an item without a known counterparty is not a transfer."""
    candidate = await detector.check_transfer(make_item(counter_iban=None))

    assert candidate.is_transfer is False
    assert candidate.transfer_payee_id is None
    assert budget.transfer_payee_calls == []


@pytest.mark.asyncio
async def test_unknown_counterparty_is_not_transfer(detector):
    """Test an IBAN that belongs to nobody we know."""
    candidate = await detector.check_transfer(make_item(counter_iban="UA000000000000000000000000000"))

    assert candidate.is_transfer is False


@pytest.mark.asyncio
async def test_transfer_to_own_account(detector):
    """Test an outgoing transfer from A to B resolves B's transfer payee."""
    item = make_item(account_id="acc-a", amount=-50000, counter_iban=IBAN_B)

    candidate = await detector.check_transfer(item)

    assert candidate.is_transfer is True
    assert candidate.counterpart.id == "acc-b"
    assert candidate.transfer_payee_id == "payee-to-b"


@pytest.mark.asyncio
async def test_iban_matching_ignores_spacing_and_case(detector):
    """Test IBANs are normalized before matching."""
    spaced = " ".join(IBAN_B[i:i + 4] for i in range(0, len(IBAN_B), 4)).lower()

    candidate = await detector.check_transfer(make_item(counter_iban=spaced))

    assert candidate.is_transfer is True


@pytest.mark.asyncio
async def test_same_account_is_not_transfer(detector):
    """Test an item whose counterparty is its own account."""
    candidate = await detector.check_transfer(make_item(account_id="acc-a", counter_iban=IBAN_A))

    assert candidate.is_transfer is False


@pytest.mark.asyncio
async def test_concurrent_lookups_share_one_call(budget):
    """Test concurrent callers for one account trigger a single backend lookup."""
    cache = TransferPayeeCache(budget)

    results = await asyncio.gather(*(cache.get("ynab-b") for _ in range(5)))

    assert results == ["payee-to-b"] * 5
    assert budget.transfer_payee_calls == ["ynab-b"]


@pytest.mark.asyncio
async def test_cached_value_is_reused(budget):
    """Test a resolved payee is not looked up again."""
    cache = TransferPayeeCache(budget)

    await cache.get("ynab-a")
    await cache.get("ynab-a")

    assert budget.transfer_payee_calls == ["ynab-a"]


@pytest.mark.asyncio
async def test_failed_lookup_is_retried(budget):
    """Test a failed lookup is not cached."""
    cache = TransferPayeeCache(budget)

    with pytest.raises(BudgetBackendError):
        await cache.get("ynab-missing")

    budget.transfer_payees["ynab-missing"] = "payee-late"
    assert await cache.get("ynab-missing") == "payee-late"
    assert budget.transfer_payee_calls == ["ynab-missing", "ynab-missing"]
