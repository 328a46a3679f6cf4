"""Tests for the statement pipeline."""
import asyncio

import pytest

from monobudget.adapters.mock import MockBudgetBackend, MockChatTransport, MockStatementSource
from monobudget.config import Settings
from monobudget.exceptions import BudgetBackendError, DuplicateTransactionError
from monobudget.main import build_pipeline
from monobudget.models.updates import PAYEE, UNAPPROVE, UNCATEGORIZE, UNKNOWN
from monobudget.services.error_notifier import UNKNOWN_ERROR_MSG
from conftest import CHAT_A, CHAT_B, IBAN_B, make_item


class FailingBudget(MockBudgetBackend):
    """Fails creation for chosen statement ids."""

    def __init__(self, failures=None, **kwargs):
        super().__init__(**kwargs)
        self.failures = dict(failures or {})

    async def create_transaction(self, item, candidate):
        if item.id in self.failures:
            raise self.failures[item.id]
        return await super().create_transaction(item, candidate)


class BrokenSource(MockStatementSource):
    """Stream fails `failures` times before emitting its items."""

    def __init__(self, items=(), failures: int = 1, **kwargs):
        super().__init__(items, **kwargs)
        self.failures = failures
        self.attempts = 0

    async def statements(self):
        self.attempts += 1
        if self.attempts <= self.failures:
            raise ValueError("bad upstream body")
        async for item in super().statements():
            yield item


class GatedChat(MockChatTransport):
    """Holds sends to one chat until `gate` is set."""

    def __init__(self, gated_chat_id: int):
        super().__init__()
        self.gated_chat_id = gated_chat_id
        self.gate = asyncio.Event()
        self.waiting = 0

    async def send_message(self, chat_id, text, keyboard=None):
        if chat_id == self.gated_chat_id:
            self.waiting += 1
            await self.gate.wait()
        return await super().send_message(chat_id, text, keyboard)


class CountingDetector:
    """Records which items reach transfer detection."""

    def __init__(self, detector):
        self.detector = detector
        self.checked = []

    async def check_transfer(self, item):
        self.checked.append(item.id)
        return await self.detector.check_transfer(item)


@pytest.fixture
def settings():
    return Settings(unknown_payee_id="payee-unknown", unknown_category_id="cat-unknown")


@pytest.fixture
def budget():
    return FailingBudget(transfer_payees={"ynab-a": "payee-to-a", "ynab-b": "payee-to-b"})


@pytest.fixture
def chat():
    return MockChatTransport()


async def wait_until(condition, attempts: int = 1000):
    for _ in range(attempts):
        if condition():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


async def run_until(pipeline, condition):
    """Run the pipeline until `condition` holds, then cancel it."""
    task = asyncio.create_task(pipeline.run())
    try:
        await wait_until(lambda: condition() or task.done())
    finally:
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task


@pytest.mark.asyncio
async def test_statement_becomes_message(settings, accounts, budget, chat):
    """Test one statement item is imported and posted with four buttons."""
    source = MockStatementSource([make_item("s1", account_id="acc-a", description="Coffee")])
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    await run_until(pipeline, lambda: len(chat.sent) == 1)

    assert len(budget.created) == 1
    created = budget.transactions["txn-1"]
    assert created.payee_id is None and created.payee_name is None
    assert created.category_id is None
    chat_id, text, keyboard = chat.sent[0]
    assert chat_id == CHAT_A
    assert "<b>Coffee</b>" in text
    assert "txn-1" in text
    buttons = [b.callback_data for row in keyboard.inline_keyboard for b in row]
    assert buttons == [UNCATEGORIZE, UNAPPROVE, UNKNOWN, f"{PAYEE}|Coffee"]
    assert chat.on_callback is not None
    assert source.closed is True


@pytest.mark.asyncio
async def test_messages_go_to_account_chat(settings, accounts, budget, chat):
    """Test each account's items are posted to its own chat."""
    source = MockStatementSource([make_item("s1", account_id="acc-a"), make_item("s2", account_id="acc-b")])
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    await run_until(pipeline, lambda: len(chat.sent) == 2)

    assert [chat_id for chat_id, _, _ in chat.sent] == [CHAT_A, CHAT_B]


@pytest.mark.asyncio
async def test_duplicate_across_sources_is_dropped(settings, accounts, budget, chat):
    """Test an item delivered by two sources is processed once and never reaches transfer detection twice."""
    transfer = make_item("s1", account_id="acc-a", amount=-50000, counter_iban=IBAN_B)
    sources = [
        MockStatementSource([transfer], name="poll"),
        MockStatementSource([transfer, make_item("s2")], name="webhook"),
    ]
    pipeline = build_pipeline(settings, accounts, sources, budget, chat)
    detector = pipeline.detector = CountingDetector(pipeline.detector)

    await run_until(pipeline, lambda: len(chat.sent) == 2)

    assert sorted(detector.checked) == ["s1", "s2"]
    assert sorted(item.id for item, _ in budget.created) == ["s1", "s2"]
    assert len(chat.sent) == 2


@pytest.mark.asyncio
async def test_slow_chat_holds_only_its_own_source(settings, accounts, budget):
    """Test a stuck send delays the next item of its source but not other sources."""
    chat = GatedChat(CHAT_A)
    sources = [
        MockStatementSource(
            [
                make_item("a1", account_id="acc-a", description="First"),
                make_item("a2", account_id="acc-a", description="Second"),
            ],
            name="a",
        ),
        MockStatementSource([make_item("b1", account_id="acc-b"), make_item("b2", account_id="acc-b")], name="b"),
    ]
    pipeline = build_pipeline(settings, accounts, sources, budget, chat)
    task = asyncio.create_task(pipeline.run())
    try:
        await wait_until(lambda: chat.waiting == 1 and len(chat.sent) == 2)

        assert [chat_id for chat_id, _, _ in chat.sent] == [CHAT_B, CHAT_B]
        assert "a2" not in [item.id for item, _ in budget.created]

        chat.gate.set()
        await wait_until(lambda: len(chat.sent) == 4)
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    texts_a = [text for chat_id, text, _ in chat.sent if chat_id == CHAT_A]
    assert "<b>First</b>" in texts_a[0]
    assert "<b>Second</b>" in texts_a[1]


@pytest.mark.asyncio
async def test_failing_source_does_not_stop_others(settings, accounts, budget, chat):
    """Test a source whose stream keeps failing leaves the other sources running."""
    broken = BrokenSource(failures=10**9, name="broken")
    healthy = MockStatementSource([make_item("s1"), make_item("s2")], name="healthy", finite=False)
    pipeline = build_pipeline(settings, accounts, [broken, healthy], budget, chat)
    pipeline.restart_delay = 0
    task = asyncio.create_task(pipeline.run())
    try:
        await wait_until(lambda: len(chat.sent) == 2 and broken.attempts > 2)

        assert not task.done()
    finally:
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)


@pytest.mark.asyncio
async def test_failed_source_stream_is_restarted(settings, accounts, budget, chat):
    """Test a stream that fails once is opened again and its items still arrive."""
    source = BrokenSource([make_item("s1")], failures=1)
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)
    pipeline.restart_delay = 0

    await run_until(pipeline, lambda: len(chat.sent) == 1)

    assert source.attempts == 2
    assert [item.id for item, _ in budget.created] == ["s1"]


@pytest.mark.asyncio
async def test_transfer_is_created_with_transfer_payee(settings, accounts, budget, chat):
    """Test a transfer between own accounts carries the counterpart's transfer payee."""
    source = MockStatementSource([make_item("s1", account_id="acc-a", amount=-50000, counter_iban=IBAN_B)])
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    await run_until(pipeline, lambda: len(chat.sent) == 1)

    _, candidate = budget.created[0]
    assert candidate.is_transfer is True
    assert candidate.transfer_payee_id == "payee-to-b"


@pytest.mark.asyncio
async def test_backend_error_does_not_stop_stream(settings, accounts, budget, chat):
    """Test a rejected item is reported and the next item still goes through."""
    budget.failures["bad"] = BudgetBackendError("Validation failed", status_code=400)
    source = MockStatementSource([make_item("bad"), make_item("good")])
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    await run_until(pipeline, lambda: any("<b>" in text for _, text, _ in chat.sent))

    texts = [text for _, text, _ in chat.sent]
    assert any("YNAB rejected a transaction" in text for text in texts)
    assert [item.id for item, _ in budget.created] == ["good"]


@pytest.mark.asyncio
async def test_unknown_error_is_reported(settings, accounts, budget, chat):
    """Test an unexpected failure sends the generic notice."""
    budget.failures["s1"] = RuntimeError("boom")
    pipeline = build_pipeline(settings, accounts, [], budget, chat)

    result = await pipeline.process(make_item("s1"))

    assert result is None
    assert UNKNOWN_ERROR_MSG in [text for _, text, _ in chat.sent]


@pytest.mark.asyncio
async def test_already_imported_is_not_reported(settings, accounts, budget, chat):
    """Test a duplicate import is only logged."""
    budget.failures["s1"] = DuplicateTransactionError("Transaction already exists", status_code=409)
    pipeline = build_pipeline(settings, accounts, [], budget, chat)

    await pipeline.process(make_item("s1"))

    assert chat.sent == []


@pytest.mark.asyncio
async def test_failed_prepare_does_not_start(settings, accounts, budget, chat):
    """Test a source that is not ready stops startup before any processing."""
    source = MockStatementSource([make_item("s1")], prepared=False)
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    await pipeline.run()

    assert chat.on_callback is None
    assert budget.created == []
    assert source.closed is True


@pytest.mark.asyncio
async def test_startup_verification_failure_exits(settings, accounts, chat):
    """Test unusable budget accounts abort with a non-zero exit."""
    budget = MockBudgetBackend(transfer_payees={"ynab-a": "payee-to-a"})
    source = MockStatementSource([make_item("s1")])
    pipeline = build_pipeline(settings, accounts, [source], budget, chat)

    with pytest.raises(SystemExit) as exc_info:
        await pipeline.run()

    assert exc_info.value.code == 1
    assert source.prepare_calls == 0


@pytest.mark.asyncio
async def test_error_chat_override(accounts, budget, chat):
    """Test errors go to the dedicated chat when one is configured."""
    settings = Settings(telegram_error_chat_id=4242)
    budget.failures["s1"] = RuntimeError("boom")
    pipeline = build_pipeline(settings, accounts, [], budget, chat)

    await pipeline.process(make_item("s1"))

    assert [chat_id for chat_id, _, _ in chat.sent] == [4242]
