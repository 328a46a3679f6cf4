"""In-memory collaborators for running the pipeline without external services."""
import asyncio
import itertools
from typing import AsyncIterator, Dict, Iterable, List, Optional, Tuple
from monobudget.adapters.base import BudgetBackend, CallbackListener, ChatTransport, StatementSource
from monobudget.adapters.ynab import statement_memo
from monobudget.exceptions import BudgetBackendError, BudgetRateLimitError
from monobudget.models.statement import StatementItem
from monobudget.models.telegram import InlineKeyboardMarkup, MessageRef
from monobudget.models.transaction import Transaction, TransactionSave, TransferCandidate


class MockStatementSource(StatementSource):
    """Emits a fixed list of items, then idles (or ends if `finite`)."""

    def __init__(
        self,
        items: Iterable[StatementItem] = (),
        prepared: bool = True,
        name: str = "mock",
        finite: bool = True,
    ):
        self.items = list(items)
        self.prepared = prepared
        self.name = name
        self.finite = finite
        self.prepare_calls = 0
        self.closed = False

    async def prepare(self) -> bool:
        self.prepare_calls += 1
        return self.prepared

    async def statements(self) -> AsyncIterator[StatementItem]:
        for item in self.items:
            yield item
        if not self.finite:
            await asyncio.Event().wait()

    async def aclose(self):
        self.closed = True


class MockBudgetBackend(BudgetBackend):
    """
    Dictionary-backed budget.

    Failures can be scripted per operation: `rate_limits` is a list of
    retry-after values raised one by one before an update succeeds, and
    `fail_create` / `fail_update` raise the given exception every time.
    """

    def __init__(
        self,
        transfer_payees: Optional[Dict[str, str]] = None,
        categories: Optional[Dict[str, str]] = None,
        payees: Optional[Dict[str, str]] = None,
    ):
        self.transactions: Dict[str, Transaction] = {}
        self.transfer_payees = dict(transfer_payees or {})
        self.categories = dict(categories or {})
        self.payees = dict(payees or {})
        self.rate_limits: List[float] = []
        self.fail_create: Optional[Exception] = None
        self.fail_update: Optional[Exception] = None
        self.created: List[Tuple[StatementItem, TransferCandidate]] = []
        self.updated: List[Tuple[str, TransactionSave]] = []
        self.transfer_payee_calls: List[str] = []
        self.update_attempts = 0
        self._ids = itertools.count(1)

    def add_transaction(self, transaction: Transaction) -> Transaction:
        self.transactions[transaction.id] = transaction
        return transaction

    async def create_transaction(self, item: StatementItem, candidate: TransferCandidate) -> Transaction:
        if self.fail_create is not None:
            raise self.fail_create
        self.created.append((item, candidate))
        transaction = Transaction(
            id=f"txn-{next(self._ids)}",
            account_id=item.account_id,
            date=item.time.date(),
            amount=item.amount,
            payee_id=candidate.transfer_payee_id,
            memo=statement_memo(item),
            import_id=f"MONO:{item.id}"[:36],
        )
        return self.add_transaction(transaction)

    async def get_transaction(self, transaction_id: str) -> Transaction:
        try:
            return self.transactions[transaction_id]
        except KeyError:
            raise BudgetBackendError(f"Transaction {transaction_id} not found", status_code=404) from None

    async def update_transaction(self, transaction_id: str, save: TransactionSave) -> Transaction:
        self.update_attempts += 1
        if self.rate_limits:
            raise BudgetRateLimitError(self.rate_limits.pop(0))
        if self.fail_update is not None:
            raise self.fail_update

        current = await self.get_transaction(transaction_id)
        self.updated.append((transaction_id, save))
        payee_name = save.payee_name
        if payee_name is None and save.payee_id is not None:
            payee_name = self.payees.get(save.payee_id)
        transaction = current.model_copy(
            update={
                **save.model_dump(),
                "payee_name": payee_name,
                "category_name": self.categories.get(save.category_id) if save.category_id else None,
            }
        )
        return self.add_transaction(transaction)

    async def get_transfer_payee_id(self, budget_account_id: str) -> str:
        self.transfer_payee_calls.append(budget_account_id)
        await asyncio.sleep(0)
        try:
            return self.transfer_payees[budget_account_id]
        except KeyError:
            raise BudgetBackendError(f"Account {budget_account_id} not found", status_code=404) from None


class MockChatTransport(ChatTransport):
    """Records every outgoing chat call."""

    def __init__(self):
        self.sent: List[Tuple[int, str, Optional[InlineKeyboardMarkup]]] = []
        self.edits: List[Tuple[int, int, str, Optional[InlineKeyboardMarkup]]] = []
        self.answers: List[Tuple[str, Optional[str]]] = []
        self.on_callback: Optional[CallbackListener] = None
        self._message_ids = itertools.count(100)

    async def start(self, on_callback: CallbackListener) -> "asyncio.Task[None]":
        self.on_callback = on_callback
        return asyncio.create_task(asyncio.Event().wait())

    async def send_message(
        self,
        chat_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> MessageRef:
        self.sent.append((chat_id, text, keyboard))
        return MessageRef(chat_id=chat_id, message_id=next(self._message_ids))

    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        self.edits.append((chat_id, message_id, text, keyboard))

    async def answer_callback(self, callback_id: str, text: Optional[str] = None) -> None:
        self.answers.append((callback_id, text))
