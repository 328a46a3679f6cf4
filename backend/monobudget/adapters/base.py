"""Base interfaces for the bank, budget and chat collaborators."""
import asyncio
from abc import ABC, abstractmethod
from typing import AsyncIterator, Awaitable, Callable, Optional
from monobudget.models.statement import StatementItem
from monobudget.models.telegram import CallbackQuery, InlineKeyboardMarkup, MessageRef
from monobudget.models.transaction import Transaction, TransactionSave, TransferCandidate

CallbackListener = Callable[[CallbackQuery], Awaitable[None]]


class StatementSource(ABC):
    """A stream of statement items from one bank account or webhook."""

    name: str = "statements"

    @abstractmethod
    async def prepare(self) -> bool:
        """
        One-time readiness check before streaming.

        Returns:
            False if the source cannot be started
        """
        pass

    @abstractmethod
    def statements(self) -> AsyncIterator[StatementItem]:
        """Unbounded stream of statement items in emission order."""
        pass

    async def aclose(self):
        """Release resources held by the source."""
        pass


class BudgetBackend(ABC):
    """Abstract budgeting backend."""

    @abstractmethod
    async def create_transaction(self, item: StatementItem, candidate: TransferCandidate) -> Transaction:
        """
        Create the budget transaction for a statement item.

        Args:
            item: Incoming statement item
            candidate: Transfer classification of the item

        Returns:
            The created (or already existing transfer leg) transaction
        """
        pass

    @abstractmethod
    async def get_transaction(self, transaction_id: str) -> Transaction:
        pass

    @abstractmethod
    async def update_transaction(self, transaction_id: str, save: TransactionSave) -> Transaction:
        """
        Replace a transaction's mutable state.

        Raises:
            BudgetRateLimitError: When the backend asks to slow down
            BudgetBackendError: For any other rejection
        """
        pass

    @abstractmethod
    async def get_transfer_payee_id(self, budget_account_id: str) -> str:
        """Payee that represents transfers into `budget_account_id`."""
        pass


class ChatTransport(ABC):
    """Abstract chat transport with inline keyboards."""

    @abstractmethod
    async def start(self, on_callback: CallbackListener) -> "asyncio.Task[None]":
        """Start receiving button presses; returns the running receiver task."""
        pass

    @abstractmethod
    async def send_message(
        self,
        chat_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> MessageRef:
        pass

    @abstractmethod
    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        pass

    @abstractmethod
    async def answer_callback(self, callback_id: str, text: Optional[str] = None) -> None:
        pass
