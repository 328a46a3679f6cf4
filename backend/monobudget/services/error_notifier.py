"""User-visible error notifications."""
import html
import logging
from typing import Iterable, Optional
from monobudget.adapters.base import ChatTransport
from monobudget.exceptions import BudgetBackendError

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MSG = "Unknown error while processing a transaction. Check the logs for details."


class ErrorNotifier:
    """Best-effort error reports to the configured chats."""

    def __init__(self, chat: ChatTransport, chat_ids: Iterable[int]):
        self.chat = chat
        self.chat_ids = sorted(set(chat_ids))

    async def on_budget_backend_error(self, error: BudgetBackendError):
        await self._notify(f"YNAB rejected a transaction:\n<code>{html.escape(str(error))}</code>")

    async def on_unknown_error(self, error: Optional[BaseException] = None):
        await self._notify(UNKNOWN_ERROR_MSG)

    async def on_rate_limited(self, chat_id: int, retry_after: float):
        """Tell the chat that pressed a button why nothing happens yet."""
        await self._send(chat_id, f"YNAB rate limit reached, retrying in {retry_after:.0f} s.")

    async def _notify(self, text: str):
        for chat_id in self.chat_ids:
            await self._send(chat_id, text)

    async def _send(self, chat_id: int, text: str):
        try:
            await self.chat.send_message(chat_id, text)
        except Exception:
            logger.exception("Failed to deliver notification to chat %s", chat_id)
