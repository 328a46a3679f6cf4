"""Inline button presses on transaction messages."""
import logging
from typing import Optional
from monobudget.adapters.base import BudgetBackend, ChatTransport
from monobudget.models.telegram import CallbackQuery, Message, RenderedMessage
from monobudget.models.transaction import Transaction
from monobudget.models.updates import TransactionUpdateRequest, apply_update, decode_callback_data
from monobudget.services.accounts import AccountDirectory
from monobudget.services.error_notifier import ErrorNotifier
from monobudget.services.message_parsing import (
    StatementMessageFields,
    parse_statement_message,
    pressed_kinds,
    strip_html,
)
from monobudget.services.messages import format_keyboard, format_statement_message
from monobudget.services.rate_limit import RetryWithRateLimit

logger = logging.getLogger(__name__)

UNKNOWN_ERROR_MSG = "Something went wrong, the transaction was not changed."


def rerender_message(
    fields: StatementMessageFields,
    message: Message,
    request: TransactionUpdateRequest,
    transaction: Transaction,
) -> RenderedMessage:
    """
    New text and keyboard after `request` was applied.

    Fixed fields come from the existing message; category and payee come
    from the updated transaction. Buttons pressed before stay pressed.
    """
    text = format_statement_message(
        header=fields.header,
        description=fields.description,
        mcc_text=fields.mcc_text,
        currency_text=fields.currency_text,
        category=transaction.category_name or "",
        payee=transaction.payee_name or "",
        transaction_id=fields.transaction_id,
    )
    pressed = pressed_kinds(message.reply_markup) | {request.kind}
    return RenderedMessage(text=text, keyboard=format_keyboard(pressed, fields.description))


class CallbackHandler:
    """Applies the correction behind a pressed button and edits the message in place."""

    def __init__(
        self,
        chat: ChatTransport,
        budget: BudgetBackend,
        accounts: AccountDirectory,
        retry: RetryWithRateLimit,
        unknown_payee_id: Optional[str] = None,
        unknown_category_id: Optional[str] = None,
        notifier: Optional[ErrorNotifier] = None,
    ):
        self.chat = chat
        self.budget = budget
        self.accounts = accounts
        self.retry = retry
        self.unknown_payee_id = unknown_payee_id
        self.unknown_category_id = unknown_category_id
        self.notifier = notifier

    async def handle(self, callback_query: CallbackQuery):
        if callback_query.from_user.id not in self.accounts.chat_ids():
            logger.warning("Received Telegram callback query from unknown chat %s", callback_query.from_user.id)
            return

        data = callback_query.data
        message = callback_query.message
        if not data:
            logger.warning("Received Telegram callback query %s with empty data", callback_query.id)
            return
        if message is None:
            logger.warning("Received Telegram callback query %s without a message", callback_query.id)
            return

        try:
            fields = parse_statement_message(message)
            request = decode_callback_data(data, fields.transaction_id)
        except ValueError as e:
            logger.warning("Cannot decode callback query %s: %s", callback_query.id, e)
            await self.chat.answer_callback(callback_query.id, UNKNOWN_ERROR_MSG)
            return

        async def notify_wait(retry_after: float):
            if self.notifier is not None:
                await self.notifier.on_rate_limited(message.chat.id, retry_after)

        try:
            updated = await self.retry(lambda: self.update_transaction(request), on_wait=notify_wait)
        except Exception:
            logger.exception("Failed to apply %s to transaction %s", request.kind, request.transaction_id)
            await self.chat.answer_callback(callback_query.id, UNKNOWN_ERROR_MSG)
            return

        await self.chat.answer_callback(callback_query.id)

        rendered = rerender_message(fields, message, request, updated)
        if strip_html(rendered.text) != message.text or rendered.keyboard != message.reply_markup:
            await self.chat.edit_message(message.chat.id, message.message_id, rendered.text, rendered.keyboard)
        else:
            logger.debug("Message %s unchanged after %s", message.message_id, request.kind)

    async def update_transaction(self, request: TransactionUpdateRequest) -> Transaction:
        """Fetch, transform and store the transaction a request points to."""
        current = await self.budget.get_transaction(request.transaction_id)
        desired = apply_update(
            request,
            current.to_save(),
            self.unknown_payee_id,
            self.unknown_category_id,
        )
        logger.info("Applying %s to transaction %s", request.kind, current.id)
        return await self.budget.update_transaction(current.id, desired)
