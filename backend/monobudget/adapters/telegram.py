"""Telegram Bot API chat transport."""
import asyncio
import logging
from typing import Any, Optional, Set

import httpx

from monobudget.adapters.base import CallbackListener, ChatTransport
from monobudget.exceptions import TelegramApiError
from monobudget.models.telegram import CallbackQuery, InlineKeyboardMarkup, Message, MessageRef, Update

logger = logging.getLogger(__name__)


class TelegramClient(ChatTransport):
    """Sends HTML messages and long-polls for inline button presses."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        poll_timeout: int = 30,
        timeout: float = 30.0,
        retry_delay: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ValueError("Telegram bot token required")
        self.poll_timeout = poll_timeout
        self.retry_delay = retry_delay
        # Long polls hold the connection for poll_timeout seconds
        self.client = httpx.AsyncClient(
            base_url=f"{base_url}/bot{token}",
            timeout=timeout + poll_timeout,
            transport=transport,
        )
        self._offset: Optional[int] = None
        self._handlers: Set["asyncio.Task[None]"] = set()

    async def _call(self, method: str, **params) -> Any:
        """Call a Bot API method, dropping None parameters."""
        payload = {k: v for k, v in params.items() if v is not None}
        resp = await self.client.post(f"/{method}", json=payload)
        try:
            data = resp.json()
        except ValueError:
            raise TelegramApiError(method, resp.text, resp.status_code)
        if not data.get("ok"):
            raise TelegramApiError(method, data.get("description", ""), data.get("error_code"))
        return data["result"]

    async def start(self, on_callback: CallbackListener) -> "asyncio.Task[None]":
        return asyncio.create_task(self._poll(on_callback), name="telegram-updates")

    async def _poll(self, on_callback: CallbackListener):
        logger.info("Polling Telegram for button presses")
        while True:
            try:
                updates = await self._call(
                    "getUpdates",
                    offset=self._offset,
                    timeout=self.poll_timeout,
                    allowed_updates=["callback_query"],
                )
            except (httpx.HTTPError, TelegramApiError) as e:
                logger.warning("Telegram getUpdates failed: %s", e)
                await asyncio.sleep(self.retry_delay)
                continue

            for raw in updates:
                try:
                    update = Update.model_validate(raw)
                except ValueError as e:
                    logger.warning("Skipping malformed Telegram update: %s", e)
                    if isinstance(raw, dict) and isinstance(raw.get("update_id"), int):
                        self._offset = raw["update_id"] + 1
                    continue
                self._offset = update.update_id + 1
                if update.callback_query is not None:
                    self._spawn(on_callback, update.callback_query)

    def _spawn(self, on_callback: CallbackListener, callback_query: CallbackQuery):
        """Handle each button press in its own task."""
        task = asyncio.create_task(self._handle(on_callback, callback_query))
        self._handlers.add(task)
        task.add_done_callback(self._handlers.discard)

    async def _handle(self, on_callback: CallbackListener, callback_query: CallbackQuery):
        try:
            await on_callback(callback_query)
        except Exception:
            logger.exception("Failed to handle Telegram callback %s", callback_query.id)

    async def send_message(
        self,
        chat_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> MessageRef:
        result = await self._call(
            "sendMessage",
            chat_id=chat_id,
            text=text,
            parse_mode="HTML",
            disable_web_page_preview=True,
            reply_markup=keyboard.model_dump(exclude_none=True) if keyboard else None,
        )
        message = Message.model_validate(result)
        return MessageRef(chat_id=message.chat.id, message_id=message.message_id)

    async def edit_message(
        self,
        chat_id: int,
        message_id: int,
        text: str,
        keyboard: Optional[InlineKeyboardMarkup] = None,
    ) -> None:
        try:
            await self._call(
                "editMessageText",
                chat_id=chat_id,
                message_id=message_id,
                text=text,
                parse_mode="HTML",
                disable_web_page_preview=True,
                reply_markup=keyboard.model_dump(exclude_none=True) if keyboard else None,
            )
        except TelegramApiError as e:
            if "message is not modified" in e.description:
                logger.debug("Message %s in chat %s already up to date", message_id, chat_id)
                return
            raise

    async def answer_callback(self, callback_id: str, text: Optional[str] = None) -> None:
        await self._call("answerCallbackQuery", callback_query_id=callback_id, text=text)

    async def aclose(self):
        await self.client.aclose()
