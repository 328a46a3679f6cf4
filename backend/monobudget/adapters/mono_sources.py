"""Monobank statement sources: per-account polling and the webhook stream."""
import asyncio
import logging
from datetime import datetime, timedelta
from typing import AsyncIterator, Callable, List, Optional

import httpx

from monobudget.adapters.base import StatementSource
from monobudget.adapters.mono import MonoClient
from monobudget.adapters.mono_webhook import MonoWebhookReceiver
from monobudget.exceptions import MonoApiError
from monobudget.models.account import Account
from monobudget.models.statement import StatementItem
from monobudget.services.accounts import AccountDirectory
from monobudget.utils.timestamp import utcnow

logger = logging.getLogger(__name__)


class MonoPollingSource(StatementSource):
    """Polls the statement of one account; pacing comes from the client's rate limit."""

    def __init__(
        self,
        client: MonoClient,
        account: Account,
        lookback: timedelta = timedelta(hours=1),
        now: Callable[[], datetime] = utcnow,
    ):
        self.client = client
        self.account = account
        self.lookback = lookback
        self.name = f"mono-poll:{account.alias}"
        self._now = now
        self._cursor: Optional[datetime] = None

    async def prepare(self) -> bool:
        """Check the account is visible with its token and set the first window."""
        try:
            info = await self.client.fetch_user_info()
        except (httpx.HTTPError, MonoApiError) as e:
            logger.error("Cannot reach Monobank for %s: %s", self.account.alias, e)
            return False

        if self.account.id not in {a.id for a in info.accounts}:
            logger.error(
                "Account %s (%s) is not available with its Monobank token",
                self.account.alias,
                self.account.id,
            )
            return False

        self._cursor = self._now() - self.lookback
        return True

    async def statements(self) -> AsyncIterator[StatementItem]:
        if self._cursor is None:
            self._cursor = self._now() - self.lookback

        while True:
            to_time = self._now()
            try:
                items = await self.client.fetch_statement(
                    self.account.id,
                    self._cursor,
                    to_time,
                    currency=self.account.currency,
                )
            except (httpx.HTTPError, MonoApiError, ValueError) as e:
                # The next attempt waits out the rate limit interval
                logger.warning("Statement poll for %s failed: %s", self.account.alias, e)
                continue

            self._cursor = to_time
            for item in sorted(items, key=lambda i: i.time):
                yield item


class MonoWebhookSource(StatementSource):
    """
    Items pushed by Monobank to the webhook receiver.

    One source serves every configured token; items of accounts that are
    not configured are ignored.
    """

    name = "mono-webhook"

    def __init__(
        self,
        receiver: MonoWebhookReceiver,
        clients: List[MonoClient],
        webhook_url: str,
        accounts: AccountDirectory,
    ):
        self.receiver = receiver
        self.clients = clients
        self.webhook_url = webhook_url
        self.accounts = accounts
        self._queue: "asyncio.Queue[StatementItem]" = asyncio.Queue()
        self._server_task: Optional["asyncio.Task[None]"] = None

    def dispatch(self, item: StatementItem):
        if self.accounts.get(item.account_id) is None:
            logger.info("Ignoring statement %s of unconfigured account %s", item.id, item.account_id)
            return
        self._queue.put_nowait(item)

    async def prepare(self) -> bool:
        """Start the receiver, then register it with Monobank for every token."""
        self._server_task = await self.receiver.start(self.dispatch)
        for client in self.clients:
            try:
                ok = await client.set_webhook(self.webhook_url)
            except (httpx.HTTPError, MonoApiError) as e:
                logger.error("Failed to register webhook %s: %s", self.webhook_url, e)
                ok = False
            if not ok:
                return False
        return True

    async def statements(self) -> AsyncIterator[StatementItem]:
        while True:
            yield await self._queue.get()

    async def aclose(self):
        self.receiver.stop()
        if self._server_task is not None:
            await asyncio.gather(self._server_task, return_exceptions=True)
