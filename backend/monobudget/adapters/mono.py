"""Monobank personal API client."""
import asyncio
import logging
import time
from datetime import datetime
from typing import Any, Awaitable, Callable, List, Optional

import httpx

from monobudget.exceptions import MonoApiError
from monobudget.models.mono import MonoStatementItem, MonoUserInfo
from monobudget.models.statement import StatementItem
from monobudget.utils.timestamp import to_epoch_seconds, utcnow

logger = logging.getLogger(__name__)

# Monobank allows one statement request per 60 seconds per token
STATEMENT_CALL_INTERVAL = 60.0


class MonoClient:
    """
    Monobank API client for one personal token.

    Statement requests are serialized per client and spaced at least
    `min_interval` seconds apart, measured from the end of the previous
    request, whether it succeeded or not.
    """

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.monobank.ua",
        min_interval: float = STATEMENT_CALL_INTERVAL,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        if not token:
            raise ValueError("Monobank token required")
        self.min_interval = min_interval
        self.client = httpx.AsyncClient(
            base_url=base_url,
            headers={"X-Token": token},
            timeout=timeout,
            transport=transport,
        )
        self._clock = clock
        self._sleep = sleep
        self._last_call: Optional[float] = None
        self._lock = asyncio.Lock()
        self._user_info: Optional[MonoUserInfo] = None

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        """Make an authenticated request to the Monobank API."""
        resp = await self.client.request(method, path, **kwargs)
        if resp.status_code != 200:
            logger.error("Monobank API error %s: %s", resp.status_code, resp.text)
            raise MonoApiError(f"{method} {path} failed: {resp.text}", resp.status_code)
        return resp.json()

    async def fetch_user_info(self, refresh: bool = False) -> MonoUserInfo:
        """Client info with the token's accounts; cached after the first call."""
        if self._user_info is None or refresh:
            data = await self._request("GET", "/personal/client-info")
            self._user_info = MonoUserInfo.model_validate(data)
        return self._user_info

    async def set_webhook(self, url: str) -> bool:
        """Register `url` as the webhook for this token."""
        data = await self._request("POST", "/personal/webhook", json={"webHookUrl": url})
        status = str(data.get("status", "")).lower() if isinstance(data, dict) else ""
        if status != "ok":
            logger.error("Monobank rejected webhook %s: %s", url, data)
            return False
        logger.info("Webhook setup successful: %s", url)
        return True

    async def fetch_statement(
        self,
        account_id: str,
        from_time: datetime,
        to_time: Optional[datetime] = None,
        currency: Optional[str] = None,
    ) -> List[StatementItem]:
        """
        Fetch statement items of an account for a time window.

        Args:
            account_id: Monobank account identifier
            from_time: Window start
            to_time: Window end, defaults to now
            currency: Account currency code to stamp on the items

        Returns:
            Statement items as returned by the bank (newest first)
        """
        to_time = to_time or utcnow()
        path = f"/personal/statement/{account_id}/{to_epoch_seconds(from_time)}/{to_epoch_seconds(to_time)}"

        async with self._lock:
            if self._last_call is not None:
                elapsed = self._clock() - self._last_call
                if elapsed < self.min_interval:
                    await self._sleep(self.min_interval - elapsed)
            try:
                data = await self._request("GET", path)
            finally:
                self._last_call = self._clock()

        return [
            MonoStatementItem.model_validate(raw).to_statement_item(account_id, currency)
            for raw in data
        ]

    async def aclose(self):
        await self.client.aclose()
