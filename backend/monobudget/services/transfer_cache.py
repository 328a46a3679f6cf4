"""Cache of budget transfer payee ids."""
import asyncio
import logging
from typing import Dict
from monobudget.adapters.base import BudgetBackend

logger = logging.getLogger(__name__)


class TransferPayeeCache:
    """
    Memoizes budget account id -> transfer payee id for the process lifetime.

    Concurrent callers for the same account share one in-flight lookup. A
    failed lookup is forgotten so the next caller tries again.
    """

    def __init__(self, backend: BudgetBackend):
        self.backend = backend
        self._lookups: Dict[str, "asyncio.Future[str]"] = {}

    async def get(self, budget_account_id: str) -> str:
        lookup = self._lookups.get(budget_account_id)
        if lookup is None:
            lookup = asyncio.ensure_future(self.backend.get_transfer_payee_id(budget_account_id))
            self._lookups[budget_account_id] = lookup
            lookup.add_done_callback(lambda done: self._forget_failed(budget_account_id, done))
        # One caller's cancellation must not cancel the shared lookup
        return await asyncio.shield(lookup)

    def _forget_failed(self, budget_account_id: str, lookup: "asyncio.Future[str]"):
        if lookup.cancelled() or lookup.exception() is not None:
            if self._lookups.get(budget_account_id) is lookup:
                del self._lookups[budget_account_id]
            if not lookup.cancelled():
                logger.warning(
                    "Transfer payee lookup for %s failed: %s", budget_account_id, lookup.exception()
                )
