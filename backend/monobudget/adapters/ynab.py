"""YNAB budgeting backend adapter."""
import logging
from datetime import timedelta
from typing import Any, Dict, Optional

import httpx

from monobudget.adapters.base import BudgetBackend
from monobudget.exceptions import BudgetBackendError, BudgetRateLimitError, DuplicateTransactionError
from monobudget.models.statement import StatementItem
from monobudget.models.transaction import Transaction, TransactionSave, TransferCandidate
from monobudget.services.accounts import AccountDirectory

logger = logging.getLogger(__name__)

# YNAB amounts are milliunits, statement amounts are hundredths
MILLIUNITS_PER_MINOR = 10
IMPORT_ID_PREFIX = "MONO:"
PAYEE_NAME_LIMIT = 200
MEMO_LIMIT = 500


def to_transaction(data: Dict[str, Any]) -> Transaction:
    """Map a YNAB transaction JSON object to a Transaction."""
    return Transaction(
        id=data["id"],
        account_id=data["account_id"],
        date=data["date"],
        amount=round(data["amount"] / MILLIUNITS_PER_MINOR),
        payee_id=data.get("payee_id"),
        payee_name=data.get("payee_name"),
        category_id=data.get("category_id"),
        category_name=data.get("category_name"),
        memo=data.get("memo"),
        cleared=data.get("cleared") or "uncleared",
        approved=bool(data.get("approved")),
        flag_color=data.get("flag_color") or None,
        import_id=data.get("import_id"),
        transfer_account_id=data.get("transfer_account_id"),
    )


def statement_memo(item: StatementItem) -> str:
    """Memo of a new transaction: description, then the comment if there is one."""
    return " ".join(part for part in (item.description, item.comment) if part)


def to_payload(save: TransactionSave) -> Dict[str, Any]:
    """Map a TransactionSave to the YNAB SaveTransaction JSON object."""
    return {
        "account_id": save.account_id,
        "date": save.date.isoformat(),
        "amount": save.amount * MILLIUNITS_PER_MINOR,
        "payee_id": save.payee_id,
        "payee_name": save.payee_name[:PAYEE_NAME_LIMIT] if save.payee_name else None,
        "category_id": save.category_id,
        "memo": save.memo[:MEMO_LIMIT] if save.memo else None,
        "cleared": save.cleared,
        "approved": save.approved,
        "flag_color": save.flag_color.value if save.flag_color else None,
        "import_id": save.import_id,
    }


class YnabClient(BudgetBackend):
    """YNAB REST API adapter for one budget."""

    def __init__(
        self,
        token: str,
        budget_id: str,
        accounts: AccountDirectory,
        base_url: str = "https://api.ynab.com/v1",
        default_retry_after: float = 60.0,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        if not token:
            raise ValueError("YNAB token required")
        if not budget_id:
            raise ValueError("YNAB budget id required")
        self.budget_id = budget_id
        self.accounts = accounts
        self.default_retry_after = default_retry_after
        self.client = httpx.AsyncClient(
            base_url=f"{base_url}/budgets/{budget_id}",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def _request(self, method: str, path: str, **kwargs) -> Dict[str, Any]:
        """Make an authenticated request and return the `data` object."""
        resp = await self.client.request(method, path, **kwargs)
        if resp.status_code in (200, 201):
            return resp.json()["data"]

        try:
            error = resp.json().get("error", {})
        except ValueError:
            error = {}
        detail = error.get("detail") or resp.text

        if resp.status_code == 429:
            retry_after = self._retry_after(resp)
            logger.warning("YNAB rate limit reached, retry after %.0f s", retry_after)
            raise BudgetRateLimitError(retry_after, detail=detail)
        if resp.status_code == 409:
            raise DuplicateTransactionError(
                "Transaction already exists", status_code=409, error_id=error.get("id"), detail=detail
            )

        logger.error("YNAB API error %s: %s", resp.status_code, resp.text)
        raise BudgetBackendError(
            f"{method} {path} failed",
            status_code=resp.status_code,
            error_id=error.get("id"),
            detail=detail,
        )

    def _retry_after(self, resp: httpx.Response) -> float:
        value = resp.headers.get("Retry-After")
        try:
            return max(float(value), 0.0) if value is not None else self.default_retry_after
        except ValueError:
            return self.default_retry_after

    async def get_transfer_payee_id(self, budget_account_id: str) -> str:
        data = await self._request("GET", f"/accounts/{budget_account_id}")
        payee_id = data["account"].get("transfer_payee_id")
        if not payee_id:
            raise BudgetBackendError(f"Account {budget_account_id} has no transfer payee")
        return payee_id

    async def get_transaction(self, transaction_id: str) -> Transaction:
        data = await self._request("GET", f"/transactions/{transaction_id}")
        return to_transaction(data["transaction"])

    async def update_transaction(self, transaction_id: str, save: TransactionSave) -> Transaction:
        data = await self._request("PUT", f"/transactions/{transaction_id}", json={"transaction": to_payload(save)})
        return to_transaction(data["transaction"])

    async def create_transaction(self, item: StatementItem, candidate: TransferCandidate) -> Transaction:
        """
        Create the transaction for a statement item.

        For a transfer whose other leg was already imported, the budget has
        created this leg on its own; that transaction is returned instead of
        creating a second one.
        """
        budget_account_id = self.accounts.budget_account_for(item.account_id)
        if budget_account_id is None:
            raise BudgetBackendError(f"No budget account configured for {item.account_id}")

        if candidate.is_transfer:
            existing = await self._find_transfer_leg(budget_account_id, item, candidate)
            if existing is not None:
                logger.info("Transfer leg for statement %s already exists: %s", item.id, existing.id)
                return existing

        save = TransactionSave(
            account_id=budget_account_id,
            date=item.time.astimezone().date(),
            amount=item.amount,
            payee_id=candidate.transfer_payee_id if candidate.is_transfer else None,
            memo=statement_memo(item),
            cleared="uncleared" if item.hold else "cleared",
            approved=False,
            import_id=f"{IMPORT_ID_PREFIX}{item.id}"[:36],
        )
        data = await self._request("POST", "/transactions", json={"transaction": to_payload(save)})
        if not data.get("transaction"):
            raise DuplicateTransactionError(
                "Transaction already imported",
                detail=", ".join(data.get("duplicate_import_ids") or []),
            )
        return to_transaction(data["transaction"])

    async def _find_transfer_leg(
        self,
        budget_account_id: str,
        item: StatementItem,
        candidate: TransferCandidate,
    ) -> Optional[Transaction]:
        since = (item.time.astimezone() - timedelta(days=1)).date()
        data = await self._request(
            "GET",
            f"/accounts/{budget_account_id}/transactions",
            params={"since_date": since.isoformat()},
        )
        counterpart_budget_id = candidate.counterpart.budget_account_id
        for raw in data.get("transactions", []):
            if raw.get("deleted"):
                continue
            if (
                raw.get("transfer_account_id") == counterpart_budget_id
                and raw.get("amount") == item.amount * MILLIUNITS_PER_MINOR
            ):
                return to_transaction(raw)
        return None

    async def aclose(self):
        await self.client.aclose()
