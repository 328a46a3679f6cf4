"""Directory of the configured bank accounts."""
from typing import Dict, Iterable, List, Optional, Set
from monobudget.models.account import Account


def normalize_iban(iban: Optional[str]) -> Optional[str]:
    if not iban:
        return None
    return "".join(iban.split()).upper() or None


class AccountDirectory:
    """Read-only lookups over the accounts loaded at startup."""

    def __init__(self, accounts: Iterable[Account]):
        self._accounts: Dict[str, Account] = {}
        self._by_iban: Dict[str, Account] = {}
        for account in accounts:
            self._accounts[account.id] = account
            iban = normalize_iban(account.iban)
            if iban:
                self._by_iban[iban] = account

    def list_known_accounts(self) -> List[Account]:
        return list(self._accounts.values())

    def get(self, account_id: str) -> Optional[Account]:
        return self._accounts.get(account_id)

    def alias_for(self, account_id: str) -> Optional[str]:
        account = self._accounts.get(account_id)
        return account.alias if account else None

    def chat_id_for(self, account_id: str) -> Optional[int]:
        account = self._accounts.get(account_id)
        return account.telegram_chat_id if account else None

    def budget_account_for(self, account_id: str) -> Optional[str]:
        account = self._accounts.get(account_id)
        return account.budget_account_id if account else None

    def by_iban(self, iban: Optional[str]) -> Optional[Account]:
        key = normalize_iban(iban)
        return self._by_iban.get(key) if key else None

    def chat_ids(self) -> Set[int]:
        """Chats allowed to receive messages and press buttons."""
        return {a.telegram_chat_id for a in self._accounts.values()}
