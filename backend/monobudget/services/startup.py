"""Checks run before the pipeline starts."""
import logging
from monobudget.exceptions import BudgetBackendError, StartupVerificationError
from monobudget.services.accounts import AccountDirectory
from monobudget.services.transfer_cache import TransferPayeeCache

logger = logging.getLogger(__name__)


class StartupVerifier:
    """Verifies the configured accounts against the budget."""

    def __init__(self, accounts: AccountDirectory, transfer_payees: TransferPayeeCache):
        self.accounts = accounts
        self.transfer_payees = transfer_payees

    async def verify(self):
        """
        Raise StartupVerificationError if the configuration cannot work.

        Resolving every account's transfer payee proves the budget account
        exists and warms the cache used by transfer detection.
        """
        known = self.accounts.list_known_accounts()
        if not known:
            raise StartupVerificationError("No accounts configured")

        for account in known:
            if not account.mono_token:
                raise StartupVerificationError(f"Account {account.alias} has no Monobank token")
            try:
                await self.transfer_payees.get(account.budget_account_id)
            except BudgetBackendError as e:
                raise StartupVerificationError(
                    f"Budget account {account.budget_account_id} of {account.alias} is not usable: {e}"
                ) from e

        logger.info("Verified %d account(s)", len(known))
