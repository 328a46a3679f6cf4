"""Detection of transfers between the user's own accounts."""
import logging
from typing import Optional
from monobudget.models.statement import StatementItem
from monobudget.models.transaction import TransferCandidate
from monobudget.services.accounts import AccountDirectory
from monobudget.services.transfer_cache import TransferPayeeCache

logger = logging.getLogger(__name__)


def counterparty_identity(item: StatementItem) -> Optional[str]:
    """Identity of the other side of a statement item, as reported by the bank."""
    return item.counter_iban


class TransferDetector:
    """Classifies statement items as ordinary transactions or transfer legs."""

    def __init__(self, accounts: AccountDirectory, transfer_payees: TransferPayeeCache):
        self.accounts = accounts
        self.transfer_payees = transfer_payees

    async def check_transfer(self, item: StatementItem) -> TransferCandidate:
        counterpart = self.accounts.by_iban(counterparty_identity(item))
        if counterpart is None or counterpart.id == item.account_id:
            return TransferCandidate(item=item)

        payee_id = await self.transfer_payees.get(counterpart.budget_account_id)
        logger.info(
            "Statement %s is a transfer between %s and %s",
            item.id,
            self.accounts.alias_for(item.account_id),
            counterpart.alias,
        )
        return TransferCandidate(item=item, counterpart=counterpart, transfer_payee_id=payee_id)
