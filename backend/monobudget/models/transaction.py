"""Budget transaction data models."""
from datetime import date
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field
from monobudget.models.account import Account
from monobudget.models.statement import StatementItem


class FlagColor(str, Enum):
    """Flag colors supported by the budget."""

    RED = "red"
    ORANGE = "orange"
    YELLOW = "yellow"
    GREEN = "green"
    BLUE = "blue"
    PURPLE = "purple"


class TransactionSave(BaseModel):
    """Desired state of a budget transaction, as submitted on create/update."""

    account_id: str
    date: date
    amount: int = Field(..., description="Signed amount in minor units")
    payee_id: Optional[str] = None
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    memo: Optional[str] = None
    cleared: str = "uncleared"
    approved: bool = False
    flag_color: Optional[FlagColor] = None
    import_id: Optional[str] = None

    class Config:
        frozen = True


class Transaction(BaseModel):
    """Transaction as stored in the budgeting backend."""

    id: str = Field(..., description="Backend transaction identifier")
    account_id: str = Field(..., description="Backend account identifier")
    date: date
    amount: int = Field(..., description="Signed amount in minor units")
    payee_id: Optional[str] = None
    payee_name: Optional[str] = None
    category_id: Optional[str] = None
    category_name: Optional[str] = None
    memo: Optional[str] = None
    cleared: str = "uncleared"
    approved: bool = False
    flag_color: Optional[FlagColor] = None
    import_id: Optional[str] = None
    transfer_account_id: Optional[str] = None

    class Config:
        frozen = True

    def to_save(self) -> TransactionSave:
        """Current state as an update payload."""
        return TransactionSave(
            account_id=self.account_id,
            date=self.date,
            amount=self.amount,
            payee_id=self.payee_id,
            payee_name=self.payee_name,
            category_id=self.category_id,
            memo=self.memo,
            cleared=self.cleared,
            approved=self.approved,
            flag_color=self.flag_color,
            import_id=self.import_id,
        )


class TransferCandidate(BaseModel):
    """A statement item together with its transfer classification."""

    item: StatementItem
    counterpart: Optional[Account] = Field(None, description="Known account on the other side of a transfer")
    transfer_payee_id: Optional[str] = Field(None, description="Budget payee representing the counterpart account")

    class Config:
        frozen = True

    @property
    def is_transfer(self) -> bool:
        return self.counterpart is not None
