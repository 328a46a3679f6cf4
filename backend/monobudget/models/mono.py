"""Monobank API JSON format models."""
from typing import List, Optional
from pydantic import BaseModel, Field
from monobudget.models.statement import StatementItem
from monobudget.utils.currency import currency_alpha_code
from monobudget.utils.timestamp import from_epoch_seconds

# 9999-12-31T23:59:59Z, the last second a datetime can hold
MAX_EPOCH_SECONDS = 253402300799


class MonoStatementItem(BaseModel):
    """Statement item as returned by /personal/statement and the webhook."""

    id: str
    time: int = Field(..., ge=0, le=MAX_EPOCH_SECONDS, description="Unix time, seconds")
    description: str = ""
    mcc: Optional[int] = None
    originalMcc: Optional[int] = None
    hold: bool = False
    amount: int = Field(..., description="Minor units of the account currency")
    operationAmount: Optional[int] = None
    currencyCode: int = Field(..., description="ISO 4217 numeric code of the operation")
    commissionRate: int = 0
    cashbackAmount: int = 0
    balance: Optional[int] = None
    comment: Optional[str] = None
    receiptId: Optional[str] = None
    counterEdrpou: Optional[str] = None
    counterIban: Optional[str] = None
    counterName: Optional[str] = None

    def to_statement_item(self, account_id: str, account_currency: Optional[str] = None) -> StatementItem:
        """Convert to the source-independent StatementItem."""
        return StatementItem(
            id=self.id,
            account_id=account_id,
            time=from_epoch_seconds(self.time),
            amount=self.amount,
            operation_amount=self.operationAmount,
            currency=account_currency or currency_alpha_code(self.currencyCode),
            description=self.description,
            comment=self.comment or None,
            mcc=self.mcc,
            counter_iban=self.counterIban or None,
            hold=self.hold,
        )


class MonoWebhookData(BaseModel):
    account: str
    statementItem: MonoStatementItem


class MonoWebhookPayload(BaseModel):
    """Body of a Monobank webhook POST."""

    type: str = "StatementItem"
    data: MonoWebhookData


class MonoAccount(BaseModel):
    id: str
    currencyCode: int = 980
    balance: Optional[int] = None
    type: Optional[str] = None
    iban: Optional[str] = None
    maskedPan: List[str] = Field(default_factory=list)


class MonoUserInfo(BaseModel):
    """Response of /personal/client-info."""

    clientId: Optional[str] = None
    name: str = ""
    webHookUrl: Optional[str] = None
    accounts: List[MonoAccount] = Field(default_factory=list)

