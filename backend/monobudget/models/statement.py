"""Bank statement models."""
from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class StatementItem(BaseModel):
    """One bank transaction observed by a statement source."""

    id: str = Field(..., description="Source-assigned transaction identifier")
    account_id: str = Field(..., description="Account the transaction belongs to")
    time: datetime = Field(..., description="Transaction time (timezone-aware)")
    amount: int = Field(..., description="Signed amount in minor units of the account currency")
    operation_amount: Optional[int] = Field(None, description="Amount in the operation currency, minor units")
    currency: str = Field(..., description="Account currency code")
    description: str = Field(..., description="Merchant/transaction description")
    comment: Optional[str] = Field(None, description="Free-text memo")
    mcc: Optional[int] = Field(None, description="Merchant category code")
    counter_iban: Optional[str] = Field(None, description="Counterparty IBAN, when the bank reports it")
    hold: bool = Field(default=False, description="Authorization hold not yet settled")

    class Config:
        frozen = True
        json_schema_extra = {
            "example": {
                "id": "ZuHWzqkKGVo=",
                "account_id": "kKGVoZuHWzqVoZuH",
                "time": "2024-01-15T10:30:00Z",
                "amount": -9500,
                "currency": "UAH",
                "description": "Coffee",
                "mcc": 5814,
            }
        }
