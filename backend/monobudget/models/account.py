"""Known bank account models."""
from typing import Optional
from pydantic import BaseModel, Field


class Account(BaseModel):
    """A bank account under the user's control, loaded once from settings."""

    id: str = Field(..., description="Monobank account identifier")
    alias: str = Field(..., description="Display alias used in logs and messages")
    currency: str = Field(default="UAH", description="Account currency code")
    iban: Optional[str] = Field(None, description="IBAN, used to recognise transfers into this account")
    mono_token: str = Field(default="", description="Monobank personal token owning this account")
    budget_account_id: str = Field(..., description="Matching account identifier in the budget")
    telegram_chat_id: int = Field(..., description="Chat that receives this account's transactions")

    class Config:
        frozen = True
