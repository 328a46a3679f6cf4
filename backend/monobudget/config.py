"""Configuration settings for the application."""
from pydantic_settings import BaseSettings
from typing import List, Optional
from monobudget.models.account import Account


class Settings(BaseSettings):
    """Application settings."""

    app_name: str = "monobudget"
    debug: bool = False
    log_level: str = "INFO"
    http_timeout: float = 30.0

    # Monobank
    mono_api_url: str = "https://api.monobank.ua"
    mono_statement_interval: float = 60.0
    mono_lookback_hours: float = 1.0
    # Empty webhook url means accounts are polled
    mono_webhook_url: str = ""
    mono_webhook_host: str = "0.0.0.0"
    mono_webhook_port: int = 8080

    # YNAB
    ynab_token: str = ""
    ynab_budget_id: str = ""
    ynab_api_url: str = "https://api.ynab.com/v1"
    ynab_default_retry_after: float = 60.0
    unknown_payee_id: str = ""
    unknown_category_id: str = ""

    # Telegram
    telegram_bot_token: str = ""
    telegram_api_url: str = "https://api.telegram.org"
    telegram_poll_timeout: int = 30
    telegram_error_chat_id: Optional[int] = None

    # Duplicate suppression
    duplicate_retention_seconds: float = 24 * 60 * 60
    duplicate_max_size: int = 10000

    # Known accounts, JSON list in the environment
    accounts: List[Account] = []

    class Config:
        env_file = ".env"
        case_sensitive = False


settings = Settings()
