"""Factories for creating adapters from settings."""
from datetime import timedelta
from typing import Dict, List
from urllib.parse import urlparse
from monobudget.adapters.base import StatementSource
from monobudget.adapters.mono import MonoClient
from monobudget.adapters.mono_sources import MonoPollingSource, MonoWebhookSource
from monobudget.adapters.mono_webhook import MonoWebhookReceiver
from monobudget.adapters.telegram import TelegramClient
from monobudget.adapters.ynab import YnabClient
from monobudget.config import Settings
from monobudget.services.accounts import AccountDirectory


def get_mono_clients(settings: Settings, accounts: AccountDirectory) -> Dict[str, MonoClient]:
    """
    One client per distinct Monobank token.

    Accounts sharing a token share its client and therefore its rate limit.
    """
    clients: Dict[str, MonoClient] = {}
    for account in accounts.list_known_accounts():
        if account.mono_token not in clients:
            clients[account.mono_token] = MonoClient(
                account.mono_token,
                base_url=settings.mono_api_url,
                min_interval=settings.mono_statement_interval,
                timeout=settings.http_timeout,
            )
    return clients


def get_statement_sources(
    settings: Settings,
    accounts: AccountDirectory,
    clients: Dict[str, MonoClient],
) -> List[StatementSource]:
    """
    Webhook source if a webhook url is configured, else one polling source per account.
    """
    if settings.mono_webhook_url:
        receiver = MonoWebhookReceiver(
            path=urlparse(settings.mono_webhook_url).path or "/",
            host=settings.mono_webhook_host,
            port=settings.mono_webhook_port,
            currencies={a.id: a.currency for a in accounts.list_known_accounts()},
        )
        return [MonoWebhookSource(receiver, list(clients.values()), settings.mono_webhook_url, accounts)]

    lookback = timedelta(hours=settings.mono_lookback_hours)
    return [
        MonoPollingSource(clients[account.mono_token], account, lookback=lookback)
        for account in accounts.list_known_accounts()
    ]


def get_budget_backend(settings: Settings, accounts: AccountDirectory) -> YnabClient:
    return YnabClient(
        settings.ynab_token,
        settings.ynab_budget_id,
        accounts,
        base_url=settings.ynab_api_url,
        default_retry_after=settings.ynab_default_retry_after,
        timeout=settings.http_timeout,
    )


def get_chat_transport(settings: Settings) -> TelegramClient:
    return TelegramClient(
        settings.telegram_bot_token,
        base_url=settings.telegram_api_url,
        poll_timeout=settings.telegram_poll_timeout,
        timeout=settings.http_timeout,
    )
