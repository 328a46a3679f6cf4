"""Application entry point: wires the adapters and runs the pipeline."""
import asyncio
import logging
from typing import List, Optional
from monobudget.adapters.base import BudgetBackend, ChatTransport, StatementSource
from monobudget.adapters.factory import (
    get_budget_backend,
    get_chat_transport,
    get_mono_clients,
    get_statement_sources,
)
from monobudget.config import Settings, settings as default_settings
from monobudget.services.accounts import AccountDirectory
from monobudget.services.callback_handler import CallbackHandler
from monobudget.services.duplicates import DuplicateChecker
from monobudget.services.error_notifier import ErrorNotifier
from monobudget.services.pipeline import StatementPipeline
from monobudget.services.rate_limit import RetryWithRateLimit
from monobudget.services.startup import StartupVerifier
from monobudget.services.transfer_cache import TransferPayeeCache
from monobudget.services.transfer_detector import TransferDetector

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

logger = logging.getLogger(__name__)


def _configure_logging(level: str) -> None:
    if logging.root.handlers:
        return
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)
    # Request lines of the HTTP clients are too chatty at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)


def build_pipeline(
    settings: Settings,
    accounts: AccountDirectory,
    sources: List[StatementSource],
    budget: BudgetBackend,
    chat: ChatTransport,
) -> StatementPipeline:
    """Assemble the pipeline around already created collaborators."""
    transfer_payees = TransferPayeeCache(budget)

    error_chats = accounts.chat_ids()
    if settings.telegram_error_chat_id is not None:
        error_chats = {settings.telegram_error_chat_id}
    notifier = ErrorNotifier(chat, error_chats)

    callback_handler = CallbackHandler(
        chat,
        budget,
        accounts,
        RetryWithRateLimit(),
        unknown_payee_id=settings.unknown_payee_id or None,
        unknown_category_id=settings.unknown_category_id or None,
        notifier=notifier,
    )
    return StatementPipeline(
        sources=sources,
        duplicates=DuplicateChecker(
            retention_seconds=settings.duplicate_retention_seconds,
            max_size=settings.duplicate_max_size,
        ),
        detector=TransferDetector(accounts, transfer_payees),
        budget=budget,
        chat=chat,
        accounts=accounts,
        callback_handler=callback_handler,
        notifier=notifier,
        verifier=StartupVerifier(accounts, transfer_payees),
    )


async def run(settings: Optional[Settings] = None):
    settings = settings or default_settings
    accounts = AccountDirectory(settings.accounts)

    clients = get_mono_clients(settings, accounts)
    budget = get_budget_backend(settings, accounts)
    chat = get_chat_transport(settings)
    try:
        sources = get_statement_sources(settings, accounts, clients)
        pipeline = build_pipeline(settings, accounts, sources, budget, chat)
        await pipeline.run()
    finally:
        for client in clients.values():
            await client.aclose()
        await budget.aclose()
        await chat.aclose()


def main():
    _configure_logging(default_settings.log_level)
    logger.info("Starting %s", default_settings.app_name)
    try:
        asyncio.run(run())
    except ValueError as e:
        # Missing tokens or ids are reported by the client constructors
        logger.error("Invalid configuration: %s", e)
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        logger.info("Stopped")


if __name__ == "__main__":
    main()
