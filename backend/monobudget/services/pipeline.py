"""Statement processing pipeline."""
import asyncio
import logging
from typing import List, Optional
from monobudget.adapters.base import BudgetBackend, ChatTransport, StatementSource
from monobudget.exceptions import BudgetBackendError, DuplicateTransactionError
from monobudget.models.statement import StatementItem
from monobudget.models.telegram import MessageRef
from monobudget.services.accounts import AccountDirectory
from monobudget.services.callback_handler import CallbackHandler
from monobudget.services.duplicates import DuplicateChecker
from monobudget.services.error_notifier import ErrorNotifier
from monobudget.services.messages import render_statement_message
from monobudget.services.startup import StartupVerifier
from monobudget.services.transfer_detector import TransferDetector
from monobudget.utils.currency import format_amount

logger = logging.getLogger(__name__)


class StatementPipeline:
    """
    Turns statement items into budget transactions and chat messages.

    Every source gets its own worker, so items of one source are handled
    strictly in order while sources never wait for each other.
    """

    def __init__(
        self,
        sources: List[StatementSource],
        duplicates: DuplicateChecker,
        detector: TransferDetector,
        budget: BudgetBackend,
        chat: ChatTransport,
        accounts: AccountDirectory,
        callback_handler: CallbackHandler,
        notifier: ErrorNotifier,
        verifier: Optional[StartupVerifier] = None,
        restart_delay: float = 5.0,
    ):
        self.sources = sources
        self.duplicates = duplicates
        self.detector = detector
        self.budget = budget
        self.chat = chat
        self.accounts = accounts
        self.callback_handler = callback_handler
        self.notifier = notifier
        self.verifier = verifier
        self.restart_delay = restart_delay

    async def run(self):
        """
        Run until cancelled.

        Raises:
            SystemExit: If startup verification fails
        """
        await self._run_startup_checks()

        if not await self._prepare_sources():
            logger.error("Statement sources are not ready, not starting")
            await self._close_sources()
            return

        tasks = [await self.chat.start(self.callback_handler.handle)]
        tasks += [
            asyncio.create_task(self._consume(source), name=f"source:{source.name}")
            for source in self.sources
        ]
        logger.info("Started application with %d statement source(s)", len(self.sources))
        try:
            await asyncio.gather(*tasks)
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            await self._close_sources()

    async def _run_startup_checks(self):
        if self.verifier is None:
            return
        try:
            await self.verifier.verify()
        except Exception as e:
            logger.exception("Failed to start application. Exiting...")
            raise SystemExit(1) from e

    async def _prepare_sources(self) -> bool:
        for source in self.sources:
            try:
                ready = await source.prepare()
            except Exception:
                logger.exception("Failed to prepare statement source %s", source.name)
                ready = False
            if not ready:
                return False
        return True

    async def _close_sources(self):
        for source in self.sources:
            await source.aclose()

    async def _consume(self, source: StatementSource):
        """Feed one source into `process`, restarting its stream if it fails."""
        while True:
            try:
                async for item in source.statements():
                    await self.process(item)
                return
            except Exception:
                logger.exception(
                    "Statement source %s failed, restarting in %.0f s", source.name, self.restart_delay
                )
                await asyncio.sleep(self.restart_delay)

    async def process(self, item: StatementItem) -> Optional[MessageRef]:
        """
        Handle one statement item; never raises for item-level failures.

        Returns:
            Reference to the sent message, or None if the item was dropped or failed
        """
        if self.duplicates.is_duplicate(item):
            return None

        self._log_statement(item)
        try:
            return await self._process_statement(item)
        except DuplicateTransactionError as e:
            logger.info("Statement %s was already imported: %s", item.id, e)
        except BudgetBackendError as e:
            logger.error("Budget backend rejected statement %s: %s", item.id, e)
            await self.notifier.on_budget_backend_error(e)
        except Exception as e:
            logger.exception("Failed to process statement %s", item.id)
            await self.notifier.on_unknown_error(e)
        return None

    async def _process_statement(self, item: StatementItem) -> MessageRef:
        candidate = await self.detector.check_transfer(item)
        transaction = await self.budget.create_transaction(item, candidate)

        alias = self.accounts.alias_for(item.account_id)
        message = render_statement_message(item, transaction, alias)

        chat_id = self.accounts.chat_id_for(item.account_id)
        if chat_id is None:
            raise LookupError(f"No chat configured for account {item.account_id}")
        return await self.chat.send_message(chat_id, message.text, message.keyboard)

    def _log_statement(self, item: StatementItem):
        alias = self.accounts.alias_for(item.account_id)
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("Incoming transaction from %s's account.\n%s", alias, item.model_dump_json(indent=2))
        else:
            logger.info(
                "Incoming transaction from %s's account. Amount: %s, Description: %s, Memo: %s",
                alias,
                format_amount(item.amount, item.currency),
                item.description,
                item.comment or "",
            )
