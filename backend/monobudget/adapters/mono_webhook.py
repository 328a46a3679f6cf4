"""
Monobank webhook receiver.

Monobank POSTs every new statement item to the registered URL and checks
the URL with a GET when the webhook is set. Both are answered with 200 OK;
what happens to the item afterwards is the pipeline's business, so the
receiver acknowledges even when parsing or dispatch fails.
"""
import asyncio
import logging
from typing import Callable, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.responses import PlainTextResponse

from monobudget.models.mono import MonoWebhookPayload
from monobudget.models.statement import StatementItem

logger = logging.getLogger(__name__)

Dispatch = Callable[[StatementItem], None]


def create_webhook_app(
    path: str,
    dispatch: Dispatch,
    currencies: Optional[Dict[str, str]] = None,
) -> FastAPI:
    """
    Build the FastAPI app serving the webhook path.

    Args:
        path: URL path registered with Monobank
        dispatch: Called with each received statement item
        currencies: Account id -> account currency code
    """
    currencies = currencies or {}
    app = FastAPI(title="monobudget webhook", docs_url=None, redoc_url=None, openapi_url=None)

    @app.get(path, response_class=PlainTextResponse)
    async def verify_webhook():
        """Webhook verification call made by Monobank when the URL is set."""
        return "OK\n"

    @app.post(path, response_class=PlainTextResponse)
    async def receive_statement(request: Request):
        """Receive one statement item."""
        try:
            payload = MonoWebhookPayload.model_validate(await request.json())
            account_id = payload.data.account
            item = payload.data.statementItem.to_statement_item(account_id, currencies.get(account_id))
        except (ValueError, OverflowError, OSError) as e:
            logger.warning("Ignoring malformed webhook payload: %s", e)
            return "OK\n"

        try:
            dispatch(item)
        except Exception:
            logger.exception("Failed to dispatch webhook statement %s", item.id)
        return "OK\n"

    return app


class MonoWebhookReceiver:
    """Serves the webhook app with uvicorn inside the running event loop."""

    def __init__(
        self,
        path: str = "/",
        host: str = "0.0.0.0",
        port: int = 8080,
        currencies: Optional[Dict[str, str]] = None,
    ):
        self.path = path or "/"
        self.host = host
        self.port = port
        self.currencies = currencies or {}
        self.server: Optional[uvicorn.Server] = None

    async def start(self, dispatch: Dispatch) -> "asyncio.Task[None]":
        """Start serving and return the server task once it accepts connections."""
        app = create_webhook_app(self.path, dispatch, self.currencies)
        config = uvicorn.Config(app, host=self.host, port=self.port, log_level="warning")
        self.server = uvicorn.Server(config)
        task = asyncio.create_task(self.server.serve(), name="mono-webhook")

        while not self.server.started and not task.done():
            await asyncio.sleep(0.05)
        if task.done():
            # Re-raises the startup failure
            task.result()
            raise RuntimeError(f"Webhook server on port {self.port} stopped during startup")

        logger.info("Listening for Monobank webhooks on %s:%s%s", self.host, self.port, self.path)
        return task

    def stop(self):
        if self.server is not None:
            self.server.should_exit = True
