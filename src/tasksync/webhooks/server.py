"""aiohttp receiver for Linear webhook deliveries."""

from __future__ import annotations

import asyncio
import logging

from aiohttp import web

from tasksync.contracts.exceptions import SignatureError
from tasksync.contracts.linear import WebhookEvent
from tasksync.contracts.sync import SyncDirection, SyncOptions
from tasksync.engine.engine import SyncEngine
from tasksync.webhooks.signature import SIGNATURE_HEADER, require_signature

logger = logging.getLogger(__name__)

DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3456
DEFAULT_PATH = "/linear-webhook"

# Accepted so Linear does not disable the webhook, but not synced yet.
ACKNOWLEDGED_TYPES = frozenset({"Comment", "IssueLabel", "Reaction"})


class WebhookReceiver:
    """Accepts signed Linear events and re-pulls the affected issue.

    Only ``POST`` to the configured path is served; every other method or
    path answers 404. When *secret* is set, deliveries must carry a valid
    ``Linear-Signature`` header or they are rejected with 401.
    """

    def __init__(
        self,
        engine: SyncEngine,
        *,
        secret: str | None = None,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT,
        path: str = DEFAULT_PATH,
    ) -> None:
        self._engine = engine
        self._secret = secret or None
        self._host = host
        self._port = port
        self._path = path if path.startswith("/") else f"/{path}"
        self._runner: web.AppRunner | None = None

    @property
    def is_running(self) -> bool:
        return self._runner is not None

    @property
    def url(self) -> str:
        return f"http://{self._host}:{self._port}{self._path}"

    def build_app(self) -> web.Application:
        app = web.Application()
        app.router.add_route("*", "/{tail:.*}", self._handle)
        return app

    async def start(self) -> None:
        if self._runner is not None:
            logger.warning("Webhook receiver is already running on %s", self.url)
            return
        runner = web.AppRunner(self.build_app())
        await runner.setup()
        site = web.TCPSite(runner, self._host, self._port)
        try:
            await site.start()
        except OSError:
            await runner.cleanup()
            raise
        self._runner = runner
        logger.info("Webhook receiver listening on %s", self.url)

    async def stop(self) -> None:
        if self._runner is None:
            return
        runner, self._runner = self._runner, None
        await runner.cleanup()
        logger.info("Webhook receiver stopped")

    async def serve_forever(self) -> None:
        """Start the receiver and block until cancelled."""
        await self.start()
        try:
            await asyncio.Event().wait()
        finally:
            await self.stop()

    async def _handle(self, request: web.Request) -> web.Response:
        if request.method != "POST" or request.path != self._path:
            return web.json_response({"error": "Not found"}, status=404)

        body = await request.read()
        if self._secret is not None:
            try:
                require_signature(self._secret, body, request.headers.get(SIGNATURE_HEADER))
            except SignatureError as exc:
                logger.warning("Rejected webhook delivery: %s", exc)
                return web.json_response({"error": "Invalid signature"}, status=401)

        try:
            event = WebhookEvent.model_validate_json(body)
            await self.dispatch(event)
        except Exception:
            logger.exception("Failed to process webhook delivery")
            return web.json_response({"error": "Internal server error"}, status=500)
        return web.json_response({"success": True})

    async def dispatch(self, event: WebhookEvent) -> None:
        if event.type == "Issue":
            await self._handle_issue(event)
        elif event.type in ACKNOWLEDGED_TYPES:
            logger.info("Acknowledged %s %s event", event.type, event.action or "")
        else:
            logger.info("Ignoring unsupported webhook event type: %s", event.type)

    async def _handle_issue(self, event: WebhookEvent) -> None:
        issue_id = event.entity_id
        if issue_id is None:
            raise ValueError("Issue event carries no data.id")
        logger.info("Issue %s %s; pulling it", issue_id, event.action or "changed")
        result = await self._engine.sync(SyncOptions(direction=SyncDirection.PULL, issue_id=issue_id))
        if result.errors:
            logger.warning("Pull for issue %s reported %d errors", issue_id, len(result.errors))
