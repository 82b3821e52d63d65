"""HTTP listener for GitHub webhooks, plus health endpoints"""

import json
import logging
import time
from typing import TYPE_CHECKING, Any

from aiohttp import web

from hookcord.cache import RecentDeliveries
from hookcord.errors import InvalidInboundEvent
from hookcord.normalizer import require_event

if TYPE_CHECKING:
    from discord.ext.commands import Bot

    from hookcord.dispatcher import Dispatcher
    from hookcord.models import GitHubEvent

logger = logging.getLogger(__name__)


class WebhookServer:
    """Accepts webhook deliveries, acknowledges at once, dispatches in the background"""

    def __init__(
        self,
        dispatcher: "Dispatcher",
        *,
        bot: "Bot | None" = None,
        host: str = "0.0.0.0",
        port: int = 8080,
        deliveries: RecentDeliveries | None = None,
    ) -> None:
        self.dispatcher = dispatcher
        self.bot: Any = bot
        self.host = host
        self.port = port
        self.deliveries = deliveries or RecentDeliveries()
        self.app = web.Application()
        self.runner: web.AppRunner | None = None
        self._start_time: float = time.time()
        self._setup_routes()

    def _setup_routes(self) -> None:
        self.app.router.add_post("/", self.handle_webhook)
        self.app.router.add_post("/webhook", self.handle_webhook)
        self.app.router.add_get("/health", self.handle_health)
        self.app.router.add_get("/ping", self.handle_ping)

    async def handle_webhook(self, request: web.Request) -> web.Response:
        """Validate the delivery shape and hand it to the dispatcher"""
        event_type = request.headers.get("X-GitHub-Event")
        delivery_id = request.headers.get("X-GitHub-Delivery")

        try:
            payload = await request.json()
        except (json.JSONDecodeError, UnicodeDecodeError):
            payload = None

        try:
            event = require_event(event_type, payload, delivery_id)
        except InvalidInboundEvent as e:
            logger.warning(f"Rejected webhook delivery {delivery_id or '-'}: {e}")
            return web.Response(status=403, text="INVALID DATA. PLZ USE GITHUB WEBHOOKS")

        if self.deliveries.check_and_mark(delivery_id):
            return web.Response(status=200, text="Already processed.")

        logger.debug(f"Got a `{event.type}` from {event.repo_name}")
        self.dispatcher.submit(event, on_dropped=self._forget_delivery)
        return web.Response(status=202, text="Processing event.")

    def _forget_delivery(self, event: "GitHubEvent") -> None:
        """A dropped event may be redelivered and should then be processed."""
        self.deliveries.forget(event.delivery_id)

    async def handle_health(self, request: web.Request) -> web.Response:
        """Liveness; always 200, reports registry and gateway readiness"""
        registry_ready = self.dispatcher.registry.is_ready
        bot_ready = self.bot is not None and self.bot.is_ready()
        return web.json_response(
            {
                "status": "healthy" if registry_ready and bot_ready else "starting",
                "registry_ready": registry_ready,
                "bot_ready": bot_ready,
                "pending_dispatches": self.dispatcher.pending,
                "uptime_seconds": int(time.time() - self._start_time),
            }
        )

    async def handle_ping(self, request: web.Request) -> web.Response:
        return web.Response(text="pong")

    async def start(self) -> None:
        """Start the listener"""
        try:
            self.runner = web.AppRunner(self.app)
            await self.runner.setup()
            site = web.TCPSite(self.runner, self.host, self.port)
            await site.start()
            logger.info(f"Webhook listener started on {self.host}:{self.port}")
        except Exception as e:
            logger.exception(f"Failed to start webhook listener: {e}")
            raise

    async def stop(self) -> None:
        """Stop the listener"""
        if self.runner:
            try:
                await self.runner.cleanup()
                logger.info("Webhook listener stopped")
            except Exception as e:
                logger.exception(f"Error stopping webhook listener: {e}")
            finally:
                self.runner = None
