"""Routes normalized events to subscribed channels and fans out delivery."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import Any, Protocol

from hookcord.errors import DeliveryFailure, HookcordError
from hookcord.models import ChannelConfig, DeliveryTarget, GitHubEvent, RenderFormat
from hookcord.normalizer import normalize
from hookcord.registry import SubscriptionRegistry
from hookcord.renderers import RenderedMessage, render

logger = logging.getLogger(__name__)


class Transport(Protocol):
    async def deliver(self, channel_id: str, message: RenderedMessage) -> None: ...


Renderer = Callable[[GitHubEvent, RenderFormat], RenderedMessage]


def suppression_reason(config: ChannelConfig, event: GitHubEvent) -> str | None:
    """Why *config*'s channel does not want *event*, or None if it does."""
    for key in event.filter_keys:
        if key in config.disabled_events:
            return f"event '{key}' disabled"
    if event.actor_id and event.actor_id in config.ignored_users:
        return f"user '{event.actor_id}' ignored"
    if event.branch_ref and event.branch_ref in config.ignored_branches:
        return f"branch '{event.branch_ref}' ignored"
    return None


class Dispatcher:
    """Turns one event into deliveries to every channel that wants it."""

    def __init__(
        self,
        registry: SubscriptionRegistry,
        transport: Transport,
        renderer: Renderer = render,
        *,
        ready_timeout: float = 30.0,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.renderer = renderer
        self.ready_timeout = ready_timeout
        self._tasks: set[asyncio.Task[Any]] = set()

    def route(self, event: GitHubEvent) -> list[DeliveryTarget]:
        """Delivery targets for *event*, one per channel, ordered by channel id."""
        targets: dict[str, DeliveryTarget] = {}
        for config in self.registry.find_by_repo(event.repo_id):
            reason = suppression_reason(config, event)
            if reason:
                logger.debug(f"Skipping channel {config.channel_id} for {event.type}: {reason}")
                continue
            targets.setdefault(
                config.channel_id, DeliveryTarget(config.channel_id, config.preferred_format)
            )
        return [targets[channel_id] for channel_id in sorted(targets)]

    async def dispatch(self, event: GitHubEvent) -> int:
        """Route, render and deliver *event*. Returns the number of successful deliveries."""
        await self.registry.wait_until_ready(self.ready_timeout)
        targets = self.route(event)
        if not targets:
            logger.debug(f"No channels want {event.type} from {event.repo_id}")
            return 0

        results = await asyncio.gather(*(self._deliver(event, t) for t in targets))
        delivered = sum(results)
        logger.info(
            f"Delivered {event.type}{f'/{event.subtype}' if event.subtype else ''} "
            f"from {event.repo_id} to {delivered}/{len(targets)} channel(s)"
        )
        return delivered

    async def _deliver(self, event: GitHubEvent, target: DeliveryTarget) -> bool:
        """Render and send to one channel so a failure there does not affect others."""
        try:
            message = self.renderer(event, target.format)
            await self.transport.deliver(target.channel_id, message)
            return True
        except asyncio.CancelledError:
            raise
        except DeliveryFailure as e:
            logger.warning(str(e))
        except Exception:
            logger.exception(f"Failed to deliver {event.type} to channel {target.channel_id}")
        return False

    async def handle_event(
        self, event: GitHubEvent, on_dropped: Callable[[GitHubEvent], None] | None = None
    ) -> int:
        """Dispatch and log-and-drop any routing error.

        *on_dropped* is called when the event was never routed, e.g. the
        registry did not become ready in time.
        """
        try:
            return await self.dispatch(event)
        except asyncio.CancelledError:
            raise
        except HookcordError as e:
            logger.warning(f"Dropping {event.type} from {event.repo_id}: {e}")
        except Exception:
            logger.exception(f"Unexpected error dispatching {event.type} from {event.repo_id}")
        if on_dropped is not None:
            on_dropped(event)
        return 0

    async def handle(
        self, event_type: str | None, payload: Any, delivery_id: str | None = None
    ) -> int:
        """Normalize a raw delivery and dispatch it."""
        event = normalize(event_type, payload, delivery_id)
        if event is None:
            return 0
        return await self.handle_event(event)

    def submit(
        self, event: GitHubEvent, on_dropped: Callable[[GitHubEvent], None] | None = None
    ) -> asyncio.Task[int]:
        """Dispatch *event* in the background and return immediately."""
        task = asyncio.create_task(self.handle_event(event, on_dropped))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    @property
    def pending(self) -> int:
        return len(self._tasks)

    async def drain(self, timeout: float | None = 10.0) -> None:
        """Wait for background dispatches to finish; cancel stragglers."""
        if not self._tasks:
            return
        _, still_running = await asyncio.wait(set(self._tasks), timeout=timeout)
        for task in still_running:
            task.cancel()
        if still_running:
            logger.warning(f"Cancelled {len(still_running)} unfinished dispatch(es)")
