"""Hookcord Discord bot: lifecycle, channel signals and registry bootstrap."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Iterable

import discord
from discord.ext import commands

from hookcord.bot.core import Settings, WebhookServer
from hookcord.bot.transport import DiscordTransport
from hookcord.cache import RecentDeliveries
from hookcord.database import DatabaseManager, PoolConfig
from hookcord.dispatcher import Dispatcher
from hookcord.errors import DuplicateChannel, HookcordError, RegistryNotReady
from hookcord.migrations import MigrationRunner
from hookcord.models import ChannelDescriptor
from hookcord.registry import SubscriptionRegistry
from hookcord.repositories import ChannelConfigRepository

logger = logging.getLogger(__name__)

# Seconds between registry load rounds once the per-round retries are used up
_LOAD_ROUND_DELAY = 60


def describe_channel(channel: discord.abc.GuildChannel) -> ChannelDescriptor:
    return ChannelDescriptor(
        channel_id=str(channel.id),
        channel_name=channel.name,
        guild_id=str(channel.guild.id),
        guild_name=channel.guild.name,
    )


def text_channels(guilds: Iterable[discord.Guild]) -> list[ChannelDescriptor]:
    """Descriptors for every text channel the bot can see."""
    return [describe_channel(ch) for guild in guilds for ch in guild.text_channels]


class HookcordBot(commands.Bot):
    """Discord client that owns the registry, dispatcher and webhook listener."""

    registry: SubscriptionRegistry
    dispatcher: Dispatcher
    webhook_server: WebhookServer

    def __init__(self, settings: Settings):
        intents = discord.Intents.default()
        super().__init__(
            command_prefix=commands.when_mentioned,
            intents=intents,
            help_command=None,
        )
        self.settings = settings
        self.database = DatabaseManager(
            settings.database_url, PoolConfig(ssl=settings.database_ssl)
        )
        self._load_task: asyncio.Task | None = None

    async def setup_hook(self) -> None:
        """Connect the store, start loading the registry, open the webhook listener."""
        settings = self.settings
        await self.database.connect()
        await MigrationRunner(self.database.pool).run_pending()

        self.registry = SubscriptionRegistry(
            ChannelConfigRepository(self.database.pool),
            load_retries=settings.registry_load_retries,
            load_retry_delay=settings.registry_load_retry_delay,
        )
        self.dispatcher = Dispatcher(
            self.registry,
            DiscordTransport(self),
            ready_timeout=settings.registry_ready_timeout,
        )
        self.webhook_server = WebhookServer(
            self.dispatcher,
            bot=self,
            host=settings.webhook_host,
            port=settings.webhook_port,
            deliveries=RecentDeliveries(ttl=settings.delivery_dedupe_ttl),
        )

        # Non-blocking: the gateway connects while configs load
        self._load_task = asyncio.create_task(self._load_registry())
        await self.webhook_server.start()
        await self.load_extension("hookcord.bot.cogs.channel_config")

        if settings.discord_guild_id:
            guild = discord.Object(id=settings.discord_guild_id)
            self.tree.copy_global_to(guild=guild)
            await self.tree.sync(guild=guild)
            logger.info(f"Synced slash commands to guild {settings.discord_guild_id}")
        else:
            await self.tree.sync()
            logger.info("Synced slash commands globally")

    async def _load_registry(self) -> None:
        while not self.registry.is_ready:
            try:
                await self.registry.load()
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(
                    f"Channel configs unavailable ({type(e).__name__}: {e}); "
                    f"retrying in {_LOAD_ROUND_DELAY}s"
                )
                await asyncio.sleep(_LOAD_ROUND_DELAY)
        if self.is_ready():
            # on_ready skipped reconcile while the configs were loading
            await self.reconcile(self.guilds)

    async def _registry_ready(self, reason: str) -> bool:
        """Wait a bounded time for the registry; False (logged) when it stays unloaded."""
        try:
            await self.registry.wait_until_ready(self.settings.registry_ready_timeout)
        except RegistryNotReady as e:
            logger.warning(f"ChannelConf | Skipping {reason}: {e}")
            return False
        return True

    async def reconcile(self, guilds: Iterable[discord.Guild]) -> None:
        """Add default records for text channels the registry does not know yet."""
        if not await self._registry_ready("channel reconcile"):
            return
        await self.registry.reconcile(text_channels(guilds))

    # ==================== Gateway events ====================

    async def on_ready(self) -> None:
        logger.info(f"Bot ready: {self.user} (ID: {self.user.id if self.user else '-'})")
        logger.info(f"Connected to {len(self.guilds)} guild(s) | discord.py {discord.__version__}")
        await self.reconcile(self.guilds)

    async def on_guild_join(self, guild: discord.Guild) -> None:
        logger.info(f"Joined guild {guild.name} ({guild.id})")
        await self.reconcile([guild])

    async def on_guild_channel_create(self, channel: discord.abc.GuildChannel) -> None:
        if not isinstance(channel, discord.TextChannel):
            return
        if not await self._registry_ready(f"new channel #{channel.name}"):
            return
        try:
            await self.registry.create(describe_channel(channel))
        except DuplicateChannel:
            return
        except HookcordError as e:
            logger.error(f"ChannelConf | Could not add #{channel.name} ({channel.id}): {e}")

    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        if not isinstance(channel, discord.TextChannel):
            return
        if not await self._registry_ready(f"deleted channel #{channel.name}"):
            return
        try:
            await self.registry.delete_channel(str(channel.id))
        except HookcordError as e:
            logger.error(f"ChannelConf | Could not delete #{channel.name} ({channel.id}): {e}")

    async def on_guild_channel_update(
        self, before: discord.abc.GuildChannel, after: discord.abc.GuildChannel
    ) -> None:
        if not isinstance(after, discord.TextChannel) or before.name == after.name:
            return
        if not await self._registry_ready(f"renamed channel #{after.name}"):
            return
        if self.registry.find_by_channel(str(after.id)) is None:
            return
        try:
            await self.registry.set_property(str(after.id), "channel_name", after.name)
        except HookcordError as e:
            logger.warning(f"ChannelConf | Could not rename #{after.name} ({after.id}): {e}")

    # ==================== Shutdown ====================

    async def close(self) -> None:
        if getattr(self, "webhook_server", None) is not None:
            await self.webhook_server.stop()
        if getattr(self, "dispatcher", None) is not None:
            await self.dispatcher.drain()
        if self._load_task is not None:
            self._load_task.cancel()
        await super().close()
        await self.database.disconnect()
