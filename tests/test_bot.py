"""Tests for the bot's registry bootstrap and channel signals."""

from types import SimpleNamespace

import pytest_asyncio

from hookcord.bot.bot import HookcordBot, text_channels
from hookcord.bot.core import Settings
from hookcord.registry import SubscriptionRegistry


def _settings(**overrides) -> Settings:
    values = {
        "discord_bot_token": "token",
        "database_url": "postgresql://hookcord@localhost/hookcord",
        "registry_ready_timeout": 0.01,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


def _guild(guild_id: int, name: str, channels: list[tuple[int, str]]):
    guild = SimpleNamespace(id=guild_id, name=name, text_channels=[])
    guild.text_channels = [SimpleNamespace(id=cid, name=cname, guild=guild) for cid, cname in channels]
    return guild


@pytest_asyncio.fixture
async def bot(store):
    bot = HookcordBot(_settings())
    bot.registry = SubscriptionRegistry(store, load_retries=1, load_retry_delay=0)
    return bot


class TestRegistryGate:
    async def test_gives_up_after_timeout(self, bot):
        assert await bot._registry_ready("test") is False

    async def test_ready_after_load(self, bot):
        await bot.registry.load()
        assert await bot._registry_ready("test") is True

    async def test_reconcile_skipped_while_unloaded(self, bot, store):
        await bot.reconcile([_guild(1, "Acme", [(10, "general")])])
        assert store.writes == []
        assert bot.registry.is_ready is False

    async def test_reconcile_adds_channels_once_loaded(self, bot):
        await bot.registry.load()
        await bot.reconcile([_guild(1, "Acme", [(10, "general"), (11, "dev")])])
        config = bot.registry.find_by_channel("11")
        assert config.channel_name == "dev"
        assert config.guild_id == "1"
        assert config.guild_name == "Acme"


def test_text_channels_descriptors():
    descriptors = text_channels([_guild(7, "Acme", [(70, "general")])])
    assert [(d.channel_id, d.channel_name, d.guild_id) for d in descriptors] == [
        ("70", "general", "7")
    ]
