"""Pytest configuration and fixtures."""

from dataclasses import replace
from typing import Any

import pytest
import pytest_asyncio

from hookcord.models import ChannelConfig, ChannelDescriptor
from hookcord.registry import SubscriptionRegistry
from hookcord.renderers import RenderedMessage


class FakeConfigStore:
    """In-memory stand-in for ChannelConfigRepository."""

    def __init__(self, configs: list[ChannelConfig] | None = None):
        self.rows: dict[str, ChannelConfig] = {c.channel_id: c for c in configs or []}
        self.fail_writes = False
        self.fail_reads = 0
        self.list_calls = 0
        self.writes: list[tuple[str, str, Any]] = []

    async def list_configs(self) -> list[ChannelConfig]:
        self.list_calls += 1
        if self.fail_reads:
            self.fail_reads -= 1
            raise ConnectionError("store unavailable")
        return [self.rows[k] for k in sorted(self.rows)]

    async def insert_config(self, config: ChannelConfig) -> ChannelConfig:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        if config.channel_id in self.rows:
            raise ValueError("duplicate key")
        self.rows[config.channel_id] = config
        self.writes.append((config.channel_id, "insert", None))
        return config

    async def update_field(self, channel_id: str, name: str, value: Any) -> ChannelConfig | None:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        current = self.rows.get(channel_id)
        if current is None:
            return None
        updated = replace(current, **{name: value})
        self.rows[channel_id] = updated
        self.writes.append((channel_id, name, value))
        return updated

    async def delete_config(self, channel_id: str) -> None:
        if self.fail_writes:
            raise ConnectionError("store unavailable")
        self.rows.pop(channel_id, None)
        self.writes.append((channel_id, "delete", None))


class RecordingTransport:
    """Delivery transport that records messages and can fail for chosen channels."""

    def __init__(self, failing: set[str] | None = None):
        self.failing = failing or set()
        self.sent: list[tuple[str, RenderedMessage]] = []

    async def deliver(self, channel_id: str, message: RenderedMessage) -> None:
        if channel_id in self.failing:
            raise RuntimeError(f"boom for {channel_id}")
        self.sent.append((channel_id, message))


def make_channel(channel_id: str, name: str = "general") -> ChannelDescriptor:
    return ChannelDescriptor(
        channel_id=channel_id, channel_name=name, guild_id="g1", guild_name="Acme"
    )


def github_payload(repo: str = "Acme/Widgets", sender: str = "alice", **extra: Any) -> dict:
    payload: dict[str, Any] = {
        "repository": {"full_name": repo, "html_url": f"https://github.com/{repo}"},
        "sender": {"login": sender, "avatar_url": "https://avatars.example/a.png"},
    }
    payload.update(extra)
    return payload


@pytest.fixture
def store():
    return FakeConfigStore()


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest_asyncio.fixture
async def registry(store):
    reg = SubscriptionRegistry(store, load_retries=2, load_retry_delay=0)
    await reg.load()
    return reg
