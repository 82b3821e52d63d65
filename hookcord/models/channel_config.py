"""Data models for the channel_configs table."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any

DEFAULT_DISABLED_EVENTS: tuple[str, ...] = (
    "deployment",
    "deployment_status",
    "page_build",
    "pull_request/labeled",
    "pull_request/unlabeled",
    "pull_request/edited",
    "pull_request/review_requested",
    "pull_request/review_request_removed",
    "status",
)

# Fields that set_property may change. channel_id is the immutable key.
LIST_FIELDS = frozenset({"repos", "disabled_events", "ignored_users", "ignored_branches"})
TEXT_FIELDS = frozenset({"guild_id", "guild_name", "channel_name", "repo"})
BOOL_FIELDS = frozenset({"embed"})
MUTABLE_FIELDS = LIST_FIELDS | TEXT_FIELDS | BOOL_FIELDS


class RenderFormat(str, Enum):
    EMBED = "embed"
    TEXT = "text"


def canonical_repo(repo: str) -> str:
    """Normalize a repository identifier (``owner/name``) for comparison."""
    return repo.strip().lower()


def unique(items: Iterable[str]) -> tuple[str, ...]:
    """Drop duplicates and empty strings, keeping first-seen order."""
    return tuple(dict.fromkeys(i for i in items if i))


@dataclass(frozen=True)
class ChannelDescriptor:
    """A live chat channel as reported by Discord."""

    channel_id: str
    channel_name: str = ""
    guild_id: str | None = None
    guild_name: str | None = None


@dataclass(frozen=True)
class ChannelConfig:
    """Subscription record for one Discord channel."""

    channel_id: str
    guild_id: str | None = None
    guild_name: str | None = None
    channel_name: str | None = None
    repos: tuple[str, ...] = ()
    repo: str | None = None
    embed: bool = False
    disabled_events: tuple[str, ...] = DEFAULT_DISABLED_EVENTS
    ignored_users: tuple[str, ...] = ()
    ignored_branches: tuple[str, ...] = ()
    created_at: datetime | None = field(default=None, compare=False)
    updated_at: datetime | None = field(default=None, compare=False)

    @classmethod
    def for_channel(cls, channel: ChannelDescriptor) -> ChannelConfig:
        """New record with empty repos and the default event filters."""
        return cls(
            channel_id=channel.channel_id,
            guild_id=channel.guild_id,
            guild_name=channel.guild_name,
            channel_name=channel.channel_name,
        )

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ChannelConfig:
        """Build a record from a DB row; array columns become tuples."""
        known = {f.name for f in fields(cls)}
        data = {k: v for k, v in dict(row).items() if k in known}
        for name in LIST_FIELDS:
            if name in data:
                data[name] = tuple(data[name] or ())
        if "repos" in data:
            data["repos"] = unique(canonical_repo(r) for r in data["repos"])
        data["embed"] = bool(data.get("embed"))
        return cls(**data)

    @property
    def preferred_format(self) -> RenderFormat:
        return RenderFormat.EMBED if self.embed else RenderFormat.TEXT

    def to_document(self) -> dict[str, Any]:
        """Column values for insertion into the config store."""
        return {
            "channel_id": self.channel_id,
            "guild_id": self.guild_id,
            "guild_name": self.guild_name,
            "channel_name": self.channel_name,
            "repos": list(self.repos),
            "repo": self.repo,
            "embed": self.embed,
            "disabled_events": list(self.disabled_events),
            "ignored_users": list(self.ignored_users),
            "ignored_branches": list(self.ignored_branches),
        }
