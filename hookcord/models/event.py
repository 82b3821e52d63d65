"""Canonical GitHub event record produced by the normalizer."""

from __future__ import annotations

from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from typing import Any, NamedTuple

from .channel_config import RenderFormat

# Top-level event types the relay knows how to interpret.
KNOWN_EVENT_TYPES = frozenset(
    {
        "push",
        "release",
        "issues",
        "issue_comment",
        "pull_request",
        "watch",
        "fork",
        "create",
        "delete",
        "ping",
        "repository",
        "member",
        "status",
        "gollum",
    }
)


@dataclass(frozen=True)
class GitHubEvent:
    """One normalized webhook delivery."""

    type: str
    repo_id: str
    actor_id: str | None = None
    subtype: str | None = None
    branch_ref: str | None = None
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False, repr=False)
    delivery_id: str | None = None

    @property
    def filter_keys(self) -> Iterator[str]:
        """Keys checked against a channel's disabled_events."""
        yield self.type
        if self.subtype:
            yield f"{self.type}/{self.subtype}"

    @property
    def repo_name(self) -> str:
        """Repository full name as GitHub spells it."""
        repository = self.payload.get("repository") or {}
        return repository.get("full_name") or self.repo_id


class DeliveryTarget(NamedTuple):
    channel_id: str
    format: RenderFormat
