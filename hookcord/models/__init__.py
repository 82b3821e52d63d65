"""Data models for Hookcord."""

from .channel_config import (
    DEFAULT_DISABLED_EVENTS,
    LIST_FIELDS,
    MUTABLE_FIELDS,
    ChannelConfig,
    ChannelDescriptor,
    RenderFormat,
    canonical_repo,
)
from .event import KNOWN_EVENT_TYPES, DeliveryTarget, GitHubEvent

__all__ = [
    "ChannelConfig",
    "ChannelDescriptor",
    "DEFAULT_DISABLED_EVENTS",
    "DeliveryTarget",
    "GitHubEvent",
    "KNOWN_EVENT_TYPES",
    "LIST_FIELDS",
    "MUTABLE_FIELDS",
    "RenderFormat",
    "canonical_repo",
]
