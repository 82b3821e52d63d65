"""Persistence layer for Hookcord."""

from .channel_config import ChannelConfigRepository

__all__ = ["ChannelConfigRepository"]
