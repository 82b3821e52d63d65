"""Core modules for the Hookcord bot."""

from .config import Settings, get_settings
from .logging import setup_logging
from .webhook_server import WebhookServer

__all__ = [
    "Settings",
    "WebhookServer",
    "get_settings",
    "setup_logging",
]
