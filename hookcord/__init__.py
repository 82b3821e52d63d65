"""Hookcord: relays GitHub webhook events into subscribed Discord channels."""

__version__ = "0.1.0"
