"""Sends rendered messages to Discord channels."""

from __future__ import annotations

import logging

import discord

from hookcord.errors import DeliveryFailure
from hookcord.renderers import RenderedMessage

logger = logging.getLogger(__name__)


class DiscordTransport:
    """Delivery transport backed by a discord.py client."""

    def __init__(self, client: discord.Client) -> None:
        self.client = client

    async def _resolve(self, channel_id: str) -> discord.abc.Messageable:
        try:
            snowflake = int(channel_id)
        except ValueError:
            raise DeliveryFailure(channel_id, "not a Discord channel id") from None

        channel = self.client.get_channel(snowflake)
        if channel is None:
            try:
                channel = await self.client.fetch_channel(snowflake)
            except discord.NotFound:
                raise DeliveryFailure(channel_id, "channel not found") from None
            except discord.HTTPException as e:
                raise DeliveryFailure(channel_id, f"lookup failed: {e}") from e

        if not isinstance(channel, discord.abc.Messageable):
            raise DeliveryFailure(channel_id, f"{type(channel).__name__} cannot receive messages")
        return channel

    async def deliver(self, channel_id: str, message: RenderedMessage) -> None:
        channel = await self._resolve(channel_id)
        embed = discord.Embed.from_dict(message.embed) if message.embed else None
        try:
            await channel.send(content=message.content, embed=embed)
        except discord.Forbidden:
            raise DeliveryFailure(channel_id, "missing permission to send messages") from None
        except discord.HTTPException as e:
            raise DeliveryFailure(channel_id, f"{e.status} {e.text}") from e
