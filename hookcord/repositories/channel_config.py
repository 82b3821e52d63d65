"""Repository for the channel_configs table."""

from __future__ import annotations

import logging
from typing import Any

import asyncpg

from hookcord.models.channel_config import MUTABLE_FIELDS, ChannelConfig

logger = logging.getLogger(__name__)

_SELECT_COLS = (
    "channel_id, guild_id, guild_name, channel_name, repos, repo, embed, "
    "disabled_events, ignored_users, ignored_branches, created_at, updated_at"
)


class ChannelConfigRepository:
    """Pure SQL operations for channel_configs.

    This is the system of record for channel subscriptions; the
    SubscriptionRegistry keeps its in-memory copy in step with it.
    """

    def __init__(self, pool: asyncpg.Pool) -> None:
        self.pool = pool

    async def list_configs(self) -> list[ChannelConfig]:
        """Return every channel config."""
        async with self.pool.acquire() as conn:
            rows = await conn.fetch(
                f"SELECT {_SELECT_COLS} FROM channel_configs ORDER BY channel_id"
            )
            return [ChannelConfig.from_row(r) for r in rows]

    async def insert_config(self, config: ChannelConfig) -> ChannelConfig:
        """Insert a new channel config. Raises on an existing channel_id."""
        doc = config.to_document()
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                INSERT INTO channel_configs (
                    channel_id, guild_id, guild_name, channel_name, repos, repo,
                    embed, disabled_events, ignored_users, ignored_branches
                )
                VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING {_SELECT_COLS}
                """,
                doc["channel_id"],
                doc["guild_id"],
                doc["guild_name"],
                doc["channel_name"],
                doc["repos"],
                doc["repo"],
                doc["embed"],
                doc["disabled_events"],
                doc["ignored_users"],
                doc["ignored_branches"],
            )
            return ChannelConfig.from_row(row)

    async def update_field(
        self, channel_id: str, name: str, value: Any
    ) -> ChannelConfig | None:
        """Set one column and return the stored row, or None if no such channel."""
        if name not in MUTABLE_FIELDS:
            raise ValueError(f"Refusing to update non-mutable column {name!r}")
        if isinstance(value, tuple):
            value = list(value)
        async with self.pool.acquire() as conn:
            row = await conn.fetchrow(
                f"""
                UPDATE channel_configs SET
                    {name} = $2,
                    updated_at = NOW()
                WHERE channel_id = $1
                RETURNING {_SELECT_COLS}
                """,
                channel_id,
                value,
            )
            if not row:
                return None
            return ChannelConfig.from_row(row)

    async def delete_config(self, channel_id: str) -> None:
        """Delete a channel config; missing rows are ignored."""
        async with self.pool.acquire() as conn:
            await conn.execute("DELETE FROM channel_configs WHERE channel_id = $1", channel_id)
