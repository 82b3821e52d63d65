"""
Channel subscription commands
/github ... slash commands that manage what the current channel receives
"""

import logging
import re
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING

import discord
from discord import app_commands
from discord.ext import commands

from hookcord.errors import (
    HookcordError,
    InvalidProperty,
    RegistryNotReady,
    StoreWriteFailure,
    UnknownChannel,
)
from hookcord.models import ChannelConfig, ChannelDescriptor

if TYPE_CHECKING:
    from hookcord.bot.bot import HookcordBot

logger = logging.getLogger(__name__)

_REPO_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


def _format_list(items: tuple[str, ...]) -> str:
    return ", ".join(f"`{i}`" for i in items) if items else "*none*"


def config_embed(config: ChannelConfig) -> discord.Embed:
    """Summary of a channel's subscriptions and filters."""
    embed = discord.Embed(
        title=f"#{config.channel_name or config.channel_id}",
        color=discord.Color.blurple(),
    )
    embed.add_field(name="Repositories", value=_format_list(config.repos), inline=False)
    embed.add_field(name="Format", value=config.preferred_format.value, inline=True)
    embed.add_field(name="Default repo", value=config.repo or "*none*", inline=True)
    embed.add_field(name="Disabled events", value=_format_list(config.disabled_events), inline=False)
    embed.add_field(name="Ignored users", value=_format_list(config.ignored_users), inline=False)
    embed.add_field(name="Ignored branches", value=_format_list(config.ignored_branches), inline=False)
    return embed


def error_message(error: HookcordError) -> str:
    if isinstance(error, RegistryNotReady):
        return "Channel configs are still loading, try again in a moment."
    if isinstance(error, UnknownChannel):
        return "This channel has no configuration yet."
    if isinstance(error, StoreWriteFailure):
        return "Could not save the change, please try again later."
    if isinstance(error, InvalidProperty):
        return str(error)
    return f"Something went wrong: {error}"


class ChannelConfigCog(commands.Cog):
    """Per-channel GitHub subscription settings"""

    github = app_commands.Group(
        name="github",
        description="Manage GitHub notifications for this channel",
        guild_only=True,
        default_permissions=discord.Permissions(manage_channels=True),
    )

    def __init__(self, bot: "HookcordBot"):
        self.bot = bot

    async def _ensure_config(self, interaction: discord.Interaction) -> ChannelConfig:
        """The channel's record, created on the fly for channels missed by reconcile."""
        registry = self.bot.registry
        config = registry.find_by_channel(str(interaction.channel_id))
        if config is not None:
            return config
        channel = interaction.channel
        guild = interaction.guild
        return await registry.create(
            ChannelDescriptor(
                channel_id=str(interaction.channel_id),
                channel_name=getattr(channel, "name", "") or "",
                guild_id=str(guild.id) if guild else None,
                guild_name=guild.name if guild else None,
            )
        )

    async def _apply(
        self,
        interaction: discord.Interaction,
        action: Callable[[str], Awaitable[ChannelConfig]],
        done: str,
    ) -> None:
        """Run a registry mutation for this channel and report the outcome."""
        try:
            await self._ensure_config(interaction)
            config = await action(str(interaction.channel_id))
        except HookcordError as e:
            logger.warning(
                f"Config command failed | channel: {interaction.channel_id} | "
                f"user: {interaction.user} | {e}"
            )
            await interaction.response.send_message(error_message(e), ephemeral=True)
            return

        logger.info(
            f"Config changed | channel: {interaction.channel_id} | user: {interaction.user} | {done}"
        )
        await interaction.response.send_message(done, embed=config_embed(config), ephemeral=True)

    @github.command(name="list", description="Show this channel's subscriptions and filters")
    async def list_config(self, interaction: discord.Interaction):
        try:
            config = await self._ensure_config(interaction)
        except HookcordError as e:
            await interaction.response.send_message(error_message(e), ephemeral=True)
            return
        await interaction.response.send_message(embed=config_embed(config), ephemeral=True)

    @github.command(name="add", description="Send events for a repository to this channel")
    @app_commands.describe(repo="Repository as owner/name")
    async def add_repo(self, interaction: discord.Interaction, repo: str):
        repo = repo.strip()
        if not _REPO_PATTERN.match(repo):
            await interaction.response.send_message(
                f"`{repo}` is not a repository name (expected owner/name).", ephemeral=True
            )
            return
        registry = self.bot.registry
        try:
            existing = registry.find_repo_in_channel(str(interaction.channel_id), repo)
        except RegistryNotReady as e:
            await interaction.response.send_message(error_message(e), ephemeral=True)
            return
        if existing is not None:
            await interaction.response.send_message(
                f"This channel already receives events for `{repo.lower()}`.", ephemeral=True
            )
            return
        await self._apply(
            interaction,
            lambda cid: registry.add_repo_to_channel(cid, repo),
            f"Added `{repo.lower()}`.",
        )

    @github.command(name="remove", description="Stop sending events for a repository here")
    @app_commands.describe(repo="Repository as owner/name")
    async def remove_repo(self, interaction: discord.Interaction, repo: str):
        registry = self.bot.registry
        await self._apply(
            interaction,
            lambda cid: registry.delete_repo_from_channel(cid, repo),
            f"Removed `{repo.strip().lower()}`.",
        )

    @github.command(name="format", description="Toggle between rich embeds and plain text")
    async def toggle_format(self, interaction: discord.Interaction):
        await self._apply(interaction, self.bot.registry.toggle_embed, "Format toggled.")

    @github.command(name="event", description="Enable or disable an event, e.g. issues or pull_request/labeled")
    @app_commands.describe(key="Event type, or type/action", enabled="Receive this event?")
    async def toggle_event(self, interaction: discord.Interaction, key: str, enabled: bool):
        registry = self.bot.registry
        key = key.strip().lower()
        if enabled:
            action = lambda cid: registry.remove_list_item(cid, "disabled_events", key)  # noqa: E731
        else:
            action = lambda cid: registry.add_list_item(cid, "disabled_events", key)  # noqa: E731
        await self._apply(
            interaction, action, f"`{key}` {'enabled' if enabled else 'disabled'}."
        )

    @github.command(name="ignore-user", description="Ignore events triggered by a GitHub user")
    async def ignore_user(self, interaction: discord.Interaction, login: str):
        registry = self.bot.registry
        await self._apply(
            interaction,
            lambda cid: registry.add_list_item(cid, "ignored_users", login),
            f"Ignoring `{login}`.",
        )

    @github.command(name="unignore-user", description="Stop ignoring a GitHub user")
    async def unignore_user(self, interaction: discord.Interaction, login: str):
        registry = self.bot.registry
        await self._apply(
            interaction,
            lambda cid: registry.remove_list_item(cid, "ignored_users", login),
            f"No longer ignoring `{login}`.",
        )

    @github.command(name="ignore-branch", description="Ignore events on a branch")
    async def ignore_branch(self, interaction: discord.Interaction, branch: str):
        registry = self.bot.registry
        await self._apply(
            interaction,
            lambda cid: registry.add_list_item(cid, "ignored_branches", branch),
            f"Ignoring branch `{branch}`.",
        )

    @github.command(name="unignore-branch", description="Stop ignoring a branch")
    async def unignore_branch(self, interaction: discord.Interaction, branch: str):
        registry = self.bot.registry
        await self._apply(
            interaction,
            lambda cid: registry.remove_list_item(cid, "ignored_branches", branch),
            f"No longer ignoring branch `{branch}`.",
        )

    @github.command(name="repo", description="Set the default repository for this channel")
    @app_commands.describe(repo="Repository as owner/name, empty to clear")
    async def set_default_repo(self, interaction: discord.Interaction, repo: str | None = None):
        registry = self.bot.registry
        value = repo.strip() if repo else None
        await self._apply(
            interaction,
            lambda cid: registry.set_property(cid, "repo", value),
            f"Default repository set to `{value}`." if value else "Default repository cleared.",
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(ChannelConfigCog(bot))  # type: ignore[arg-type]
