"""Renderer interface: one event, one target format, one Discord message."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from hookcord.models import GitHubEvent, RenderFormat


@dataclass(frozen=True)
class RenderedMessage:
    """Transport-neutral message: plain content, an embed dict, or both."""

    content: str | None = None
    embed: dict[str, Any] | None = field(default=None)


def shorten(text: str | None, limit: int) -> str:
    text = (text or "").strip()
    if len(text) <= limit:
        return text
    return text[: limit - 1].rstrip() + "…"


class EventRenderer:
    """Renders one event type. Subclasses override ``embed`` and ``text``."""

    color: int = 0x586069
    description: str = ""

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        return {"title": f"{event.type}{f' {event.subtype}' if event.subtype else ''}"}

    def text(self, event: GitHubEvent) -> str:
        action = event.type + (f" ({event.subtype})" if event.subtype else "")
        return f"📡 **{event.actor_id or 'someone'}** triggered `{action}`"

    def render(self, event: GitHubEvent, fmt: RenderFormat) -> RenderedMessage:
        if fmt is RenderFormat.EMBED:
            return RenderedMessage(embed=self._decorate(event, self.embed(event)))
        return RenderedMessage(content=f"**[{event.repo_name}]** {self.text(event)}")

    def _decorate(self, event: GitHubEvent, embed: dict[str, Any]) -> dict[str, Any]:
        """Add the repository prefix, sender author line and default color."""
        embed = dict(embed)
        embed["title"] = f"[{event.repo_name}] {embed.get('title', '')}".strip()
        embed.setdefault("color", self.color)
        sender = event.payload.get("sender") or {}
        if sender.get("login"):
            author = {
                "name": sender["login"],
                "icon_url": sender.get("avatar_url"),
                "url": sender.get("html_url"),
            }
            embed["author"] = {k: v for k, v in author.items() if v}
        return {k: v for k, v in embed.items() if v is not None and v != ""}
