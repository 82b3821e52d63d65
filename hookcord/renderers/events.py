"""Per-event-type renderers and the lookup table used to pick them."""

from __future__ import annotations

from typing import Any

from hookcord.models import GitHubEvent

from .base import EventRenderer, shorten

_COMMITS_SHOWN = 5


def _first_line(commit: dict[str, Any]) -> str:
    lines = (commit.get("message") or "").splitlines()
    return lines[0] if lines else ""


class PushRenderer(EventRenderer):
    description = "Commits pushed to a branch or tag."
    color = 0x7289DA

    def _summary(self, event: GitHubEvent) -> tuple[list[dict[str, Any]], str]:
        commits = list(event.payload.get("commits") or [])
        ref = event.branch_ref or str(event.payload.get("ref", "")).split("/")[-1]
        return commits, ref

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        commits, ref = self._summary(event)
        lines = [
            f"[`{c.get('id', '')[:7]}`]({c.get('url', '')}) "
            f"{shorten(_first_line(c), 50)}"
            for c in commits[:_COMMITS_SHOWN]
        ]
        if len(commits) > _COMMITS_SHOWN:
            lines.append(f"… and {len(commits) - _COMMITS_SHOWN} more")
        return {
            "title": f"{len(commits)} new commit{'s' if len(commits) != 1 else ''} to `{ref}`",
            "url": event.payload.get("compare"),
            "description": "\n".join(lines),
        }

    def text(self, event: GitHubEvent) -> str:
        commits, ref = self._summary(event)
        head = (
            f"⚡ **{event.actor_id}** pushed {len(commits)} "
            f"commit{'s' if len(commits) != 1 else ''} to `{ref}`"
        )
        lines = [
            f"`{c.get('id', '')[:7]}` {shorten(_first_line(c), 60)}"
            for c in commits[:_COMMITS_SHOWN]
        ]
        return "\n".join([head, *lines])


class IssuesRenderer(EventRenderer):
    description = "Issue opened, closed, reopened, assigned..."
    color = 0xE68D60

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        issue = event.payload.get("issue") or {}
        return {
            "title": f"Issue {event.subtype}: #{issue.get('number')} {issue.get('title', '')}",
            "url": issue.get("html_url"),
            "description": shorten(issue.get("body"), 500) if event.subtype == "opened" else "",
        }

    def text(self, event: GitHubEvent) -> str:
        issue = event.payload.get("issue") or {}
        return (
            f"🛠 **{event.actor_id}** {event.subtype} issue "
            f"**#{issue.get('number')}**: {issue.get('title', '')}\n<{issue.get('html_url')}>"
        )


class IssueCommentRenderer(EventRenderer):
    description = "Comments on issues and pull requests."
    color = 0xE68D60

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        issue = event.payload.get("issue") or {}
        comment = event.payload.get("comment") or {}
        return {
            "title": f"Comment {event.subtype} on #{issue.get('number')}: {issue.get('title', '')}",
            "url": comment.get("html_url"),
            "description": shorten(comment.get("body"), 500),
        }

    def text(self, event: GitHubEvent) -> str:
        issue = event.payload.get("issue") or {}
        comment = event.payload.get("comment") or {}
        return (
            f"💬 **{event.actor_id}** {event.subtype} a comment on "
            f"**#{issue.get('number')}**\n<{comment.get('html_url')}>"
        )


class PullRequestRenderer(EventRenderer):
    description = "Pull request lifecycle."
    color = 0x149414

    def _verb(self, event: GitHubEvent) -> str:
        pr = event.payload.get("pull_request") or {}
        if event.subtype == "closed" and pr.get("merged"):
            return "merged"
        return event.subtype or "updated"

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        pr = event.payload.get("pull_request") or {}
        return {
            "title": f"Pull request {self._verb(event)}: #{pr.get('number')} {pr.get('title', '')}",
            "url": pr.get("html_url"),
            "description": shorten(pr.get("body"), 500) if event.subtype == "opened" else "",
        }

    def text(self, event: GitHubEvent) -> str:
        pr = event.payload.get("pull_request") or {}
        return (
            f"⛽ **{event.actor_id}** {self._verb(event)} pull request "
            f"**#{pr.get('number')}**: {pr.get('title', '')}\n<{pr.get('html_url')}>"
        )


class CreateRenderer(EventRenderer):
    description = "Branch or tag created."
    color = 0x149414

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        return {"title": f"Created {event.subtype} `{event.payload.get('ref')}`"}

    def text(self, event: GitHubEvent) -> str:
        return f"🌲 **{event.actor_id}** created {event.subtype} `{event.payload.get('ref')}`"


class DeleteRenderer(EventRenderer):
    description = "Branch or tag deleted."
    color = 0xFF9900

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        return {"title": f"Deleted {event.subtype} `{event.payload.get('ref')}`"}

    def text(self, event: GitHubEvent) -> str:
        return f"🌲 **{event.actor_id}** deleted {event.subtype} `{event.payload.get('ref')}`"


class ReleaseRenderer(EventRenderer):
    description = "Release published."
    color = 0x24292E

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        release = event.payload.get("release") or {}
        name = release.get("name") or release.get("tag_name")
        return {
            "title": f"Release {event.subtype}: {name}",
            "url": release.get("html_url"),
            "description": shorten(release.get("body"), 500),
        }

    def text(self, event: GitHubEvent) -> str:
        release = event.payload.get("release") or {}
        name = release.get("name") or release.get("tag_name")
        return f"📦 **{event.actor_id}** {event.subtype} release **{name}**\n<{release.get('html_url')}>"


class WatchRenderer(EventRenderer):
    description = "Repository starred."
    color = 0xFFD700

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        return {"title": "Starred the repository"}

    def text(self, event: GitHubEvent) -> str:
        return f"⭐ **{event.actor_id}** starred the repository"


class ForkRenderer(EventRenderer):
    description = "Repository forked."
    color = 0x586069

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        forkee = event.payload.get("forkee") or {}
        return {"title": f"Forked to {forkee.get('full_name')}", "url": forkee.get("html_url")}

    def text(self, event: GitHubEvent) -> str:
        forkee = event.payload.get("forkee") or {}
        return f"🍴 **{event.actor_id}** forked the repository to **{forkee.get('full_name')}**"


class PingRenderer(EventRenderer):
    description = "Webhook created or tested."
    color = 0xC0C0C0

    def embed(self, event: GitHubEvent) -> dict[str, Any]:
        return {"title": "Ping, Pong!", "description": event.payload.get("zen", "")}

    def text(self, event: GitHubEvent) -> str:
        return f"🏓 Ping, Pong! `{event.payload.get('zen', '')}`"


GENERIC = EventRenderer()

RENDERERS: dict[str, EventRenderer] = {
    "push": PushRenderer(),
    "issues": IssuesRenderer(),
    "issue_comment": IssueCommentRenderer(),
    "pull_request": PullRequestRenderer(),
    "create": CreateRenderer(),
    "delete": DeleteRenderer(),
    "release": ReleaseRenderer(),
    "watch": WatchRenderer(),
    "fork": ForkRenderer(),
    "ping": PingRenderer(),
}


def renderer_for(event_type: str) -> EventRenderer:
    return RENDERERS.get(event_type, GENERIC)
