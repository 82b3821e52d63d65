"""Tests for event renderers."""

from hookcord.models import RenderFormat
from hookcord.normalizer import normalize
from hookcord.renderers import RENDERERS, render, renderer_for
from hookcord.renderers.events import GENERIC

from .conftest import github_payload


class TestLookup:
    def test_known_types_have_renderers(self):
        for event_type in ("push", "issues", "pull_request", "create", "delete", "ping"):
            assert renderer_for(event_type) is RENDERERS[event_type]

    def test_unknown_type_falls_back(self):
        assert renderer_for("gollum") is GENERIC


class TestRender:
    def test_delete_text(self):
        event = normalize("delete", github_payload(ref="old-branch", ref_type="branch"))
        message = render(event, RenderFormat.TEXT)
        assert message.embed is None
        assert message.content == "**[Acme/Widgets]** 🌲 **alice** deleted branch `old-branch`"

    def test_delete_embed(self):
        event = normalize("delete", github_payload(ref="old-branch", ref_type="branch"))
        message = render(event, RenderFormat.EMBED)
        assert message.content is None
        assert message.embed["title"] == "[Acme/Widgets] Deleted branch `old-branch`"
        assert message.embed["color"] == 0xFF9900
        assert message.embed["author"] == {
            "name": "alice",
            "icon_url": "https://avatars.example/a.png",
        }

    def test_push_lists_commits(self):
        commits = [
            {"id": f"{i:040d}", "message": f"commit {i}\n\nbody", "url": "https://x"}
            for i in range(7)
        ]
        event = normalize(
            "push", github_payload(ref="refs/heads/main", commits=commits, compare="https://c")
        )
        embed = render(event, RenderFormat.EMBED).embed
        assert embed["title"] == "[Acme/Widgets] 7 new commits to `main`"
        assert embed["url"] == "https://c"
        assert "commit 0" in embed["description"]
        assert "body" not in embed["description"]
        assert "… and 2 more" in embed["description"]

    def test_merged_pull_request(self):
        event = normalize(
            "pull_request",
            github_payload(
                action="closed",
                pull_request={"number": 9, "title": "Fix", "merged": True, "html_url": "u"},
            ),
        )
        assert "merged pull request **#9**" in render(event, RenderFormat.TEXT).content

    def test_generic_text(self):
        event = normalize("gollum", github_payload())
        assert render(event, RenderFormat.TEXT).content.endswith("triggered `gollum`")
