"""Tests for channel config records."""

from hookcord.models import DEFAULT_DISABLED_EVENTS, ChannelConfig, RenderFormat

from .conftest import make_channel


class TestChannelConfig:
    def test_for_channel_defaults(self):
        config = ChannelConfig.for_channel(make_channel("C1", "dev"))
        assert config.channel_name == "dev"
        assert config.guild_name == "Acme"
        assert config.repos == ()
        assert config.disabled_events == DEFAULT_DISABLED_EVENTS
        assert config.preferred_format is RenderFormat.TEXT

    def test_from_row_freezes_and_canonicalizes(self):
        row = {
            "channel_id": "C1",
            "repos": ["Acme/Widgets", "acme/widgets"],
            "embed": None,
            "disabled_events": ["status"],
            "ignored_users": None,
            "ignored_branches": ["main"],
            "prefix": "G! ",
        }
        config = ChannelConfig.from_row(row)
        assert config.repos == ("acme/widgets",)
        assert config.embed is False
        assert config.ignored_users == ()
        assert config.ignored_branches == ("main",)

    def test_document_round_trip(self):
        config = ChannelConfig(channel_id="C1", repos=("a/b",), embed=True)
        doc = config.to_document()
        assert doc["repos"] == ["a/b"]
        assert ChannelConfig.from_row(doc) == config
