"""Tests for the slash command presentation helpers."""

import pytest

from hookcord.bot.cogs.channel_config import config_embed, error_message
from hookcord.errors import (
    InvalidProperty,
    RegistryNotReady,
    StoreWriteFailure,
    UnknownChannel,
)
from hookcord.models import ChannelConfig


class TestErrorMessage:
    @pytest.mark.parametrize(
        ("error", "fragment"),
        [
            (RegistryNotReady(), "still loading"),
            (UnknownChannel("C1"), "no configuration"),
            (StoreWriteFailure("C1", ConnectionError("down")), "Could not save"),
        ],
    )
    def test_known_errors(self, error, fragment):
        assert fragment in error_message(error)

    def test_invalid_property_uses_error_text(self):
        error = InvalidProperty("embed", "expected a boolean")
        assert error_message(error) == str(error)


class TestConfigEmbed:
    def test_fields(self):
        config = ChannelConfig(
            channel_id="C1", channel_name="dev", repos=("acme/widgets",), embed=True
        )
        embed = config_embed(config)
        fields = {f.name: f.value for f in embed.fields}
        assert embed.title == "#dev"
        assert fields["Repositories"] == "`acme/widgets`"
        assert fields["Format"] == "embed"
        assert fields["Ignored users"] == "*none*"
