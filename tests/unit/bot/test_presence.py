"""Tests for presence resolution from configured strings."""

from unittest.mock import patch

import discord
import pytest

from helya.bot.presence import build_presence, resolve_activity_type, resolve_status
from helya.config.settings import ActivitySettings


class TestResolveActivityType:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Playing", discord.ActivityType.playing),
            ("ListeningTo", discord.ActivityType.listening),
            ("listening_to", discord.ActivityType.listening),
            ("Watching", discord.ActivityType.watching),
            ("COMPETING", discord.ActivityType.competing),
            ("  watching ", discord.ActivityType.watching),
        ],
    )
    def test_known_values(self, value, expected):
        assert resolve_activity_type(value) == expected

    @pytest.mark.parametrize("value", ["Streaming", "", "dancing"])
    def test_unknown_value_falls_back_to_playing(self, value):
        with patch("helya.bot.presence.logger") as logger:
            assert resolve_activity_type(value) == discord.ActivityType.playing

        logger.warning.assert_called_once()
        assert f'"{value}"' in logger.warning.call_args[0][0]
        assert "ListeningTo" in logger.info.call_args[0][0]


class TestResolveStatus:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("Online", discord.Status.online),
            ("Invisible", discord.Status.invisible),
            ("Idle", discord.Status.idle),
            ("DoNotDisturb", discord.Status.dnd),
            ("do-not-disturb", discord.Status.dnd),
            ("dnd", discord.Status.dnd),
        ],
    )
    def test_known_values(self, value, expected):
        assert resolve_status(value) == expected

    def test_unknown_value_falls_back_to_online(self):
        with patch("helya.bot.presence.logger") as logger:
            assert resolve_status("Away") == discord.Status.online
        logger.warning.assert_called_once()

    def test_known_value_does_not_warn(self):
        with patch("helya.bot.presence.logger") as logger:
            resolve_status("idle")
        logger.warning.assert_not_called()


class TestBuildPresence:
    def test_defaults(self):
        activity, status = build_presence(ActivitySettings())
        assert activity.type == discord.ActivityType.playing
        assert activity.name == "osu!"
        assert status == discord.Status.online

    def test_configured_values(self):
        activity, status = build_presence(
            ActivitySettings(name="your scores", type="Watching", status="Idle")
        )
        assert activity.type == discord.ActivityType.watching
        assert activity.name == "your scores"
        assert status == discord.Status.idle
