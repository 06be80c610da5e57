"""Tests for embed builders."""

from datetime import timedelta

import pytest

from helya.bot.embeds import build_profile_embed, build_score_pages, format_duration
from helya.osu.models import GameMode, OsuScore, OsuUser


def _user(**overrides) -> OsuUser:
    data = {
        "id": 2,
        "username": "peppy",
        "country_code": "AU",
        "statistics": {"pp": 1234.5, "global_rank": 1234, "hit_accuracy": 98.7654, "play_count": 10},
    }
    data.update(overrides)
    return OsuUser.model_validate(data)


class TestFormatDuration:
    @pytest.mark.parametrize(
        ("delta", "expected"),
        [
            (timedelta(seconds=5), "5s"),
            (timedelta(minutes=1), "1m 0s"),
            (timedelta(hours=2, seconds=3), "2h 0m 3s"),
            (timedelta(days=2, hours=3, minutes=4, seconds=5), "2d 3h 4m 5s"),
            (timedelta(seconds=-3), "0s"),
        ],
    )
    def test_format(self, delta, expected):
        assert format_duration(delta) == expected


class TestProfileEmbed:
    def test_fields(self):
        embed = build_profile_embed(_user(), GameMode.TAIKO)
        assert embed.title == "peppy (osu!taiko)"
        assert embed.url == "https://osu.ppy.sh/users/2"
        values = {field.name: field.value for field in embed.fields}
        assert values["Global rank"] == "#1,234"
        assert values["Accuracy"] == "98.77%"
        assert values["Performance"] == "1,234.50pp"

    def test_missing_statistics(self):
        embed = build_profile_embed(_user(statistics=None), GameMode.OSU)
        assert embed.description == "No statistics for this mode."
        assert embed.fields == []


class TestScorePages:
    def test_no_scores(self):
        pages = build_score_pages(_user(), [], "best", GameMode.OSU)
        assert len(pages) == 1
        assert pages[0].description == "No scores found."

    def test_pages_are_chunked_and_numbered(self):
        scores = [OsuScore(score=i, pp=100.0 - i) for i in range(12)]
        pages = build_score_pages(_user(), scores, "recent", GameMode.OSU, per_page=5)

        assert [len(page.fields) for page in pages] == [5, 5, 2]
        assert pages[0].title.startswith("Recent plays for peppy")
        assert pages[1].fields[0].name.startswith("6. ")
        assert pages[2].footer.text == "Page 3/3"
