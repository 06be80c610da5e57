"""
Response models for the osu! API v2.

Only the fields Helya displays are declared; everything else in the payload
is ignored. Field names follow the API's JSON keys.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class GameMode(str, Enum):
    """osu! rulesets, valued by their API names."""

    OSU = "osu"
    TAIKO = "taiko"
    FRUITS = "fruits"
    MANIA = "mania"

    @property
    def display_name(self) -> str:
        return _MODE_NAMES[self]


_MODE_NAMES = {
    GameMode.OSU: "osu!",
    GameMode.TAIKO: "osu!taiko",
    GameMode.FRUITS: "osu!catch",
    GameMode.MANIA: "osu!mania",
}


class OsuToken(BaseModel):
    """OAuth2 client-credentials grant response."""

    access_token: str
    expires_in: int = Field(description="Lifetime in seconds")
    token_type: str = "Bearer"


class UserLevel(BaseModel):
    current: int = 0
    progress: int = 0


class OsuUserStatistics(BaseModel):
    pp: float = 0.0
    global_rank: int | None = None
    country_rank: int | None = None
    hit_accuracy: float = 0.0
    play_count: int = 0
    play_time: int | None = None
    ranked_score: int = 0
    level: UserLevel = Field(default_factory=UserLevel)


class OsuUser(BaseModel):
    id: int
    username: str
    country_code: str = ""
    avatar_url: str = ""
    playmode: GameMode = GameMode.OSU
    statistics: OsuUserStatistics | None = None

    @property
    def profile_url(self) -> str:
        return f"https://osu.ppy.sh/users/{self.id}"


class OsuBeatmapset(BaseModel):
    id: int
    title: str
    artist: str
    creator: str = ""


class OsuBeatmap(BaseModel):
    id: int
    version: str = Field(description="Difficulty name")
    difficulty_rating: float = 0.0
    url: str = ""


class OsuScore(BaseModel):
    id: int | None = None
    score: int = 0
    accuracy: float = Field(default=0.0, description="Fraction between 0 and 1")
    max_combo: int = 0
    mods: list[str] = Field(default_factory=list)
    rank: str = ""
    pp: float | None = None
    created_at: datetime | None = None
    beatmap: OsuBeatmap | None = None
    beatmapset: OsuBeatmapset | None = None

    @property
    def mods_text(self) -> str:
        return "+" + "".join(self.mods) if self.mods else "NM"

    @property
    def title(self) -> str:
        if self.beatmapset is None:
            return "Unknown beatmap"
        version = f" [{self.beatmap.version}]" if self.beatmap else ""
        return f"{self.beatmapset.artist} - {self.beatmapset.title}{version}"
