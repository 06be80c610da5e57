"""Embed builders for bot responses."""

from __future__ import annotations

from datetime import timedelta

import discord

from helya.osu.models import GameMode, OsuScore, OsuUser

OSU_PINK = discord.Color.from_rgb(255, 102, 170)

SCORE_KIND_TITLES = {
    "best": "Top plays",
    "recent": "Recent plays",
    "firsts": "First-place ranks",
}


def error_embed(title: str, description: str) -> discord.Embed:
    return discord.Embed(
        title=title,
        description=description,
        color=discord.Color.red(),
    )


def format_duration(delta: timedelta) -> str:
    """Render a duration as e.g. ``2d 3h 4m 5s``, dropping leading zero units."""
    total = max(int(delta.total_seconds()), 0)
    days, remainder = divmod(total, 86400)
    hours, remainder = divmod(remainder, 3600)
    minutes, seconds = divmod(remainder, 60)

    parts = []
    for value, unit in ((days, "d"), (hours, "h"), (minutes, "m")):
        if value or parts:
            parts.append(f"{value}{unit}")
    parts.append(f"{seconds}s")
    return " ".join(parts)


def _rank(value: int | None) -> str:
    return f"#{value:,}" if value else "-"


def build_profile_embed(user: OsuUser, mode: GameMode) -> discord.Embed:
    """Profile summary: rank, pp, accuracy, play count, level."""
    embed = discord.Embed(
        title=f"{user.username} ({mode.display_name})",
        url=user.profile_url,
        color=OSU_PINK,
    )
    if user.avatar_url:
        embed.set_thumbnail(url=user.avatar_url)

    stats = user.statistics
    if stats is None:
        embed.description = "No statistics for this mode."
        return embed

    embed.add_field(name="Global rank", value=_rank(stats.global_rank))
    embed.add_field(
        name="Country rank",
        value=f"{_rank(stats.country_rank)} {user.country_code}".strip(),
    )
    embed.add_field(name="Performance", value=f"{stats.pp:,.2f}pp")
    embed.add_field(name="Accuracy", value=f"{stats.hit_accuracy:.2f}%")
    embed.add_field(name="Play count", value=f"{stats.play_count:,}")
    embed.add_field(name="Level", value=f"{stats.level.current} ({stats.level.progress}%)")
    return embed


def _score_line(position: int, score: OsuScore) -> tuple[str, str]:
    name = f"{position}. {score.title}"
    pp = f"{score.pp:.2f}pp" if score.pp is not None else "-"
    value = (
        f"**{score.rank}** {score.mods_text} • {pp} • {score.accuracy * 100:.2f}% • "
        f"x{score.max_combo:,} • {score.score:,}"
    )
    if score.beatmap is not None and score.beatmap.url:
        value += f"\n[beatmap]({score.beatmap.url})"
    return name, value


def build_score_pages(
    user: OsuUser,
    scores: list[OsuScore],
    kind: str,
    mode: GameMode,
    per_page: int = 5,
) -> list[discord.Embed]:
    """Split a score list into embeds of ``per_page`` scores each."""
    title = f"{SCORE_KIND_TITLES.get(kind, kind)} for {user.username} ({mode.display_name})"
    if not scores:
        return [
            discord.Embed(title=title, url=user.profile_url, description="No scores found.", color=OSU_PINK)
        ]

    chunks = [scores[i:i + per_page] for i in range(0, len(scores), per_page)]
    pages = []
    for page_number, chunk in enumerate(chunks, start=1):
        embed = discord.Embed(title=title, url=user.profile_url, color=OSU_PINK)
        if user.avatar_url:
            embed.set_thumbnail(url=user.avatar_url)
        first_position = (page_number - 1) * per_page + 1
        for offset, score in enumerate(chunk):
            name, value = _score_line(first_position + offset, score)
            embed.add_field(name=name, value=value, inline=False)
        embed.set_footer(text=f"Page {page_number}/{len(chunks)}")
        pages.append(embed)
    return pages
