"""SQLAlchemy ORM models for the Helya database.

Tables are created and evolved by ``helya.db.migrations``, never by
``metadata.create_all``; keep the column definitions here in step with the
migration DDL.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import BigInteger, DateTime, Integer, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Base(DeclarativeBase):
    """Base class for all ORM models."""


class SchemaMigrationRow(Base):
    __tablename__ = "schema_migrations"

    version: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    applied_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class OsuLinkRow(Base):
    """A Discord user's linked osu! account."""

    __tablename__ = "osu_links"

    discord_user_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    osu_user_id: Mapped[int] = mapped_column(BigInteger, nullable=False)
    osu_username: Mapped[str] = mapped_column(String(32), nullable=False)
    mode: Mapped[str] = mapped_column(String(10), nullable=False, default="osu")
    linked_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow)


class GuildSettingsRow(Base):
    __tablename__ = "guild_settings"

    guild_id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    default_mode: Mapped[str] = mapped_column(String(10), nullable=False, default="osu")
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=_utcnow, onupdate=_utcnow)
