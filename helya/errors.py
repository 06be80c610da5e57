"""
Exception hierarchy shared across Helya.

Library errors (SQLAlchemy, httpx, discord.py) are wrapped at the boundary of
the component that owns them so callers only need to know these types.
"""


class HelyaError(Exception):
    """Base class for all Helya errors."""


class ConfigurationError(HelyaError):
    """The configuration file is missing, malformed, or fails validation."""


class DatabaseError(HelyaError):
    """The database wrapper was used incorrectly or could not be opened."""


class MigrationError(DatabaseError):
    """A schema migration failed. The schema must be treated as unusable."""
