"""
Persistence Layer.

SQLite storage through async SQLAlchemy: the database wrapper that owns the
engine and migrations, ORM models, and the repository used by commands.
"""

from helya.db.database import HelyaDatabase
from helya.db.repository import Repository

__all__ = ["HelyaDatabase", "Repository"]
