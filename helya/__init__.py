"""
Helya - osu! statistics bot for Discord.

This package wires discord.py, an osu! API v2 client and a SQLite store
(via SQLAlchemy) into a single long-running bot process.
"""

__version__ = "0.1.0"
