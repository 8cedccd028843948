"""
Persistence layer for the tournament snapshot.
No business logic, only read/write interfaces.
"""
from .db import get_connection, get_db_path, init_db, set_db_path
from .repositories import TournamentRepository

__all__ = [
    "get_connection",
    "get_db_path",
    "init_db",
    "set_db_path",
    "TournamentRepository",
]
