from .base_sqlalchemy import BaseSQLAlchemyDriver
from .sqlite import SqliteDriver, SqliteQueries

__all__ = [
    "BaseSQLAlchemyDriver",
    "SqliteDriver",
    "SqliteQueries",
]
