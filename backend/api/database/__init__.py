"""Database module for tale persistence."""

from .db import init_db, init_pool, get_pool, close_pool, get_connection, engine, Base
from .models import User, Tale, TaleLike
from .repository import TaleRepository, UserRepository

__all__ = [
    # Connection management
    "init_db",
    "init_pool",
    "get_pool",
    "close_pool",
    "get_connection",
    "engine",
    "Base",
    # Models
    "User",
    "Tale",
    "TaleLike",
    # Repositories
    "TaleRepository",
    "UserRepository",
]
