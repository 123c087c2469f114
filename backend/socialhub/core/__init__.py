# SocialHub Core Module
from .config import get_settings, settings
from .database import (
    Base,
    async_session_maker,
    check_db_connection,
    create_schema,
    engine,
    get_db,
)
from .logging import setup_logging

__all__ = [
    "settings",
    "get_settings",
    "setup_logging",
    "Base",
    "engine",
    "async_session_maker",
    "get_db",
    "create_schema",
    "check_db_connection",
]
