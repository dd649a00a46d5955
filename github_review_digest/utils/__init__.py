"""
Utility functions and helpers
"""

from .logging import setup_logging, get_logger, set_log_level
from .database import (
    check_database_connection,
    get_database_info,
    get_engine,
    get_session_local,
    reset_engine,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "set_log_level",
    "check_database_connection",
    "get_database_info",
    "get_engine",
    "get_session_local",
    "reset_engine",
]
