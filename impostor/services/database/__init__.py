"""
Impostor - Database Module
==========================

SQLite storage for sessions and the channels they own.

Structure:
    - core.py: Base class with connection management and table init
    - sessions.py: Session and session-channel operations
"""

from .core import DatabaseCore, DatabaseUnavailableError
from .sessions import SessionsMixin


class Database(SessionsMixin, DatabaseCore):
    """
    Complete database class combining all mixins.

    The order matters - DatabaseCore must be last so its __init__ runs.
    """
    pass


__all__ = ["Database", "DatabaseUnavailableError"]
