"""Database module for SQLite persistence.

Provides:
- Database connection management and schema initialization
- Repository functions, one module per entity group:
  users, content (universities, disciplines), exams, materials,
  tracking and simulations
"""

from examprep.db.database import get_db, init_db

__all__ = ["get_db", "init_db"]
