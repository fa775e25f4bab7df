# File: tablekit/db/__init__.py | Version: 2.0 | Path: /tablekit/db/__init__.py
# Import models so Base.metadata knows about table_views before create_all()
import tablekit.models  # noqa: F401

from .base_class import Base
from .session import SessionLocal, engine, get_db

__all__ = ["Base", "get_db", "SessionLocal", "engine"]
