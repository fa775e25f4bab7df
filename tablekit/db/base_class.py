# File: tablekit/db/base_class.py | Version: 2.0 | Path: /tablekit/db/base_class.py
from sqlalchemy.orm import declarative_base

# Base for the engine's own tables (saved views); host models may use their own Base
Base = declarative_base()
