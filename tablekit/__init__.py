# File: /tablekit/__init__.py | Version: 1.0 | Title: Server-driven declarative data tables
__version__ = "1.0.0"
