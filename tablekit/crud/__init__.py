# File: /tablekit/crud/__init__.py | Version: 1.0 | Title: Persistence helpers
