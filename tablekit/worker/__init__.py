# File: /tablekit/worker/__init__.py | Version: 1.0 | Title: Background worker package (Celery)
