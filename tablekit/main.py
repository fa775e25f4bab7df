# File: /tablekit/main.py | Version: 2.1 | Title: FastAPI App (table routes + health)
from __future__ import annotations

import importlib
import importlib.util

from fastapi import FastAPI

from tablekit import __version__
from tablekit.core.config import settings
from tablekit.core.error_handlers import register_table_error_handlers
from tablekit.core.logging import configure_logging
from tablekit.observability.sentry import init_sentry_if_configured

# Initialize logging & observability
configure_logging()
init_sentry_if_configured()

# App
app = FastAPI(title="Tablekit", version=__version__)
register_table_error_handlers(app)


def include_if_exists(module_path: str, attr_name: str = "router") -> bool:
    spec = importlib.util.find_spec(module_path)
    if not spec:
        return False
    mod = importlib.import_module(module_path)
    router = getattr(mod, attr_name, None)
    if router is not None:
        app.include_router(router)
        return True
    return False


include_if_exists("tablekit.routers.tables")
include_if_exists("tablekit.routers.health")

for module_path in settings.TABLE_MODULES:
    importlib.import_module(module_path)

# Optional standardized error responses
if getattr(settings, "ENABLE_STD_ERRORS", False):
    from tablekit.core.error_handlers import register_exception_handlers

    register_exception_handlers(app)
