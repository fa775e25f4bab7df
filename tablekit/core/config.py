# File: /tablekit/core/config.py | Version: 2.1 | Title: Central App Settings (Pydantic v2)
from typing import Dict, List

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # --- Database ---
    DATABASE_URL: str = "sqlite:///./tablekit.db"
    # extra named connections for models declaring __connection__
    DATABASE_CONNECTIONS: Dict[str, str] = {}

    # --- Security / signing ---
    SECRET_KEY: str = "CHANGE_ME_FOR_DEV_ONLY"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    SIGNED_URL_TTL_MINUTES: int = 0  # 0 = signed table URLs never expire

    # --- Routing ---
    TABLE_ROUTE_PREFIX: str = "/_inertia-tables"
    # modules defining Table classes; signed URLs only resolve registered tables
    TABLE_MODULES: List[str] = []

    # --- API behavior toggles ---
    ENABLE_STD_ERRORS: bool = (
        False  # set True in .env to enable standardized error responses
    )

    # --- Exports / queue ---
    CELERY_BROKER_URL: str = "memory://"
    CELERY_RESULT_BACKEND: str = "cache+memory://"
    CELERY_TASK_ALWAYS_EAGER: bool = False
    EXPORT_DISKS: Dict[str, str] = {"local": "./storage/exports"}
    DEFAULT_EXPORT_DISK: str = "local"
    DEFAULT_EXPORT_QUEUE: str = "exports"

    # v2-style config
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8")


settings = Settings()
