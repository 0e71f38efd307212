# operator_repo/config.py
from __future__ import annotations

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

MOCK_PERMISSIONS_URL = "mock"


def _as_bool(v: str | None, default: bool = False) -> bool:
    if v is None:
        return default
    return v.strip().lower() in {"1", "true", "yes", "on"}


class Settings(BaseSettings):
    # Identity
    service_name: str = os.getenv("SERVICE_NAME", "analytics-operator-repo")
    service_version: str = os.getenv("SERVICE_VERSION", "0.1.0")

    # HTTP server
    app_port: int = int(os.getenv("APP_PORT", "8000"))
    debug: bool = _as_bool(os.getenv("DEBUG"), default=False)
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    url_prefix: str = os.getenv("URL_PREFIX", "")

    # CORS (comma-separated origins; "*" allowed for dev)
    cors_allow_origins: str = os.getenv("CORS_ALLOW_ORIGINS", "*")

    # Mongo
    mongo_uri: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    mongo_db: str = os.getenv("MONGO_DB", "db")
    mongo_collection: str = os.getenv("MONGO_COLLECTION", "operators")
    mongo_server_selection_timeout_ms: int = int(
        os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "10000")
    )

    # Permissions service ("mock" selects the in-memory client)
    permissions_v2_url: str = os.getenv(
        "PERMISSIONS_V2_URL", "http://permv2.permissions:8080"
    )
    permissions_admin_token: str = os.getenv("PERMISSIONS_ADMIN_TOKEN", "")
    permissions_topic: str = os.getenv("PERMISSIONS_TOPIC", "analytics-operators")
    permissions_page_size: int = int(os.getenv("PERMISSIONS_PAGE_SIZE", "1000"))

    # Timeouts
    http_client_timeout_seconds: float = float(
        os.getenv("HTTP_CLIENT_TIMEOUT_SECONDS", "30")
    )
    request_timeout_seconds: float = float(os.getenv("REQUEST_TIMEOUT_SECONDS", "10"))

    # Startup reconciliation
    reconcile_on_start: bool = _as_bool(os.getenv("RECONCILE_ON_START"), default=True)
    reconcile_attempts: int = int(os.getenv("RECONCILE_ATTEMPTS", "3"))

    model_config = SettingsConfigDict(env_file=None, extra="ignore")

    @property
    def use_mock_permissions(self) -> bool:
        return self.permissions_v2_url.strip().lower() == MOCK_PERMISSIONS_URL

    @property
    def bind_host(self) -> str:
        return "127.0.0.1" if self.debug else "0.0.0.0"


settings = Settings()
