"""
Service configuration.

Values are read once from environment variables by ``Settings.from_env``
and handed to ``create_app``.  Tests build ``Settings`` directly.
"""

import os
from dataclasses import dataclass, field
from typing import List


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class Settings:
    """Runtime settings for the catalog/order service."""

    host: str = "0.0.0.0"
    port: int = 3000
    database_url: str = "mongodb://localhost:27017"
    database_name: str = "Website"
    db_timeout_ms: int = 5000
    # ["*"] leaves cross-origin access fully open
    cors_origins: List[str] = field(default_factory=lambda: ["*"])
    # Strict order validation: reject orders without a client-supplied orderId
    require_order_id: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "3000")),
            database_url=os.getenv("DATABASE_URL", "mongodb://localhost:27017"),
            database_name=os.getenv("DATABASE_NAME", "Website"),
            db_timeout_ms=int(os.getenv("DB_TIMEOUT_MS", "5000")),
            cors_origins=_env_list("CORS_ORIGINS", "*"),
            require_order_id=_env_bool("REQUIRE_ORDER_ID"),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
        )

    @property
    def cors_open(self) -> bool:
        return "*" in self.cors_origins
