"""Configuration helpers for backend runtime."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "[%(name)-28s - %(levelname)5s] %(message)s"


@dataclass(frozen=True)
class BackendSettings:
    server_salt: str
    database_url: str | None
    data_file: str | None
    gm_token: str
    clamp_resources: bool
    log_level: str
    host: str
    port: int


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("true", "1", "yes", "on")


def load_settings() -> BackendSettings:
    port_raw = os.getenv("CLASHTRACKER_PORT", "8000")
    return BackendSettings(
        server_salt=os.getenv("CLASHTRACKER_SERVER_SALT", "dev-salt"),
        database_url=os.getenv("CLASHTRACKER_DATABASE_URL"),
        data_file=os.getenv("CLASHTRACKER_DATA_FILE"),
        gm_token=os.getenv("CLASHTRACKER_GM_TOKEN", "dev-gm"),
        clamp_resources=_env_flag("CLASHTRACKER_CLAMP_RESOURCES", "false"),
        log_level=os.getenv("CLASHTRACKER_LOG_LEVEL", "INFO").upper(),
        host=os.getenv("CLASHTRACKER_HOST", "127.0.0.1"),
        port=int(port_raw),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
