"""
Configuration for the home services dashboard.

Loads settings from environment variables (and an optional .env file) with
sensible defaults. Service cards live in HOME_SERVICE_CFG_DIR, ./cfg by default.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

load_dotenv()

PACKAGE_DIR = Path(__file__).parent


def _optional_path(name: str) -> Optional[Path]:
    value = os.environ.get(name, "")
    return Path(value) if value else None


@dataclass
class Config:
    """Dashboard configuration."""

    # Paths
    cfg_dir: Path = Path(os.environ.get("HOME_SERVICE_CFG_DIR", "./cfg"))
    assets_dir: Path = Path(os.environ.get("HOME_SERVICE_ASSETS_DIR", str(PACKAGE_DIR / "static")))
    templates_dir: Path = PACKAGE_DIR / "templates"

    # Server
    host: str = os.environ.get("HOME_SERVICE_HOST", "0.0.0.0")
    port: int = int(os.environ.get("HOME_SERVICE_PORT", "8080"))

    # Logging
    log_level: str = os.environ.get("LOG_LEVEL", "INFO").upper()
    app_log_level: str = os.environ.get("HOME_SERVICE_LOG_LEVEL", "DEBUG").upper()
    log_file: Optional[Path] = _optional_path("LOG_FILE")
    log_max_bytes: int = int(os.environ.get("LOG_MAX_BYTES", str(10 * 1024 * 1024)))  # 10MB
    log_backup_count: int = int(os.environ.get("LOG_BACKUP_COUNT", "5"))

    # Event stream
    sse_keepalive: float = float(os.environ.get("SSE_KEEPALIVE_SECONDS", "15"))

    # Reload client
    reload_debounce: float = int(os.environ.get("RELOAD_DEBOUNCE_MS", "200")) / 1000
    reload_retry: float = float(os.environ.get("RELOAD_RETRY_SECONDS", "3"))

    # systemd unit
    unit_name: str = os.environ.get("UNIT_NAME", "home-services")
    unit_user: str = os.environ.get("UNIT_USER", "home-services")
    unit_group: str = os.environ.get("UNIT_GROUP", "home-services")
    unit_install_dir: Path = Path(os.environ.get("UNIT_INSTALL_DIR", "/opt/home-services"))
    unit_log_dir: Path = Path(os.environ.get("UNIT_LOG_DIR", "/var/log/home-services"))
    unit_exec_start: str = os.environ.get("UNIT_EXEC_START", "")

    def get_exec_start(self) -> str:
        """Get the command systemd should run, defaulting to the install dir's venv."""
        if self.unit_exec_start:
            return self.unit_exec_start
        return f"{self.unit_install_dir}/venv/bin/python -m home_services serve"


config = Config()
