"""
Application configuration.

Settings are read from the environment (and a local .env file, if present).
Budget and freshness policy live here as well so they can be tuned without
touching the derivation code.
"""

import os
import logging
from logging.handlers import RotatingFileHandler
from dataclasses import dataclass
from datetime import timedelta
from typing import Optional

from dotenv import load_dotenv

# Policy constants
BUDGET_EPSILON = 0.01
PERISHABLE_MAX_AGE_DAYS = 5
DEFAULT_UNIT_PRICE = 1.0
STAPLE_REORDER_PRICE = 4.99
DIAGNOSTIC_BODY_LIMIT = 2000

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).lower() == "true"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


@dataclass
class Settings:
    """Runtime settings for the web app and generation client."""

    n8n_webhook_url: Optional[str] = None
    public_base_url: Optional[str] = None  # used to build the callback URL
    webhook_secret: Optional[str] = None
    request_timeout: float = 30.0
    secret_key: str = "dev-secret-key-change-in-production"
    db_dir: str = "data"
    log_dir: str = "logs"
    debug: bool = False
    budget_epsilon: float = BUDGET_EPSILON
    perishable_max_age_days: float = PERISHABLE_MAX_AGE_DAYS

    @property
    def perishable_max_age(self) -> timedelta:
        return timedelta(days=self.perishable_max_age_days)

    @property
    def callback_url(self) -> Optional[str]:
        """Address the workflow should notify when menus are ready."""
        if not self.public_base_url:
            return None
        return f"{self.public_base_url.rstrip('/')}/api/n8n/callback"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables (loads .env first)."""
        load_dotenv()
        return cls(
            n8n_webhook_url=os.environ.get("N8N_WEBHOOK_URL") or None,
            public_base_url=os.environ.get("PUBLIC_BASE_URL") or None,
            webhook_secret=os.environ.get("IC_WEBHOOK_SECRET") or None,
            request_timeout=_env_float("N8N_TIMEOUT_SECONDS", 30.0),
            secret_key=os.environ.get("FLASK_SECRET_KEY", "dev-secret-key-change-in-production"),
            db_dir=os.environ.get("DB_DIR", "data"),
            log_dir=os.environ.get("LOG_DIR", "logs"),
            debug=_env_flag("DEBUG"),
            budget_epsilon=_env_float("BUDGET_EPSILON", BUDGET_EPSILON),
            perishable_max_age_days=_env_float("PERISHABLE_MAX_AGE_DAYS", PERISHABLE_MAX_AGE_DAYS),
        )


def configure_logging(settings: Settings, log_to_file: bool = True):
    """
    Configure root logging with console and rotating file output.

    Args:
        settings: Settings providing debug flag and log directory
        log_to_file: Also write to <log_dir>/app.log
    """
    handlers = [logging.StreamHandler()]
    if log_to_file:
        os.makedirs(settings.log_dir, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                os.path.join(settings.log_dir, "app.log"),
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
            )
        )

    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format=LOG_FORMAT,
        handlers=handlers,
    )
