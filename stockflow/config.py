"""Configuration loading and logging setup.

Values come from ``config.yaml`` next to this module; ``DATABASE_URL``,
``REDIS_URL`` and ``STOCKFLOW_LOG_LEVEL`` override the file.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from decimal import Decimal

import yaml

from domain.models import TaxSettings
from domain.money import to_decimal

CONFIG_PATH = os.path.join(os.path.dirname(__file__), "config.yaml")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///data/stockflow.db"
    redis_url: str | None = None
    snapshot_ttl: int = 86400
    tax: TaxSettings = field(default_factory=TaxSettings)
    stale_after_seconds: float = 300
    log_level: str = "INFO"


def load_settings(path: str | None = None, environ=None) -> Settings:
    """Read the YAML file at *path* and overlay environment variables."""
    environ = os.environ if environ is None else environ
    config: dict = {}
    path = path or CONFIG_PATH
    if os.path.exists(path):
        with open(path) as f:
            config = yaml.safe_load(f) or {}

    database = config.get("database") or {}
    cache = config.get("cache") or {}
    tax = config.get("tax") or {}
    refresh = config.get("refresh") or {}
    log = config.get("logging") or {}

    return Settings(
        database_url=environ.get("DATABASE_URL") or database.get("url") or Settings.database_url,
        redis_url=environ.get("REDIS_URL") or cache.get("redis_url"),
        snapshot_ttl=int(cache.get("snapshot_ttl", Settings.snapshot_ttl)),
        tax=TaxSettings(
            enabled=bool(tax.get("enabled", True)),
            rate_a=to_decimal(tax.get("rate_a"), Decimal("9")),
            rate_b=to_decimal(tax.get("rate_b"), Decimal("9")),
        ),
        stale_after_seconds=float(refresh.get("stale_after_seconds", Settings.stale_after_seconds)),
        log_level=(environ.get("STOCKFLOW_LOG_LEVEL") or log.get("level") or "INFO").upper(),
    )


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)
