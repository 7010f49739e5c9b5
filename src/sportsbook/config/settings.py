"""Settings from config/default.toml plus an optional profile overlay (config/<profile>.toml)."""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

import structlog

from sportsbook.odds.engine import OddsConfig

SECTIONS = ("odds", "settlement", "storage", "logging")
DEFAULT_DB_PATH = "data/sportsbook.duckdb"
CONFIG_DIR_ENV = "SPORTSBOOK_CONFIG_DIR"

# Repo checkout: <root>/config next to <root>/src/sportsbook
_REPO_CONFIG = Path(__file__).resolve().parents[3] / "config"


def _read_toml(path: Path) -> dict[str, Any]:
    with path.open("rb") as f:
        return tomllib.load(f)


def _merge_tables(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Overlay wins key by key; nested tables merge instead of being replaced."""
    merged = dict(base)
    for key, value in overlay.items():
        current = merged.get(key)
        merged[key] = _merge_tables(current, value) if isinstance(current, dict) and isinstance(value, dict) else value
    return merged


def resolve_config_dir(config_dir: Path | None = None) -> Path:
    """Explicit dir, then $SPORTSBOOK_CONFIG_DIR, then ./config, then the repo's config/."""
    if config_dir is not None:
        return Path(config_dir)
    env = os.environ.get(CONFIG_DIR_ENV)
    if env:
        return Path(env)
    cwd_config = Path.cwd() / "config"
    return cwd_config if cwd_config.is_dir() else _REPO_CONFIG


def load_config(profile: str | None = None, config_dir: Path | None = None) -> dict[str, Any]:
    """Merged raw config. Missing default.toml gives {}; a missing profile file is ignored."""
    root = resolve_config_dir(config_dir)
    default_path = root / "default.toml"
    if not default_path.exists():
        return {}
    raw = _read_toml(default_path)
    overlay_path = root / f"{profile}.toml" if profile else None
    if overlay_path is not None and overlay_path.exists():
        raw = _merge_tables(raw, _read_toml(overlay_path))
    return raw


def get_settings(profile: str | None = None, config_dir: Path | None = None) -> Settings:
    return Settings.from_dict(load_config(profile, config_dir))


class Settings:
    """One dict per TOML table, with typed accessors for the values the app reads."""

    def __init__(
        self,
        *,
        odds: dict[str, Any] | None = None,
        settlement: dict[str, Any] | None = None,
        storage: dict[str, Any] | None = None,
        logging: dict[str, Any] | None = None,
    ):
        self.odds = dict(odds or {})
        self.settlement = dict(settlement or {})
        self.storage = dict(storage or {})
        self.logging = dict(logging or {})

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> Settings:
        return cls(**{name: raw.get(name) for name in SECTIONS})

    def with_db_path(self, db_path: str | Path) -> Settings:
        """Copy with storage.db_path replaced (CLI --db)."""
        sections = {name: getattr(self, name) for name in SECTIONS}
        sections["storage"] = {**self.storage, "db_path": str(db_path)}
        return Settings(**sections)

    @property
    def odds_config(self) -> OddsConfig:
        return OddsConfig.model_validate(self.odds)

    @property
    def refund_voided_wagers(self) -> bool:
        return bool(self.settlement.get("refund_voided_wagers", False))

    @property
    def db_path(self) -> str:
        return str(self.storage.get("db_path", DEFAULT_DB_PATH))

    @property
    def logging_level(self) -> str:
        return str(self.logging.get("level", "INFO")).upper()

    @property
    def logging_format(self) -> str:
        return self.logging.get("format", "console")

    @property
    def logging_level_num(self) -> int:
        return logging.getLevelNamesMapping().get(self.logging_level, logging.INFO)


def configure_logging(settings: Settings) -> None:
    """Set up structlog once at process start (CLI callback, API server)."""
    renderer = structlog.processors.JSONRenderer() if settings.logging_format == "json" else structlog.dev.ConsoleRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(settings.logging_level_num),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
