"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}
_KNOWN_KEYS = {"database_path", "log_level", "log_file", "seed_on_startup", "host", "port"}


def _env_flag(value: Optional[str], default: bool = False) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _flag(value: object) -> bool:
    if isinstance(value, str):
        return _env_flag(value)
    return bool(value)


def _resolve_relative(raw: str, base_path: Path | None) -> Path:
    candidate = Path(raw).expanduser()
    if not candidate.is_absolute() and base_path is not None:
        candidate = base_path / candidate
    return candidate.resolve(strict=False)


@dataclass(frozen=True)
class ServiceSettings:
    """Runtime settings for the API service and CLI."""

    database_path: Path
    log_level: str = "INFO"
    log_file: Optional[Path] = None
    seed_on_startup: bool = False
    host: str = "127.0.0.1"
    port: int = 8000

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ServiceSettings":
        """Create :class:`ServiceSettings` from raw dictionary data."""
        unknown = set(data.keys()) - _KNOWN_KEYS
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        raw_db = data.get("database_path")
        if raw_db:
            database_path = _resolve_relative(str(raw_db), base_path)
        else:
            database_path = resolve_database_path(None)

        raw_log_file = data.get("log_file")
        log_file = _resolve_relative(str(raw_log_file), base_path) if raw_log_file else None

        log_level = str(data.get("log_level", "INFO")).upper()
        if log_level not in _LOG_LEVELS:
            raise ValueError(f"Unsupported log level '{log_level}'")

        try:
            port = int(data.get("port", 8000))  # type: ignore[arg-type]
        except (TypeError, ValueError) as exc:
            raise ValueError("Port must be an integer") from exc
        if not 1 <= port <= 65535:
            raise ValueError(f"Port {port} is out of range")

        return ServiceSettings(
            database_path=database_path,
            log_level=log_level,
            log_file=log_file,
            seed_on_startup=_flag(data.get("seed_on_startup", False)),
            host=str(data.get("host", "127.0.0.1")),
            port=port,
        )

    def with_environment(self, environ: Mapping[str, str] | None = None) -> "ServiceSettings":
        """Return a copy with ``USERCRUD_*`` environment overrides applied."""
        env = os.environ if environ is None else environ
        overrides: Dict[str, object] = {}

        if env.get("USERCRUD_DB_PATH"):
            overrides["database_path"] = resolve_database_path(env["USERCRUD_DB_PATH"])
        if env.get("USERCRUD_LOG_LEVEL"):
            level = env["USERCRUD_LOG_LEVEL"].strip().upper()
            if level not in _LOG_LEVELS:
                raise ValueError(f"Unsupported log level '{level}'")
            overrides["log_level"] = level
        if env.get("USERCRUD_LOG_FILE"):
            overrides["log_file"] = Path(env["USERCRUD_LOG_FILE"]).expanduser().resolve(strict=False)
        if "USERCRUD_SEED_ON_STARTUP" in env:
            overrides["seed_on_startup"] = _env_flag(env["USERCRUD_SEED_ON_STARTUP"])

        return replace(self, **overrides) if overrides else self


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServiceSettings:
    """Load settings from an optional YAML file, then apply environment overrides."""
    raw: Dict[str, object] = {}
    base_path: Path | None = None
    if config_path is not None and config_path.exists():
        with config_path.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
        if not isinstance(loaded, dict):
            raise ValueError("Configuration file must contain a mapping at the top level")
        raw = loaded
        base_path = config_path.parent

    return ServiceSettings.from_dict(raw, base_path=base_path).with_environment(environ)


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "usercrud.yaml").resolve(strict=False)
    return candidate


__all__ = ["ServiceSettings", "load_settings", "resolve_config_path"]
