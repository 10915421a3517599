"""Configuration management for the user directory service."""
from __future__ import annotations

import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml

from .database import resolve_database_path

_LOG_LEVELS = {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}


def _resolve_path(raw: object, base_path: Path | None) -> Path:
    candidate = Path(str(raw)).expanduser()
    if candidate.is_absolute() or base_path is None:
        return candidate.resolve(strict=False)
    return (base_path / candidate).resolve(strict=False)


def _default_public_dir() -> Path:
    return (Path(__file__).resolve().parent.parent / "public").resolve(strict=False)


def _normalize_log_level(value: object) -> str:
    level = str(value).strip().upper()
    if level not in _LOG_LEVELS:
        raise ValueError(f"Unsupported log level '{value}'")
    return level


@dataclass(frozen=True)
class ServiceConfig:
    """Runtime settings for the HTTP service."""

    database_path: Path
    public_dir: Path
    log_level: str = "INFO"

    @staticmethod
    def from_dict(data: Mapping[str, object], base_path: Path | None = None) -> "ServiceConfig":
        """Create a :class:`ServiceConfig` from raw dictionary data.

        Relative paths are resolved against ``base_path`` (normally the
        directory holding the configuration file).
        """
        unknown = set(data.keys()) - {"database_path", "public_dir", "log_level"}
        if unknown:
            raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        raw_db = data.get("database_path")
        database_path = _resolve_path(raw_db, base_path) if raw_db else resolve_database_path(None)

        raw_public = data.get("public_dir")
        public_dir = _resolve_path(raw_public, base_path) if raw_public else _default_public_dir()

        return ServiceConfig(
            database_path=database_path,
            public_dir=public_dir,
            log_level=_normalize_log_level(data.get("log_level", "INFO")),
        )

    def with_environment(self, environ: Mapping[str, str]) -> "ServiceConfig":
        """Return a copy with ``USERS_*`` environment overrides applied."""
        overrides: Dict[str, object] = {}
        if environ.get("USERS_DB_PATH"):
            overrides["database_path"] = resolve_database_path(environ["USERS_DB_PATH"])
        if environ.get("USERS_PUBLIC_DIR"):
            overrides["public_dir"] = _resolve_path(environ["USERS_PUBLIC_DIR"], None)
        if environ.get("USERS_LOG_LEVEL"):
            overrides["log_level"] = _normalize_log_level(environ["USERS_LOG_LEVEL"])
        return replace(self, **overrides) if overrides else self


def resolve_config_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the configuration file."""
    if env_value:
        return Path(env_value).expanduser().resolve(strict=False)
    return (Path(__file__).resolve().parent.parent / "config" / "service.yaml").resolve(strict=False)


def load_service_config(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> ServiceConfig:
    """Load settings from a YAML file, then apply environment overrides.

    A missing file is not an error; defaults are used instead.
    """
    env = os.environ if environ is None else environ
    path = config_path or resolve_config_path(env.get("USERS_CONFIG"))

    raw: object = {}
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle) or {}

    if not isinstance(raw, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")

    return ServiceConfig.from_dict(raw, base_path=path.parent).with_environment(env)


__all__ = ["ServiceConfig", "load_service_config", "resolve_config_path"]
