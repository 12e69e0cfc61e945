"""Configuration management for the users GraphQL service."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, Mapping, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from pydantic import TypeAdapter, ValidationError

from .database import StoreError, resolve_database_path

logger = logging.getLogger("users.config")

LISTEN_HOST = "0.0.0.0"
LISTEN_PORT = 4000

_RATE_TABLE = TypeAdapter(Dict[str, float])


class StartupError(RuntimeError):
    """Raised when the service cannot be configured or booted."""


@dataclass(frozen=True)
class Settings:
    """Process-wide settings resolved from the environment."""

    database_path: Path
    rates_path: Path
    host: str = LISTEN_HOST
    port: int = LISTEN_PORT


def resolve_rates_path(env_value: Optional[str]) -> Path:
    """Resolve the path to the currency rate file."""
    if env_value:
        candidate = Path(env_value).expanduser().resolve(strict=False)
    else:
        candidate = (Path(__file__).resolve().parent.parent / "config" / "rates.json").resolve(strict=False)
    return candidate


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build :class:`Settings` from ``environ``.

    Without an explicit mapping, a ``.env`` file in the working directory is
    loaded first; variables already set in the process environment win.
    """
    if environ is None:
        dotenv_path = find_dotenv(usecwd=True)
        if dotenv_path:
            load_dotenv(dotenv_path)
            logger.info("Loaded environment overrides from %s", dotenv_path)
        env: Mapping[str, str] = os.environ
    else:
        env = environ
    try:
        database_path = resolve_database_path(env.get("DATABASE_URL"))
    except StoreError as exc:
        raise StartupError(str(exc)) from exc
    return Settings(
        database_path=database_path,
        rates_path=resolve_rates_path(env.get("RATES_PATH")),
    )


def load_rate_table(path: Path) -> Dict[str, float]:
    """Load the currency-code to multiplier mapping from a JSON or YAML file."""
    try:
        with path.open("r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise StartupError(f"Unable to read currency rate file {path}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise StartupError(f"Currency rate file {path} is malformed: {exc}") from exc

    try:
        rates = _RATE_TABLE.validate_python(raw)
    except ValidationError as exc:
        raise StartupError(
            f"Currency rate file {path} must map currency codes to numbers"
        ) from exc

    logger.info("Loaded %d currency rates from %s", len(rates), path)
    return rates


__all__ = [
    "LISTEN_HOST",
    "LISTEN_PORT",
    "Settings",
    "StartupError",
    "load_rate_table",
    "load_settings",
    "resolve_rates_path",
]
