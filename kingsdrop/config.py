"""Runtime configuration read from the environment (and an optional ``.env``)."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

DEFAULT_SETTINGS_PATH = Path("~/.kingsdrop/settings.json")
LOCATE_STRATEGIES = ("mutation", "polling")
DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_POLL_INTERVAL_MS = 200
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


@dataclass(frozen=True)
class AgentConfig:
    """Settings shared by the CLI, the MCP server and the automation session."""

    headless: bool = True
    locate_strategy: str = "mutation"
    default_timeout_ms: int = DEFAULT_TIMEOUT_MS
    poll_interval_ms: int = DEFAULT_POLL_INTERVAL_MS
    stabilize_ms: int = 500
    settings_path: Path = DEFAULT_SETTINGS_PATH
    log_level: str = "INFO"

    def __post_init__(self) -> None:
        if self.locate_strategy not in LOCATE_STRATEGIES:
            allowed = ", ".join(LOCATE_STRATEGIES)
            raise ValueError(f"locate_strategy must be one of {{{allowed}}}.")
        if self.default_timeout_ms < 0:
            raise ValueError("default_timeout_ms must be non-negative.")
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive.")
        if self.stabilize_ms < 0:
            raise ValueError("stabilize_ms must be non-negative.")
        if logging.getLevelName(self.log_level.upper()) == f"Level {self.log_level.upper()}":
            raise ValueError(f"Unknown log level {self.log_level!r}.")

    def with_overrides(self, **changes: object) -> "AgentConfig":
        """Return a copy with ``changes`` applied, ignoring ``None`` values."""
        return replace(self, **{k: v for k, v in changes.items() if v is not None})


def load_config(
    environ: Optional[Mapping[str, str]] = None,
    *,
    dotenv: bool = True,
) -> AgentConfig:
    """Build an :class:`AgentConfig` from ``KINGSDROP_*`` variables."""
    if environ is None:
        if dotenv:
            load_dotenv()
        environ = os.environ
    return AgentConfig(
        headless=_bool(environ, "KINGSDROP_HEADLESS", True),
        locate_strategy=environ.get("KINGSDROP_LOCATE_STRATEGY", "mutation").strip().lower(),
        default_timeout_ms=_int(environ, "KINGSDROP_DEFAULT_TIMEOUT_MS", DEFAULT_TIMEOUT_MS),
        poll_interval_ms=_int(environ, "KINGSDROP_POLL_INTERVAL_MS", DEFAULT_POLL_INTERVAL_MS),
        stabilize_ms=_int(environ, "KINGSDROP_STABILIZE_MS", 500),
        settings_path=Path(environ.get("KINGSDROP_SETTINGS_PATH") or DEFAULT_SETTINGS_PATH).expanduser(),
        log_level=environ.get("KINGSDROP_LOG_LEVEL", "INFO").strip().upper(),
    )


def configure_logging(config: AgentConfig) -> None:
    logging.basicConfig(level=config.log_level, format=LOG_FORMAT)


def _bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be a boolean, got {raw!r}.")


def _int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}.") from None


__all__ = ["AgentConfig", "LOG_FORMAT", "configure_logging", "load_config"]
