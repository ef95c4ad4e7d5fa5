"""Runtime configuration: defaults, an optional JSON settings file, then environment."""

from __future__ import annotations

import json
import logging
import os
import platform
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from matrix_tui import APP_NAME, __version__
from matrix_tui.keys import parse_chord
from matrix_tui.matrix_client import BackendSettings

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_FILE = Path("~/.config/matrix-tui/settings.json")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")

ENV_NAMES = {
    "tick_interval_ms": "MATRIX_TUI_TICK_MS",
    "frame_interval_ms": "MATRIX_TUI_FRAME_MS",
    "help_chord": "MATRIX_TUI_HELP_KEY",
    "quit_chord": "MATRIX_TUI_QUIT_KEY",
    "verbose": "MATRIX_TUI_VERBOSE",
    "discovery_scheme": "MATRIX_TUI_DISCOVERY_SCHEME",
    "request_timeout_s": "MATRIX_TUI_REQUEST_TIMEOUT_S",
    "sync_timeout_ms": "MATRIX_TUI_SYNC_TIMEOUT_MS",
    "log_file": "MATRIX_TUI_LOG_FILE",
    "log_level": "MATRIX_TUI_LOG_LEVEL",
}


class ConfigError(ValueError):
    pass


@dataclass(frozen=True)
class AppConfig:
    tick_interval_ms: int = 100
    frame_interval_ms: int = 16
    help_chord: str = "alt+?"
    quit_chord: str = "ctrl+d"
    verbose: bool = False
    discovery_scheme: str = "https"
    request_timeout_s: float = 30.0
    sync_timeout_ms: int = 30000
    log_file: Optional[str] = None
    log_level: str = "WARNING"

    def backend_settings(self) -> BackendSettings:
        return BackendSettings(
            verbose=self.verbose,
            discovery_scheme=self.discovery_scheme,
            request_timeout_s=self.request_timeout_s,
            sync_timeout_ms=self.sync_timeout_ms,
        )


def load_settings(path: Path | str = DEFAULT_SETTINGS_FILE) -> Dict[str, Any]:
    """Load the JSON settings file; missing or unreadable files yield ``{}``."""

    try:
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            return {}
        return data
    except FileNotFoundError:
        return {}
    except (OSError, json.JSONDecodeError):
        return {}


def _parse_positive_int(name: str, raw: object) -> int:
    if isinstance(raw, bool):
        raise ConfigError(f"{name} must be an integer")
    try:
        parsed = int(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be an integer") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be positive")
    return parsed


def _parse_positive_float(name: str, raw: object) -> float:
    if isinstance(raw, bool):
        raise ConfigError(f"{name} must be a number")
    try:
        parsed = float(raw)  # type: ignore[arg-type]
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name} must be a number") from exc
    if parsed <= 0:
        raise ConfigError(f"{name} must be positive")
    return parsed


def _parse_bool01(name: str, raw: object) -> bool:
    if isinstance(raw, bool):
        return raw
    if raw not in ("0", "1", 0, 1):
        raise ConfigError(f"{name} must be 0 or 1")
    return str(raw) == "1"


def _parse_chord(name: str, raw: object) -> str:
    if not isinstance(raw, str):
        raise ConfigError(f"{name} must be a key chord such as 'ctrl+d'")
    try:
        parse_chord(raw)
    except ValueError as exc:
        raise ConfigError(f"{name} must be a valid key chord: {exc}") from exc
    return raw.strip()


def _parse_scheme(name: str, raw: object) -> str:
    if raw not in ("http", "https"):
        raise ConfigError(f"{name} must be 'http' or 'https'")
    return str(raw)


def _parse_level(name: str, raw: object) -> str:
    level = str(raw).strip().upper()
    if level not in LOG_LEVELS:
        raise ConfigError(f"{name} must be one of {', '.join(LOG_LEVELS)}")
    return level


def _parse_path(name: str, raw: object) -> Optional[str]:
    if raw is None or raw == "":
        return None
    if not isinstance(raw, str):
        raise ConfigError(f"{name} must be a file path")
    return raw


_PARSERS = {
    "tick_interval_ms": _parse_positive_int,
    "frame_interval_ms": _parse_positive_int,
    "help_chord": _parse_chord,
    "quit_chord": _parse_chord,
    "verbose": _parse_bool01,
    "discovery_scheme": _parse_scheme,
    "request_timeout_s": _parse_positive_float,
    "sync_timeout_ms": _parse_positive_int,
    "log_file": _parse_path,
    "log_level": _parse_level,
}


def parse_values(values: Mapping[str, object], names: Optional[Mapping[str, str]] = None) -> Dict[str, Any]:
    """Validate known fields in ``values``; ``names`` maps fields to the label used in errors."""

    parsed: Dict[str, Any] = {}
    for field_name, parser in _PARSERS.items():
        if field_name not in values:
            continue
        label = names[field_name] if names else field_name
        parsed[field_name] = parser(label, values[field_name])
    return parsed


def _from_env(env: Mapping[str, str]) -> Dict[str, Any]:
    present = {
        field_name: env[var]
        for field_name, var in ENV_NAMES.items()
        if env.get(var) not in (None, "")
    }
    return parse_values(present, ENV_NAMES)


def load_config(path: Path | str | None = None, env: Optional[Mapping[str, str]] = None) -> AppConfig:
    """Defaults, then the settings file (lenient read, strict values), then ``MATRIX_TUI_*``."""

    env = os.environ if env is None else env
    file_values = load_settings(path if path is not None else DEFAULT_SETTINGS_FILE)
    known = {f.name for f in fields(AppConfig)}
    unknown = sorted(set(file_values) - known)
    if unknown:
        logger.warning("ignoring unknown settings: %s", ", ".join(unknown))
    values = parse_values(file_values)
    values.update(_from_env(env))
    return replace(AppConfig(), **values)


def build_client_id(name: str = APP_NAME, version: str = __version__) -> str:
    """Device display name sent at login, e.g. ``matrix-tui v0.1.0 (Linux)``."""

    system = platform.system() or "unknown"
    return f"{name} v{version} ({system})"
