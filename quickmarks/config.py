from __future__ import annotations

import os
from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from .errors import ConfigError
from .log import get_logger

log = get_logger(__name__)

_TRUE = ("1", "true", "yes", "y", "on")


def _env_int(name: str, default: int) -> int:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    try:
        return int(v)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    v = os.getenv(name)
    if v is None or v == "":
        return default
    return v.strip().lower() in _TRUE


def _env_str(name: str, default: str) -> str:
    v = os.getenv(name)
    return default if v is None else v


def as_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if value is None:
        return False
    return str(value).strip().lower() in _TRUE


@dataclass
class Settings:
    # Behaviour
    copy_url: bool = False  # copy bookmark URLs instead of opening them; hides groups

    # Storage
    store_dir: str = ""  # empty => per-user config dir

    # Favicons
    favicon_source: str = "service"  # service | page
    favicon_service_url: str = "https://www.google.com/s2/favicons?domain={domain}&sz={size}"
    favicon_size: int = 256
    fetch_timeout_s: int = 10
    fetch_user_agent: str = "quickmarks/0.3 (+https://example.invalid)"
    fetch_max_bytes: int = 2_000_000

    # Opening groups
    open_delay_ms: int = 1000
    opener: str = ""  # empty => platform default (xdg-open, open, start)

    # Logging / UX
    notify: bool = True
    log_level: str = "WARNING"
    no_color: bool = False

    @staticmethod
    def from_env() -> "Settings":
        s = Settings()
        s.copy_url = _env_bool("QMARKS_COPY_URL", s.copy_url)
        s.store_dir = _env_str("QMARKS_STORE_DIR", s.store_dir)

        s.favicon_source = _env_str("QMARKS_FAVICON_SOURCE", s.favicon_source)
        s.favicon_service_url = _env_str("QMARKS_FAVICON_SERVICE_URL", s.favicon_service_url)
        s.favicon_size = _env_int("QMARKS_FAVICON_SIZE", s.favicon_size)
        s.fetch_timeout_s = _env_int("QMARKS_FETCH_TIMEOUT_S", s.fetch_timeout_s)
        s.fetch_user_agent = _env_str("QMARKS_FETCH_UA", s.fetch_user_agent)
        s.fetch_max_bytes = _env_int("QMARKS_FETCH_MAX_BYTES", s.fetch_max_bytes)

        s.open_delay_ms = _env_int("QMARKS_OPEN_DELAY_MS", s.open_delay_ms)
        s.opener = _env_str("QMARKS_OPENER", s.opener)

        s.notify = _env_bool("QMARKS_NOTIFY", s.notify)
        s.log_level = _env_str("QMARKS_LOG_LEVEL", s.log_level)
        s.no_color = _env_bool("QMARKS_NO_COLOR", s.no_color)
        return s

    @staticmethod
    def from_file(path: Path) -> "Settings":
        try:
            data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"{path}: not valid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: expected a mapping of settings, got {type(data).__name__}")
        s = Settings.from_env()
        s._overlay(data, source=str(path))
        return s

    def apply_extension_settings(self, values: Mapping[str, Any]) -> None:
        """Overlay the settings the host stores for this extension.

        The host sends every value as a string (toggles as "true"/"false"), so
        each value is coerced to the type of the field it lands on. Unknown keys
        are logged and skipped.
        """
        self._overlay(values, source="extension settings")

    def _overlay(self, values: Mapping[str, Any], *, source: str) -> None:
        known = {f.name for f in fields(self)}
        for key, raw in values.items():
            name = str(key).replace("-", "_")
            if name not in known:
                log.debug("Ignoring unknown setting %s from %s", key, source)
                continue
            current = getattr(self, name)
            if isinstance(current, bool):
                setattr(self, name, as_bool(raw))
            elif isinstance(current, int):
                try:
                    setattr(self, name, int(raw))
                except (TypeError, ValueError):
                    log.warning("Setting %s from %s is not a number: %r", key, source, raw)
            else:
                setattr(self, name, "" if raw is None else str(raw))


def load_settings(config_path: Optional[str]) -> Settings:
    if config_path:
        return Settings.from_file(Path(config_path))
    return Settings.from_env()
