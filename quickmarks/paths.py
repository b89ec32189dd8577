from __future__ import annotations

import os
import sys
from pathlib import Path
from typing import Optional

APP_DIR_NAME = "quickmarks"
STORE_FILE_NAME = "bookmarks.yml"
FAVICONS_DIR_NAME = "favicons"

ICONS_DIR = Path(__file__).resolve().parent / "icons"


def config_dir(store_dir: Optional[str] = None) -> Path:
    if store_dir:
        return Path(store_dir).expanduser()
    if sys.platform.startswith("win"):
        base = os.getenv("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif sys.platform == "darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.getenv("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_DIR_NAME


def store_path(store_dir: Optional[str] = None) -> Path:
    return config_dir(store_dir) / STORE_FILE_NAME


def favicons_dir(store_dir: Optional[str] = None) -> Path:
    return config_dir(store_dir) / FAVICONS_DIR_NAME


def icon(name: str) -> str:
    """Absolute path of a bundled SVG icon, as the host expects it."""
    return str(ICONS_DIR / f"{name}.svg")
