"""quickmarks: bookmarks and bookmark groups for a command launcher."""

from pathlib import Path


def _read_version() -> str:
    p = Path(__file__).resolve().parents[1] / "VERSION"
    try:
        return p.read_text(encoding="utf-8").strip()
    except Exception:
        # Installed without the source tree next to it.
        return "0.3.0"


__version__ = _read_version()
