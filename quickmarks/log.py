from __future__ import annotations

import logging
import os
import sys
from dataclasses import dataclass

from rich.console import Console
from rich.logging import RichHandler


@dataclass(frozen=True)
class LogConfig:
    level: str = "WARNING"
    no_color: bool = False


def setup_logging(cfg: LogConfig) -> None:
    # stdout belongs to the host response, every handler writes to stderr.
    level = getattr(logging, cfg.level.upper(), logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    force_no_color = cfg.no_color or os.getenv("NO_COLOR") is not None
    is_tty = sys.stderr.isatty()

    if (not force_no_color) and is_tty:
        handler = RichHandler(
            console=Console(stderr=True),
            rich_tracebacks=True,
            show_time=False,
            show_level=True,
            show_path=False,
        )
        fmt = "%(message)s"
    else:
        handler = logging.StreamHandler(sys.stderr)
        fmt = "%(asctime)s %(levelname)s %(name)s: %(message)s"

    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt))
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
