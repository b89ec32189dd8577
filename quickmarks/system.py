from __future__ import annotations

import shlex
import shutil
import subprocess
import sys
import time
from typing import Iterable, List, Optional

from .log import get_logger

log = get_logger(__name__)

APP_NAME = "Bookmarks"


def opener_command(opener: str = "") -> List[str]:
    if opener:
        return shlex.split(opener)
    if sys.platform.startswith("win"):
        return ["cmd", "/c", "start", ""]
    if sys.platform == "darwin":
        return ["open"]
    return ["xdg-open"]


def open_url(url: str, *, opener: str = "") -> bool:
    """Hand ``url`` to the OS opener in a detached process.

    Best effort and unobserved: the process is not waited for and its exit
    status is never read. Returns False only when it could not be started.
    """
    cmd = opener_command(opener) + [url]
    try:
        subprocess.Popen(
            cmd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
        )
    except OSError as e:
        log.warning("Could not start %s for %s: %s", cmd[0], url, e)
        return False
    return True


def open_urls(urls: Iterable[str], *, delay_ms: int = 1000, opener: str = "") -> int:
    """Open each URL in turn, pausing between launches so the browser keeps up."""
    started = 0
    for i, url in enumerate(urls):
        if i and delay_ms > 0:
            time.sleep(delay_ms / 1000)
        if open_url(url, opener=opener):
            started += 1
    return started


def notify(title: str, message: str, *, enabled: bool = True, icon: Optional[str] = None) -> None:
    log.info("%s: %s", title, message)
    if not enabled:
        return
    cmd = _notify_command(title, message, icon)
    if cmd is None:
        log.debug("No desktop notification tool available.")
        return
    try:
        subprocess.run(cmd, capture_output=True, text=True, timeout=5)
    except (OSError, subprocess.SubprocessError) as e:
        log.debug("Desktop notification failed: %s", e)


def _notify_command(title: str, message: str, icon: Optional[str]) -> Optional[List[str]]:
    if sys.platform == "darwin" and shutil.which("osascript"):
        script = f"display notification {_applescript_str(message)} with title {_applescript_str(title)}"
        return ["osascript", "-e", script]
    if shutil.which("notify-send"):
        cmd = ["notify-send", "--app-name", APP_NAME]
        if icon:
            cmd += ["--icon", icon]
        return cmd + [title, message]
    return None


def _applescript_str(s: str) -> str:
    return '"' + s.replace("\\", "\\\\").replace('"', '\\"') + '"'
