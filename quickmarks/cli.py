from __future__ import annotations

import argparse
import sys
import time
from pathlib import Path
from typing import List, TextIO, Tuple

from . import __version__, store
from .actions import ActionContext, dispatch
from .config import Settings, load_settings
from .errors import ActionError, ConfigError, MissingFieldError, RequestError, StoreCorruptError
from .log import LogConfig, get_logger, setup_logging
from .protocol import HostRequest, read_request, write_results
from .results import DoNothing, ResultItem, build_results
from .router import route

log = get_logger(__name__)


def main(argv: List[str] | None = None) -> int:
    p = argparse.ArgumentParser(
        prog="quickmarks",
        description="Bookmarks and bookmark groups for a command launcher.",
    )
    p.add_argument("-V", "--version", action="version", version=f"quickmarks {__version__}")
    p.add_argument("--config", default=None, help="YAML config file (optional). Env vars override defaults.")
    p.add_argument("--store-dir", default=None, help="Directory holding bookmarks.yml and cached icons.")
    p.add_argument("--log-level", default=None, help="DEBUG/INFO/WARN/ERROR (overrides env/config).")
    p.add_argument("--no-color", action="store_true", help="Disable colored logging.")
    sub = p.add_subparsers(dest="cmd", required=True)

    res = sub.add_parser("results", help="Print the results for the typed search text as JSON.")
    res.add_argument("text", nargs="*", help="Search text, e.g. 'edit git'. Empty shows the create actions.")
    res.add_argument("--set", dest="settings", action="append", type=_key_value, default=[], metavar="KEY=VALUE",
                     help="Extension setting sent by the host (repeatable), e.g. copy_url=true.")

    run = sub.add_parser("run", help="Run an action emitted by a previous result.")
    run.add_argument("action", help="Action name, e.g. open_group or delete_bookmark.")
    run.add_argument("args", nargs="*", help="Action arguments (entity id for most actions).")
    run.add_argument("--field", dest="fields", action="append", type=_key_value, default=[], metavar="KEY=VALUE",
                     help="Submitted form field (repeatable), e.g. name=GitHub.")
    run.add_argument("--set", dest="settings", action="append", type=_key_value, default=[], metavar="KEY=VALUE",
                     help="Extension setting sent by the host (repeatable).")

    hdl = sub.add_parser("handle", help="Read one JSON host request and answer it.")
    hdl.add_argument("--request", default="-", help="Request file, '-' for stdin (default).")

    args = p.parse_args(argv)
    try:
        cfg = load_settings(args.config)
    except (OSError, ConfigError) as e:
        setup_logging(LogConfig(level=args.log_level or "WARNING", no_color=args.no_color))
        log.error("Failed to load config: %s", e)
        return 2
    if args.store_dir:
        cfg.store_dir = args.store_dir
    if args.log_level:
        cfg.log_level = args.log_level
    if args.no_color:
        cfg.no_color = True
    setup_logging(LogConfig(level=cfg.log_level, no_color=cfg.no_color))

    try:
        request = _request_from_args(args)
    except (OSError, RequestError) as e:
        log.error("Failed to read host request: %s", e)
        return 2
    return handle_request(request, cfg, sys.stdout)


def handle_request(request: HostRequest, cfg: Settings, out: TextIO) -> int:
    t0 = time.time()
    cfg.apply_extension_settings(request.settings)
    ctx = ActionContext.from_settings(cfg)

    try:
        state = store.load(ctx.store_path)
    except StoreCorruptError as e:
        # Never fall back to an empty store here: the next save would wipe the file.
        log.error("Refusing to use the bookmarks store: %s", e)
        if request.kind == "results":
            write_results(out, [ResultItem(label=f"Bookmarks file is corrupt: {ctx.store_path}", action=DoNothing())])
        else:
            ctx.notify(f"Bookmarks file is corrupt: {ctx.store_path}", title="Error")
        return 2

    if request.kind == "results":
        items = build_results(state, route(request.search_text or ""), cfg)
        write_results(out, items)
        log.debug("Answered %r with %d results in %d ms.", request.search_text, len(items), _ms_since(t0))
        return 0

    if not request.action:
        log.error("Action request without an action name.")
        return 2
    try:
        dispatch(request.action, state, ctx, args=request.args, form=request.form)
    except MissingFieldError as e:
        log.error("Action %s rejected: %s", request.action, e)
        ctx.notify(f"Missing form field: {e.field_id}", title="Error")
        return 2
    except ActionError as e:
        log.error("Action %s rejected: %s", request.action, e)
        ctx.notify(f"Could not run {request.action}: {e}", title="Error")
        return 2
    except OSError as e:
        log.error("Action %s failed to write %s: %s", request.action, ctx.store_path, e)
        ctx.notify("Could not save bookmarks", title="Error")
        return 2
    log.debug("Action %s done in %d ms.", request.action, _ms_since(t0))
    return 0


def _request_from_args(args) -> HostRequest:
    if args.cmd == "results":
        return HostRequest(kind="results", search_text=" ".join(args.text), settings=dict(args.settings))
    if args.cmd == "run":
        return HostRequest(
            kind="action",
            action=args.action,
            args=list(args.args),
            form=dict(args.fields) or None,
            settings=dict(args.settings),
        )
    if args.request == "-":
        return read_request(sys.stdin)
    with Path(args.request).open("r", encoding="utf-8") as f:
        return read_request(f)


def _key_value(raw: str) -> Tuple[str, str]:
    key, sep, value = raw.partition("=")
    if not sep or not key:
        raise argparse.ArgumentTypeError(f"expected KEY=VALUE, got {raw!r}")
    return key, value


def _ms_since(t0: float) -> int:
    return int((time.time() - t0) * 1000)


if __name__ == "__main__":
    raise SystemExit(main())
