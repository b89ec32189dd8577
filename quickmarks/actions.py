from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from . import favicon, paths, store, system
from .config import Settings
from .errors import ActionError, EntityNotFoundError
from .log import get_logger
from .model import StoreState
from .protocol import FieldValue, FormValues
from .results import (
    CREATE_BOOKMARK,
    CREATE_GROUP,
    DELETE_BOOKMARK,
    DELETE_GROUP,
    EDIT_BOOKMARK,
    EDIT_GROUP,
    FIELD_ICON_PATH,
    FIELD_NAME,
    FIELD_TINT_ICON,
    FIELD_URL,
    FIELD_USE_ICON,
    MEMBER_PREFIX,
    OPEN_GROUP,
)

log = get_logger(__name__)


@dataclass
class ActionContext:
    settings: Settings
    store_path: Path
    favicons_dir: Path

    @staticmethod
    def from_settings(settings: Settings) -> "ActionContext":
        return ActionContext(
            settings=settings,
            store_path=paths.store_path(settings.store_dir),
            favicons_dir=paths.favicons_dir(settings.store_dir),
        )

    def favicon_path(self, bookmark_id: int) -> Path:
        return self.favicons_dir / f"{bookmark_id}.png"

    def notify(self, message: str, title: str = system.APP_NAME) -> None:
        system.notify(title, message, enabled=self.settings.notify)


Handler = Callable[[StoreState, ActionContext, List[str], FormValues], None]


def dispatch(
    action: str,
    state: StoreState,
    ctx: ActionContext,
    *,
    args: Sequence[str] = (),
    form: Optional[Mapping[str, FieldValue]] = None,
) -> bool:
    """Run one host action against ``state``; persist it when it mutates.

    Returns False for action names this extension does not know. Those come
    from a host/extension version mismatch and are ignored.
    """
    handler = _HANDLERS.get(action)
    if handler is None:
        log.debug("Ignoring unknown action %r", action)
        return False
    log.debug("Running action %s args=%s", action, list(args))
    try:
        handler(state, ctx, list(args), FormValues(form))
    except EntityNotFoundError as e:
        # The result list the user acted on is older than the store.
        log.warning("Action %s skipped: %s", action, e)
        ctx.notify(f"That {e.kind} no longer exists")
    return True


# ---------------------------------------------------------------------------
# Bookmarks


def create_bookmark(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    name = form.text(FIELD_NAME).strip()
    url = form.text(FIELD_URL).strip()
    if not name or not url:
        ctx.notify("Fields must not be empty")
        return

    b = store.create_bookmark(state, name, url)
    if form.flag(FIELD_USE_ICON, default=False):
        b.icon_path = _cache_icon(ctx, b.id, url)
    state.bookmarks.append(b)

    store.save(ctx.store_path, state)
    ctx.notify(f"{name} created successfully")


def edit_bookmark(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    bookmark_id = _id_arg(args)
    name = form.text(FIELD_NAME).strip()
    url = form.text(FIELD_URL).strip()
    if not name or not url:
        ctx.notify("Can't have empty fields")
        return

    current = store.get_bookmark(state, bookmark_id)
    icon_path: Optional[str] = None
    if form.flag(FIELD_USE_ICON, default=False):
        cached = ctx.favicon_path(bookmark_id)
        if current.icon_path and current.url == url and cached.exists():
            icon_path = current.icon_path
        else:
            icon_path = _cache_icon(ctx, bookmark_id, url)
            if icon_path is None:
                # The old icon belongs to the previous url.
                _remove_icon(ctx, bookmark_id)
    elif current.icon_path:
        _remove_icon(ctx, bookmark_id)

    store.update_bookmark(state, bookmark_id, name, url, icon_path)
    store.save(ctx.store_path, state)
    ctx.notify(f"{name} edited successfully")


def delete_bookmark(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    bookmark_id = _id_arg(args)
    removed = store.delete_bookmark(state, bookmark_id)
    store.save(ctx.store_path, state)
    # The id may be handed out again; a stale icon must not come with it.
    _remove_icon(ctx, bookmark_id)
    ctx.notify(f"{removed.name} deleted")


# ---------------------------------------------------------------------------
# Groups


def create_group(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    name = form.text(FIELD_NAME).strip()
    if not name:
        ctx.notify("Can't have empty group name")
        return

    g = store.add_group(state, name, form.member_ids(MEMBER_PREFIX))
    g.icon_path = _group_icon_path(form)
    g.tint_icon = form.flag(FIELD_TINT_ICON, default=False)

    store.save(ctx.store_path, state)
    ctx.notify(f"{name} group created successfully")


def edit_group(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    group_id = _id_arg(args)
    name = form.text(FIELD_NAME).strip()
    if not name:
        ctx.notify("Can't have empty group name")
        return

    store.update_group(
        state,
        group_id,
        name,
        form.member_ids(MEMBER_PREFIX),
        _group_icon_path(form),
        form.flag(FIELD_TINT_ICON, default=False),
    )
    store.save(ctx.store_path, state)
    ctx.notify(f"{name} group edited successfully")


def delete_group(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    group_id = _id_arg(args)
    removed = store.delete_group(state, group_id)
    store.save(ctx.store_path, state)
    ctx.notify(f"{removed.name} group deleted")


def open_group(state: StoreState, ctx: ActionContext, args: List[str], form: FormValues) -> None:
    g = store.get_group(state, _id_arg(args))
    urls = [b.url for b in store.group_bookmarks(state, g)]
    if not urls:
        ctx.notify(f"{g.name} has no bookmarks")
        return
    started = system.open_urls(urls, delay_ms=ctx.settings.open_delay_ms, opener=ctx.settings.opener)
    log.info("Opened %d/%d bookmarks of group %s", started, len(urls), g.name)


_HANDLERS: Dict[str, Handler] = {
    CREATE_BOOKMARK: create_bookmark,
    EDIT_BOOKMARK: edit_bookmark,
    DELETE_BOOKMARK: delete_bookmark,
    CREATE_GROUP: create_group,
    EDIT_GROUP: edit_group,
    DELETE_GROUP: delete_group,
    OPEN_GROUP: open_group,
}


# ---------------------------------------------------------------------------
# Helpers


def _id_arg(args: List[str]) -> int:
    if not args:
        raise ActionError("missing id argument")
    raw = args[0].strip()
    if not (raw.isascii() and raw.isdigit()):
        raise ActionError(f"id argument is not a number: {raw!r}")
    return int(raw)


def _group_icon_path(form: FormValues) -> Optional[str]:
    if FIELD_ICON_PATH not in form:
        return None
    raw = form.text(FIELD_ICON_PATH).strip()
    if not raw:
        return None
    p = Path(raw).expanduser()
    if not p.exists():
        log.warning("Group icon %s does not exist; keeping the path anyway.", p)
    return str(p)


def _cache_icon(ctx: ActionContext, bookmark_id: int, url: str) -> Optional[str]:
    s = ctx.settings
    res = favicon.fetch_favicon(
        url,
        ctx.favicon_path(bookmark_id),
        source=s.favicon_source,
        service_url=s.favicon_service_url,
        size=s.favicon_size,
        timeout_s=s.fetch_timeout_s,
        user_agent=s.fetch_user_agent,
        max_bytes=s.fetch_max_bytes,
    )
    if not res.ok or res.path is None:
        ctx.notify(
            "Error getting icon. Make sure you have a valid url and internet connection",
            title="Error",
        )
        return None
    return str(res.path)


def _remove_icon(ctx: ActionContext, bookmark_id: int) -> None:
    p = ctx.favicon_path(bookmark_id)
    try:
        p.unlink()
    except FileNotFoundError:
        pass
    except OSError as e:
        log.warning("Could not remove cached icon %s: %s", p, e)
