"""Persisted bookmarks/groups store.

The whole store lives in one YAML document that is read once per invocation
and rewritten whole on every mutation:

    bookmarks:
    - {id: 0, name: GitHub, url: https://github.com, icon_path: null}
    groups:
    - {id: 0, name: Dev, bookmark_ids: [0], icon_path: null, tint_icon: false}

Mutations work on an in-memory ``StoreState``; nothing touches the disk until
``save`` is called.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterable, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from .errors import EntityNotFoundError, StoreCorruptError
from .log import get_logger
from .model import Bookmark, Group, StoreState, new_bookmark, new_group

log = get_logger(__name__)


class _BookmarkRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., ge=0)
    name: str
    url: str
    icon_path: Optional[str] = None


class _GroupRecord(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int = Field(..., ge=0)
    name: str
    bookmark_ids: List[int] = Field(default_factory=list)
    icon_path: Optional[str] = None
    tint_icon: bool = False


class _StoreDocument(BaseModel):
    bookmarks: List[_BookmarkRecord] = Field(default_factory=list)
    groups: List[_GroupRecord] = Field(default_factory=list)


def load(path: Path) -> StoreState:
    """Read the store. A missing file is an empty store; a broken one is fatal."""
    if not path.exists():
        log.debug("No store at %s, starting empty.", path)
        return StoreState()

    try:
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise StoreCorruptError(f"cannot read {path}: {e}") from e
    if not text.strip():
        return StoreState()

    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise StoreCorruptError(f"{path} is not valid YAML: {e}") from e
    if data is None:
        return StoreState()
    if not isinstance(data, dict):
        raise StoreCorruptError(f"{path} does not hold a bookmarks document")

    try:
        doc = _StoreDocument.model_validate(data)
    except ValidationError as e:
        raise StoreCorruptError(f"{path} has an unexpected shape: {e}") from e

    state = StoreState(
        bookmarks=[new_bookmark(r.id, r.name, r.url, icon_path=r.icon_path) for r in doc.bookmarks],
        groups=[
            new_group(r.id, r.name, r.bookmark_ids, icon_path=r.icon_path, tint_icon=r.tint_icon)
            for r in doc.groups
        ],
    )
    _check_unique_ids(path, "bookmark", [b.id for b in state.bookmarks])
    _check_unique_ids(path, "group", [g.id for g in state.groups])
    _drop_dangling_members(state)
    return state


def save(path: Path, state: StoreState) -> None:
    """Sort both collections by id and replace the store file in one rename."""
    state.bookmarks.sort(key=lambda b: b.id)
    state.groups.sort(key=lambda g: g.id)

    text = dump(state)
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=str(path.parent))
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.unlink(tmp)
        except OSError:
            pass
        raise
    log.debug("Saved %d bookmarks, %d groups to %s", len(state.bookmarks), len(state.groups), path)


def dump(state: StoreState) -> str:
    doc = {
        "bookmarks": [
            {"id": b.id, "name": b.name, "url": b.url, "icon_path": b.icon_path}
            for b in state.bookmarks
        ],
        "groups": [
            {
                "id": g.id,
                "name": g.name,
                "bookmark_ids": list(g.bookmark_ids),
                "icon_path": g.icon_path,
                "tint_icon": g.tint_icon,
            }
            for g in state.groups
        ],
    }
    return yaml.safe_dump(doc, sort_keys=False, allow_unicode=True, default_flow_style=False)


# ---------------------------------------------------------------------------
# Identifiers


def next_id(ids: Iterable[int]) -> int:
    # Not a counter: deleting the highest id frees it for the next creation.
    return max(ids, default=-1) + 1


def create_bookmark(state: StoreState, name: str, url: str) -> Bookmark:
    return new_bookmark(next_id(b.id for b in state.bookmarks), name, url)


def create_group(state: StoreState, name: str, bookmark_ids: Iterable[int] = ()) -> Group:
    return new_group(next_id(g.id for g in state.groups), name, bookmark_ids)


def add_bookmark(state: StoreState, name: str, url: str) -> Bookmark:
    b = create_bookmark(state, name, url)
    state.bookmarks.append(b)
    return b


def add_group(state: StoreState, name: str, bookmark_ids: Iterable[int] = ()) -> Group:
    g = create_group(state, name, _existing_members(state, bookmark_ids))
    state.groups.append(g)
    return g


# ---------------------------------------------------------------------------
# Lookup


def get_bookmark(state: StoreState, bookmark_id: int) -> Bookmark:
    for b in state.bookmarks:
        if b.id == bookmark_id:
            return b
    raise EntityNotFoundError("bookmark", bookmark_id)


def get_group(state: StoreState, group_id: int) -> Group:
    for g in state.groups:
        if g.id == group_id:
            return g
    raise EntityNotFoundError("group", group_id)


def group_bookmarks(state: StoreState, group: Group) -> List[Bookmark]:
    """Member bookmarks in the group's membership order."""
    by_id = {b.id: b for b in state.bookmarks}
    return [by_id[i] for i in group.bookmark_ids if i in by_id]


# ---------------------------------------------------------------------------
# Mutation


def delete_bookmark(state: StoreState, bookmark_id: int) -> Bookmark:
    removed = get_bookmark(state, bookmark_id)
    state.bookmarks = [b for b in state.bookmarks if b.id != bookmark_id]
    for g in state.groups:
        if bookmark_id in g.bookmark_ids:
            g.bookmark_ids = [i for i in g.bookmark_ids if i != bookmark_id]
    return removed


def delete_group(state: StoreState, group_id: int) -> Group:
    removed = get_group(state, group_id)
    state.groups = [g for g in state.groups if g.id != group_id]
    return removed


def update_bookmark(
    state: StoreState,
    bookmark_id: int,
    name: str,
    url: str,
    icon_path: Optional[str],
) -> Bookmark:
    b = get_bookmark(state, bookmark_id)
    b.name = name
    b.url = url
    b.icon_path = icon_path
    return b


def update_group(
    state: StoreState,
    group_id: int,
    name: str,
    bookmark_ids: Iterable[int],
    icon_path: Optional[str],
    tint_icon: bool,
) -> Group:
    g = get_group(state, group_id)
    g.name = name
    g.bookmark_ids = _existing_members(state, bookmark_ids)
    g.icon_path = icon_path
    g.tint_icon = tint_icon
    return g


def _existing_members(state: StoreState, bookmark_ids: Iterable[int]) -> List[int]:
    known = {b.id for b in state.bookmarks}
    out: List[int] = []
    for i in bookmark_ids:
        if i not in known:
            log.warning("Skipping unknown bookmark id %d in group membership.", i)
            continue
        if i not in out:
            out.append(i)
    return out


def _check_unique_ids(path: Path, kind: str, ids: List[int]) -> None:
    seen = set()
    for i in ids:
        if i in seen:
            raise StoreCorruptError(f"{path} has more than one {kind} with id {i}")
        seen.add(i)


def _drop_dangling_members(state: StoreState) -> None:
    known = {b.id for b in state.bookmarks}
    for g in state.groups:
        dangling = [i for i in g.bookmark_ids if i not in known]
        if dangling:
            log.warning("Group %d (%s) references missing bookmarks %s; dropping them.", g.id, g.name, dangling)
            g.bookmark_ids = [i for i in g.bookmark_ids if i in known]
