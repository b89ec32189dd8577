"""Result items emitted for a routed query.

Every item pairs a label and an icon with exactly one action. Items are built
from the in-memory store in store order (groups first) and never re-ranked.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Union

from . import fuzzy, paths
from .config import Settings
from .log import get_logger
from .model import Bookmark, Group, StoreState
from .router import Mode, RoutedQuery

log = get_logger(__name__)

# Action names the host sends back to the dispatcher.
CREATE_BOOKMARK = "create_bookmark"
CREATE_GROUP = "create_group"
EDIT_BOOKMARK = "edit_bookmark"
EDIT_GROUP = "edit_group"
DELETE_BOOKMARK = "delete_bookmark"
DELETE_GROUP = "delete_group"
OPEN_GROUP = "open_group"

# Form field ids.
FIELD_NAME = "name"
FIELD_URL = "url"
FIELD_USE_ICON = "use-icon"
FIELD_ICON_PATH = "icon-path"
FIELD_TINT_ICON = "tint-icon"
MEMBER_PREFIX = "bookmark-"


# ---------------------------------------------------------------------------
# Form fields


@dataclass(frozen=True)
class InputField:
    id: str
    title: str
    value: str = ""
    description: str = ""
    placeholder: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "input",
            "id": self.id,
            "title": self.title,
            "value": self.value,
            "description": self.description,
            "placeholder": self.placeholder,
        }


@dataclass(frozen=True)
class ToggleField:
    id: str
    title: str
    checked: bool = False
    description: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "toggle",
            "id": self.id,
            "title": self.title,
            "checked": self.checked,
            "description": self.description,
        }


FormField = Union[InputField, ToggleField]


# ---------------------------------------------------------------------------
# Actions


@dataclass(frozen=True)
class OpenUrl:
    url: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "open_url", "url": self.url}


@dataclass(frozen=True)
class CopyText:
    text: str

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "copy_text", "text": self.text}


@dataclass(frozen=True)
class OpenForm:
    action: str
    title: str
    fields: List[FormField]
    args: List[str] = field(default_factory=list)
    button_text: str = "Save"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": "form",
            "action": self.action,
            "title": self.title,
            "fields": [f.to_dict() for f in self.fields],
            "args": list(self.args),
            "button_text": self.button_text,
        }


@dataclass(frozen=True)
class RunAction:
    action: str
    args: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"type": "run_action", "action": self.action, "args": list(self.args)}


@dataclass(frozen=True)
class DoNothing:
    def to_dict(self) -> Dict[str, Any]:
        return {"type": "none"}


Action = Union[OpenUrl, CopyText, OpenForm, RunAction, DoNothing]


@dataclass(frozen=True)
class ResultItem:
    label: str
    action: Action
    icon: Optional[str] = None  # None => host default icon
    tint_icon: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "label": self.label,
            "icon": self.icon,
            "tint_icon": self.tint_icon,
            "action": self.action.to_dict(),
        }


# ---------------------------------------------------------------------------
# Builders


def build_results(state: StoreState, query: RoutedQuery, settings: Settings) -> List[ResultItem]:
    builder = _BUILDERS[query.mode]
    items = builder(state, query.remainder, settings)
    log.debug("mode=%s remainder=%r -> %d results", query.mode.value, query.remainder, len(items))
    return items


def default_results(state: StoreState, _remainder: str, settings: Settings) -> List[ResultItem]:
    items = [
        ResultItem(
            label="Create bookmark",
            icon=paths.icon("plus"),
            tint_icon=True,
            action=OpenForm(
                action=CREATE_BOOKMARK,
                title="Create Bookmark",
                fields=_bookmark_fields(),
                button_text="Create Bookmark",
            ),
        )
    ]
    # Groups are hidden while URLs are copied instead of opened.
    if not settings.copy_url:
        items.append(
            ResultItem(
                label="Create group",
                icon=paths.icon("plus"),
                tint_icon=True,
                action=OpenForm(
                    action=CREATE_GROUP,
                    title="Create Group",
                    fields=_group_fields(state.bookmarks),
                    button_text="Create Group",
                ),
            )
        )
    return items


def search_results(state: StoreState, remainder: str, settings: Settings) -> List[ResultItem]:
    items: List[ResultItem] = []
    if not settings.copy_url:
        for g in _matching_groups(state, remainder):
            items.append(
                ResultItem(
                    label=f"Open {g.name}",
                    action=RunAction(OPEN_GROUP, [str(g.id)]),
                    **_group_icon(g),
                )
            )
    for b in _matching_bookmarks(state, remainder):
        if settings.copy_url:
            items.append(ResultItem(label=f"Copy {b.url}", action=CopyText(b.url), **_bookmark_icon(b)))
        else:
            items.append(ResultItem(label=f"Open {b.name}", action=OpenUrl(b.url), **_bookmark_icon(b)))
    return items


def edit_results(state: StoreState, remainder: str, settings: Settings) -> List[ResultItem]:
    if not remainder:
        return []
    items: List[ResultItem] = []
    for g in _matching_groups(state, remainder):
        items.append(
            ResultItem(
                label=f"Edit {g.name} group",
                icon=paths.icon("pencil"),
                tint_icon=True,
                action=OpenForm(
                    action=EDIT_GROUP,
                    title=f"Edit {g.name} group",
                    fields=_group_fields(state.bookmarks, g),
                    args=[str(g.id)],
                ),
            )
        )
    for b in _matching_bookmarks(state, remainder):
        items.append(
            ResultItem(
                label=f"Edit {b.name}",
                icon=paths.icon("pencil"),
                tint_icon=True,
                action=OpenForm(
                    action=EDIT_BOOKMARK,
                    title=f"Edit {b.name}",
                    fields=_bookmark_fields(b),
                    args=[str(b.id)],
                ),
            )
        )
    return items


def delete_results(state: StoreState, remainder: str, settings: Settings) -> List[ResultItem]:
    if not remainder:
        return []
    items: List[ResultItem] = []
    for g in _matching_groups(state, remainder):
        items.append(
            ResultItem(
                label=f"Delete {g.name} group",
                icon=paths.icon("trash"),
                tint_icon=True,
                action=RunAction(DELETE_GROUP, [str(g.id)]),
            )
        )
    for b in _matching_bookmarks(state, remainder):
        items.append(
            ResultItem(
                label=f"Delete {b.name}",
                icon=paths.icon("trash"),
                tint_icon=True,
                action=RunAction(DELETE_BOOKMARK, [str(b.id)]),
            )
        )
    return items


_BUILDERS: Dict[Mode, Callable[[StoreState, str, Settings], List[ResultItem]]] = {
    Mode.DEFAULT: default_results,
    Mode.SEARCH: search_results,
    Mode.EDIT: edit_results,
    Mode.DELETE: delete_results,
}


def _matching_groups(state: StoreState, needle: str) -> List[Group]:
    return [g for g in state.groups if fuzzy.matches(g.name, needle)]


def _matching_bookmarks(state: StoreState, needle: str) -> List[Bookmark]:
    return [b for b in state.bookmarks if fuzzy.matches_any(needle, b.name, b.url)]


def _bookmark_fields(b: Optional[Bookmark] = None) -> List[FormField]:
    return [
        InputField(FIELD_NAME, "Name", b.name if b else "", "The bookmark name", "Name"),
        InputField(FIELD_URL, "Url", b.url if b else "", "The bookmark url", "Url"),
        ToggleField(
            FIELD_USE_ICON,
            "Use website icon",
            b.icon_path is not None if b else False,
            "Download the website icon and show it next to the bookmark",
        ),
    ]


def _group_fields(bookmarks: Sequence[Bookmark], g: Optional[Group] = None) -> List[FormField]:
    fields_: List[FormField] = [
        InputField(FIELD_NAME, "Name", g.name if g else "", "The group name", "Name"),
        InputField(
            FIELD_ICON_PATH,
            "Icon path",
            (g.icon_path or "") if g else "",
            "Optional path to an image shown next to the group",
            "Icon path",
        ),
        ToggleField(FIELD_TINT_ICON, "Tint icon", g.tint_icon if g else False, "Tint the icon with the theme accent"),
    ]
    members = set(g.bookmark_ids) if g else set()
    for b in bookmarks:
        fields_.append(
            ToggleField(
                f"{MEMBER_PREFIX}{b.id}",
                b.name,
                b.id in members,
                "Toggle if you want to add the bookmark to the group",
            )
        )
    return fields_


def _group_icon(g: Group) -> Dict[str, Any]:
    if g.icon_path:
        return {"icon": g.icon_path, "tint_icon": g.tint_icon}
    return {"icon": paths.icon("folder"), "tint_icon": True}


def _bookmark_icon(b: Bookmark) -> Dict[str, Any]:
    if b.icon_path:
        return {"icon": b.icon_path, "tint_icon": False}
    return {"icon": paths.icon("bookmark"), "tint_icon": True}
