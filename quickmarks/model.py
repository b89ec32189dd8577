from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional


@dataclass
class Bookmark:
    id: int
    name: str
    url: str
    icon_path: Optional[str] = None


@dataclass
class Group:
    id: int
    name: str
    bookmark_ids: List[int] = field(default_factory=list)
    icon_path: Optional[str] = None
    tint_icon: bool = False


@dataclass
class StoreState:
    bookmarks: List[Bookmark] = field(default_factory=list)
    groups: List[Group] = field(default_factory=list)


def new_bookmark(id: int, name: str, url: str, *, icon_path: Optional[str] = None) -> Bookmark:
    return Bookmark(id=id, name=name, url=url, icon_path=icon_path)


def new_group(
    id: int,
    name: str,
    bookmark_ids: Iterable[int] = (),
    *,
    icon_path: Optional[str] = None,
    tint_icon: bool = False,
) -> Group:
    return Group(id=id, name=name, bookmark_ids=list(bookmark_ids), icon_path=icon_path, tint_icon=tint_icon)
