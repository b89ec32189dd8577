from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum


class Mode(str, Enum):
    DEFAULT = "default"
    SEARCH = "search"
    EDIT = "edit"
    DELETE = "delete"


KEYWORDS = {
    "e": Mode.EDIT,
    "edit": Mode.EDIT,
    "d": Mode.DELETE,
    "delete": Mode.DELETE,
}

_FIRST_WS = re.compile(r"\s")


@dataclass(frozen=True)
class RoutedQuery:
    mode: Mode
    remainder: str = ""


def route(raw_text: str) -> RoutedQuery:
    """Split typed text into a mode and the text to match with.

    Only the literal reserved words switch modes, and only when followed by
    whitespace: "edit foo" edits, "editor" and "football" are plain searches.
    A first word that is not a keyword is kept as part of the search text.
    """
    if not raw_text:
        return RoutedQuery(Mode.DEFAULT)

    m = _FIRST_WS.search(raw_text)
    if m is None:
        return RoutedQuery(Mode.SEARCH, raw_text)

    first_token = raw_text[: m.start()]
    rest = raw_text[m.end():]
    mode = KEYWORDS.get(first_token.strip().casefold())
    if mode is None:
        return RoutedQuery(Mode.SEARCH, raw_text)
    return RoutedQuery(mode, rest.strip())
