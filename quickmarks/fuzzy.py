from __future__ import annotations


def matches(haystack: str, needle: str) -> bool:
    """True when every character of ``needle`` appears in ``haystack`` in order.

    Case-insensitive; the characters need not be contiguous. An empty needle
    matches everything.
    """
    if not needle:
        return True
    it = iter(haystack.casefold())
    return all(ch in it for ch in needle.casefold())


def matches_any(needle: str, *haystacks: str) -> bool:
    return any(matches(h, needle) for h in haystacks)
