"""Tolerant player-name matching.

Names typed into the Players sheet and names produced by the Auction FILTER
differ in case and spacing. Both sides go through ``normalize_name`` before
any comparison.
"""
import re
from typing import Any, Optional, Sequence

_WHITESPACE_RUN = re.compile(r"\s+")


def normalize_name(value: Any, collapse_whitespace: bool = False) -> str:
    """Trim and uppercase a cell value; optionally collapse inner whitespace runs."""
    if value is None or value == "":
        return ""
    text = str(value).strip().upper()
    if collapse_whitespace:
        text = _WHITESPACE_RUN.sub(" ", text)
    return text


def find_matching_index(names: Sequence[Any], target: Any) -> Optional[int]:
    """
    Find the first name matching target, top to bottom.

    Pass 1 compares trimmed, uppercased values. If nothing matches, pass 2
    also collapses whitespace runs on both sides.

    Returns:
        0-based index into names, or None if neither pass matches.
    """
    wanted = normalize_name(target)
    if not wanted:
        return None

    for i, name in enumerate(names):
        if normalize_name(name) == wanted:
            return i

    wanted = normalize_name(target, collapse_whitespace=True)
    for i, name in enumerate(names):
        if normalize_name(name, collapse_whitespace=True) == wanted:
            return i

    return None
