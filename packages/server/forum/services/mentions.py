"""
@mention extraction for reply bodies.

A mention is ``@`` followed by letters, digits or underscores. An ``@`` glued
to a preceding word character (``bob@example.com``) or to another ``@`` is
not a mention.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional

MENTION_PATTERN = re.compile(r"(?<![\w@])@(\w+)", re.ASCII)


def mentioned_usernames(text: str, known_usernames: Optional[Iterable[str]] = None) -> set[str]:
    """Return the distinct usernames mentioned in ``text``.

    Matching is case-sensitive. When ``known_usernames`` is given, names that
    are not in it are dropped.
    """
    if not text:
        return set()
    names = set(MENTION_PATTERN.findall(text))
    if known_usernames is not None:
        names &= set(known_usernames)
    return names
