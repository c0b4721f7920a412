from __future__ import annotations

import re


_ITEM_START = re.compile(r"^[\d\-*•]")
_MARKER = re.compile(r"^(?:\d+[.)、:：]?|[\-*•])\s*")


def parse_list(text: str) -> list[str]:
    """Reduce free-text model output to its bullet or numbered items.

    Lines that do not start with a digit, ``-``, ``*`` or ``•`` are dropped.
    The marker and the whitespace after it are removed; items that are empty
    afterwards are dropped too. Order follows the input.

    Parsing is not idempotent for items whose own text starts with a digit:
    ``"1. 1.5 million"`` yields ``"1.5 million"``, which parses again to
    ``"5 million"``.
    """
    items: list[str] = []
    for line in (text or "").splitlines():
        line = line.strip()
        if not line or not _ITEM_START.match(line):
            continue
        item = _MARKER.sub("", line, count=1).strip()
        if item:
            items.append(item)
    return items
