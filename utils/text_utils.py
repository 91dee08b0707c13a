from typing import Any

TITLE_MAX_CHARS = 50


def trim_text(text: Any, limit: int) -> str:
    """Strip and cut ``text`` to at most ``limit`` chars, ending in '...' when cut."""
    raw = str(text or "").strip()
    if len(raw) <= limit:
        return raw
    return raw[: limit - 3].rstrip() + "..."


def truncate_title(text: Any, limit: int = TITLE_MAX_CHARS) -> str:
    return trim_text(text, limit)
