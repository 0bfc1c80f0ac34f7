from __future__ import annotations

import re

_WHITESPACE_RE = re.compile(r"\s+")
_BULLET_PREFIX_RE = re.compile(r"^\s*(?:[•‣◦*-]\s*)+")


def collapse_whitespace(value: str) -> str:
    """Collapses runs of whitespace into single spaces and trims the result."""
    return _WHITESPACE_RE.sub(" ", value).strip()


def make_hint(value: str) -> str:
    """Lower-cased, whitespace-collapsed alt text for avatars and thumbnails."""
    return collapse_whitespace(value).lower()


def truncate(value: str, max_length: int) -> str:
    if len(value) <= max_length:
        return value
    return value[: max_length - 3].rstrip() + "..."


def split_summary_points(summary: str) -> list[str]:
    """
    Splits a bullet summary into its points.

    Leading bullet glyphs are removed and blank lines dropped, so every
    returned point is non-empty after trimming.
    """
    points = []
    for line in summary.splitlines():
        point = _BULLET_PREFIX_RE.sub("", line).strip()
        if point:
            points.append(point)
    return points


def sanitize_text(value: str | None) -> str | None:
    """
    Remove characters that PostgreSQL TEXT cannot store and coerce to valid UTF-8.

    - Strips NUL (\x00) which Postgres rejects for TEXT
    - Re-encodes with errors="replace" to ensure valid UTF-8 sequences
    """
    if value is None:
        return None
    without_nuls = value.replace("\x00", "")
    return without_nuls.encode("utf-8", "replace").decode("utf-8")
