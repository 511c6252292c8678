from __future__ import annotations

import re
from typing import Sequence

from projstat.models import UNRESOLVED, ColumnRoleIndex

ROLE_ALIASES = {
    "system": ("system", "project name", "system project name"),
    "milestone": ("milestone", "next milestone"),
    "developer": ("assigned developer", "developer"),
    "manager": ("assigned project manager", "project manager"),
}

PARENTHETICAL_RE = re.compile(r"\([^)]*\)")
NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")
WHITESPACE_RE = re.compile(r"\s+")


def normalize_header(value: str | None) -> str:
    text = str(value or "").lower()
    text = PARENTHETICAL_RE.sub(" ", text)
    text = NON_ALNUM_RE.sub(" ", text)
    return WHITESPACE_RE.sub(" ", text.strip())


def find_alias_index(normalized_headers: Sequence[str], aliases: Sequence[str]) -> int:
    wanted = {normalize_header(alias) for alias in aliases}
    for idx, header in enumerate(normalized_headers):
        if header in wanted:
            return idx
    return UNRESOLVED


def resolve_columns(headers: Sequence[str]) -> ColumnRoleIndex:
    """Map each role to the first matching header; duplicates after it are ignored."""
    normalized = [normalize_header(header) for header in headers]
    indexes = {role: find_alias_index(normalized, aliases) for role, aliases in ROLE_ALIASES.items()}
    if indexes["system"] == UNRESOLVED and headers:
        indexes["system"] = 0
    return ColumnRoleIndex(**indexes)
