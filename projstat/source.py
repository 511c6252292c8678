from __future__ import annotations

import re
from urllib.parse import parse_qs, urlparse

from projstat.models import SheetReference

BARE_ID_RE = re.compile(r"^[A-Za-z0-9_-]{20,}$")
DOCS_PATH_RE = re.compile(r"/spreadsheets/d/([A-Za-z0-9_-]+)")
FILE_PATH_RE = re.compile(r"/file/d/([A-Za-z0-9_-]+)")

SHEET_NAME_KEYS = ("sheet", "sheetName")


def _first(params: dict[str, list[str]], *names: str) -> str:
    for name in names:
        values = params.get(name)
        if values and values[0]:
            return values[0]
    return ""


def resolve_reference(raw: str) -> SheetReference:
    """Best-effort parse of a sheet link or bare ID. Never raises; may return an empty reference."""
    text = (raw or "").strip()
    if BARE_ID_RE.fullmatch(text):
        return SheetReference(sheet_id=text)

    try:
        parsed = urlparse(text)
    except ValueError:
        return SheetReference()
    if not parsed.scheme or not parsed.netloc:
        return SheetReference()

    query = parse_qs(parsed.query)
    docs_match = DOCS_PATH_RE.search(parsed.path)
    file_match = FILE_PATH_RE.search(parsed.path)
    if docs_match:
        sheet_id = docs_match.group(1)
    elif file_match:
        sheet_id = file_match.group(1)
    else:
        sheet_id = _first(query, "id", "key")

    gid = _first(query, "gid")
    sheet_name = _first(query, *SHEET_NAME_KEYS)

    if parsed.fragment:
        fragment = parse_qs(parsed.fragment)
        gid = gid or _first(fragment, "gid")
        sheet_name = sheet_name or _first(fragment, *SHEET_NAME_KEYS)

    return SheetReference(sheet_id=sheet_id, gid=gid, sheet_name=sheet_name)
