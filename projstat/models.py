from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Iterable, Sequence

import pandas as pd

Row = tuple[str, ...]

ROLE_NAMES = ("system", "milestone", "developer", "manager")
UNRESOLVED = -1


def stringify(value: Any) -> str:
    """Render a decoded cell value the way a browser would print it."""
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float):
        if math.isnan(value):
            return "NaN"
        if value.is_integer():
            return str(int(value))
        return str(value)
    if isinstance(value, datetime):
        return value.isoformat(sep=" ")
    return str(value)


def render_date(value: date) -> str:
    return value.strftime("%x")


def normalize_row_length(row: Sequence[str], expected_length: int) -> Row:
    out = list(row[:expected_length])
    if len(out) < expected_length:
        out.extend([""] * (expected_length - len(out)))
    return tuple(out)


@dataclass(frozen=True)
class SheetReference:
    sheet_id: str = ""
    gid: str = ""
    sheet_name: str = ""

    def __bool__(self) -> bool:
        return bool(self.sheet_id)

    def as_dict(self) -> dict[str, str]:
        return {"sheet_id": self.sheet_id, "gid": self.gid, "sheet_name": self.sheet_name}


@dataclass(frozen=True)
class Dataset:
    headers: tuple[str, ...] = ()
    rows: tuple[Row, ...] = ()

    @classmethod
    def build(cls, headers: Iterable[str], rows: Iterable[Sequence[str]]) -> "Dataset":
        header_tuple = tuple(headers)
        width = len(header_tuple)
        return cls(
            headers=header_tuple,
            rows=tuple(normalize_row_length(row, width) for row in rows),
        )

    @classmethod
    def empty(cls) -> "Dataset":
        return cls()

    def __len__(self) -> int:
        return len(self.rows)

    @property
    def is_empty(self) -> bool:
        return not self.headers

    def to_dataframe(self, rows: Sequence[Row] | None = None) -> pd.DataFrame:
        # Duplicate header names are legal in a sheet, so columns are set positionally.
        frame = pd.DataFrame([list(row) for row in (self.rows if rows is None else rows)])
        if frame.empty:
            return pd.DataFrame(columns=list(self.headers))
        frame.columns = list(self.headers)
        return frame


@dataclass(frozen=True)
class ColumnRoleIndex:
    system: int = UNRESOLVED
    milestone: int = UNRESOLVED
    developer: int = UNRESOLVED
    manager: int = UNRESOLVED

    def as_dict(self) -> dict[str, int]:
        return {name: getattr(self, name) for name in ROLE_NAMES}


@dataclass(frozen=True)
class FilterCriteria:
    system_equals: str = ""
    milestone_equals: str = ""
    search: str = ""


@dataclass(frozen=True)
class FilterResult:
    rows: tuple[Row, ...] = ()
    total_systems: int = 0
    total_milestones: int = 0


@dataclass(frozen=True)
class LoadResult:
    dataset: Dataset
    source_label: str


@dataclass
class SessionState:
    """Everything a viewer needs to render; replaced wholesale on each load or reset."""

    dataset: Dataset = field(default_factory=Dataset.empty)
    roles: ColumnRoleIndex = field(default_factory=ColumnRoleIndex)
    criteria: FilterCriteria = field(default_factory=FilterCriteria)
    view: FilterResult = field(default_factory=FilterResult)
    source_label: str = ""
    feedback: str = ""
    feedback_kind: str = "ok"
