from __future__ import annotations

from typing import Iterable, Sequence

from projstat.models import ColumnRoleIndex, FilterCriteria, FilterResult, Row


def cell_value(row: Sequence[str], index: int) -> str:
    if index < 0 or index >= len(row):
        return ""
    return str(row[index] or "").strip()


def search_haystack(row: Sequence[str], roles: ColumnRoleIndex) -> str:
    return " ".join(
        [
            cell_value(row, roles.system),
            cell_value(row, roles.milestone),
            cell_value(row, roles.developer),
            cell_value(row, roles.manager),
        ]
    ).lower()


def row_matches(row: Sequence[str], roles: ColumnRoleIndex, criteria: FilterCriteria, query: str) -> bool:
    if criteria.system_equals and cell_value(row, roles.system) != criteria.system_equals:
        return False
    if criteria.milestone_equals and cell_value(row, roles.milestone) != criteria.milestone_equals:
        return False
    if query and query not in search_haystack(row, roles):
        return False
    return True


def apply_filters(rows: Iterable[Row], roles: ColumnRoleIndex, criteria: FilterCriteria) -> FilterResult:
    """Return the visible rows in source order plus the KPIs derived from them."""
    query = criteria.search.strip().lower()
    visible = tuple(row for row in rows if row_matches(row, roles, criteria, query))
    systems = {value for value in (cell_value(row, roles.system) for row in visible) if value}
    return FilterResult(rows=visible, total_systems=len(systems), total_milestones=len(visible))


def unique_values(rows: Iterable[Row], index: int) -> list[str]:
    if index < 0:
        return []
    values = {value for value in (cell_value(row, index) for row in rows) if value}
    return sorted(values, key=lambda value: (value.casefold(), value))
