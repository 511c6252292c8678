"""Versioned contracts for projstat's machine-readable outputs."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from projstat import __version__ as TOOL_VERSION

CONTRACT_VERSIONS = {
    "projstat.reference": "1.0.0",
    "projstat.columns": "1.0.0",
    "projstat.view": "1.0.0",
}


def utc_now_iso() -> str:
    return datetime.now(timezone.utc).replace(microsecond=0).isoformat().replace("+00:00", "Z")


def build_contract(name: str) -> dict[str, str]:
    version = CONTRACT_VERSIONS[name]
    return {"name": name, "version": version}


def build_run_summary(
    *,
    command: str,
    source: str,
    status: str = "ok",
    source_label: str | None = None,
    output_path: str | None = None,
    metrics: dict[str, Any] | None = None,
    warnings: list[str] | None = None,
) -> dict[str, Any]:
    return {
        "tool": "projstat",
        "command": command,
        "status": status,
        "generated_at": utc_now_iso(),
        "source": source,
        "source_label": source_label,
        "output_file": output_path,
        "warnings_count": len(warnings or []),
        "warnings": list(warnings or []),
        "metrics": metrics or {},
    }


def wrap_payload(name: str, payload: dict[str, Any], run_summary: dict[str, Any]) -> dict[str, Any]:
    contract = build_contract(name)
    return {
        "contract": contract,
        "schema_version": contract["version"],
        "tool_version": TOOL_VERSION,
        "run_summary": run_summary,
        **payload,
    }
