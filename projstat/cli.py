from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any

import pandas as pd

from projstat import __version__ as TOOL_VERSION
from projstat.columns import resolve_columns
from projstat.config import get_log_level
from projstat.contracts import build_run_summary, wrap_payload
from projstat.errors import CompositeRetrievalError, EmptyDatasetError, ReferenceParseError
from projstat.filters import apply_filters, unique_values
from projstat.models import ColumnRoleIndex, Dataset, FilterCriteria, FilterResult, LoadResult
from projstat.retrieval import RetrievalChain
from projstat.source import resolve_reference

EXIT_SUCCESS = 0
EXIT_COMMAND_ERROR = 1
EXIT_REFERENCE_INVALID = 2
EXIT_RETRIEVAL_FAILED = 3
EXIT_NO_COLUMNS = 4

EXPORT_FORMATS = {".csv", ".xlsx"}
TEXT_PREVIEW_ROWS = 50


class CliError(Exception):
    def __init__(self, message: str, code: int = EXIT_COMMAND_ERROR) -> None:
        super().__init__(message)
        self.code = code


class ProjstatArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> None:
        raise CliError(message, EXIT_COMMAND_ERROR)


def eprint(message: str) -> None:
    print(message, file=sys.stderr)


def emit_human(message: str, *, quiet: bool = False) -> None:
    if not quiet:
        eprint(message)


def json_dumps(payload: Any) -> str:
    return json.dumps(payload, indent=2, ensure_ascii=False, sort_keys=True)


def configure_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else getattr(logging, get_log_level(), logging.WARNING)
    logging.basicConfig(level=level, stream=sys.stderr, format="%(levelname)s %(name)s: %(message)s")


def build_chain() -> RetrievalChain:
    return RetrievalChain()


def classify_exception(exc: Exception) -> int:
    if isinstance(exc, CliError):
        return exc.code
    if isinstance(exc, ReferenceParseError):
        return EXIT_REFERENCE_INVALID
    if isinstance(exc, CompositeRetrievalError):
        return EXIT_RETRIEVAL_FAILED
    if isinstance(exc, EmptyDatasetError):
        return EXIT_NO_COLUMNS
    return EXIT_COMMAND_ERROR


def load_source(raw: str) -> LoadResult:
    reference = resolve_reference(raw)
    if not reference:
        raise ReferenceParseError(raw)
    return build_chain().load(reference)


def role_headers(dataset: Dataset, roles: ColumnRoleIndex) -> dict[str, str | None]:
    return {
        name: dataset.headers[index] if 0 <= index < len(dataset.headers) else None
        for name, index in roles.as_dict().items()
    }


def export_rows(dataset: Dataset, view: FilterResult, output_path: Path) -> None:
    suffix = output_path.suffix.lower()
    if suffix not in EXPORT_FORMATS:
        raise CliError(
            f"Unsupported output type '{suffix or '[missing extension]'}'. Supported: {', '.join(sorted(EXPORT_FORMATS))}",
            EXIT_COMMAND_ERROR,
        )
    if output_path.exists():
        raise CliError(f"Refusing to overwrite existing output: {output_path}", EXIT_COMMAND_ERROR)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    frame = dataset.to_dataframe(view.rows)
    if suffix == ".csv":
        frame.to_csv(output_path, index=False)
    else:
        with pd.ExcelWriter(output_path, engine="openpyxl") as writer:
            frame.to_excel(writer, index=False, sheet_name="Project Status")


def render_view_text(dataset: Dataset, view: FilterResult, source_label: str) -> str:
    lines = [
        "projstat view",
        f"Source: {source_label}",
        f"Rows loaded: {len(dataset.rows)}",
        f"Total projects: {view.total_systems}",
        f"Total milestones: {view.total_milestones}",
    ]
    if not view.rows:
        lines.append("No results found")
        return "\n".join(lines) + "\n"

    shown = view.rows[:TEXT_PREVIEW_ROWS]
    lines.append("")
    lines.append(dataset.to_dataframe(shown).to_string(index=False))
    if len(view.rows) > len(shown):
        lines.append(f"... {len(view.rows) - len(shown)} more row(s)")
    return "\n".join(lines) + "\n"


def render_columns_text(dataset: Dataset, roles: ColumnRoleIndex, options: dict[str, list[str]]) -> str:
    lines = ["projstat columns", f"Headers: {' | '.join(dataset.headers)}"]
    for name, header in role_headers(dataset, roles).items():
        index = getattr(roles, name)
        lines.append(f"{name}: {index} ({header or 'unresolved'})")
    lines.append(f"Systems: {', '.join(options['systems']) or '-'}")
    lines.append(f"Milestones: {', '.join(options['milestones']) or '-'}")
    return "\n".join(lines) + "\n"


def build_parser() -> argparse.ArgumentParser:
    parser = ProjstatArgumentParser(prog="projstat", description="Project status views over public Google Sheets.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    view = subparsers.add_parser("view", help="Load a sheet, filter it and print the visible rows.")
    view.add_argument("source", help="Google Sheets link or sheet ID")
    view.add_argument("--system", default="", help="Only rows whose system equals this value")
    view.add_argument("--milestone", default="", help="Only rows whose milestone equals this value")
    view.add_argument("--search", default="", help="Case-insensitive text search over system, milestone, developer and manager")
    view.add_argument("--output", help="Write the visible rows to a .csv or .xlsx file")
    view.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    view.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    view.add_argument("-v", "--verbose", action="store_true", help="Debug logging for each retrieval strategy")

    resolve = subparsers.add_parser("resolve", help="Show the sheet reference parsed from a link or ID.")
    resolve.add_argument("source", help="Google Sheets link or sheet ID")
    resolve.add_argument("--json", action="store_true", help="Write machine JSON to stdout")

    columns = subparsers.add_parser("columns", help="Load a sheet and show which columns fill each role.")
    columns.add_argument("source", help="Google Sheets link or sheet ID")
    columns.add_argument("--json", action="store_true", help="Write machine JSON to stdout")
    columns.add_argument("-q", "--quiet", action="store_true", help="Minimal human logs")
    columns.add_argument("-v", "--verbose", action="store_true", help="Debug logging for each retrieval strategy")

    subparsers.add_parser("version", help="Print version")
    return parser


def run_resolve(args: argparse.Namespace) -> int:
    reference = resolve_reference(args.source)
    if not reference:
        eprint(str(ReferenceParseError(args.source)))
        return EXIT_REFERENCE_INVALID
    if args.json:
        payload = wrap_payload(
            "projstat.reference",
            {"reference": reference.as_dict()},
            build_run_summary(command="resolve", source=args.source),
        )
        print(json_dumps(payload))
    else:
        print(f"Sheet ID: {reference.sheet_id}")
        print(f"GID: {reference.gid or '-'}")
        print(f"Sheet name: {reference.sheet_name or '-'}")
    return EXIT_SUCCESS


def run_view(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    try:
        loaded = load_source(args.source)
        dataset = loaded.dataset
        roles = resolve_columns(dataset.headers)
        criteria = FilterCriteria(system_equals=args.system, milestone_equals=args.milestone, search=args.search)
        view = apply_filters(dataset.rows, roles, criteria)

        output_path = Path(args.output) if args.output else None
        if output_path is not None:
            export_rows(dataset, view, output_path)

        if args.json:
            payload = wrap_payload(
                "projstat.view",
                {
                    "headers": list(dataset.headers),
                    "rows": [list(row) for row in view.rows],
                    "roles": roles.as_dict(),
                    "criteria": {
                        "system": criteria.system_equals,
                        "milestone": criteria.milestone_equals,
                        "search": criteria.search,
                    },
                    "kpis": {
                        "total_projects": view.total_systems,
                        "total_milestones": view.total_milestones,
                    },
                },
                build_run_summary(
                    command="view",
                    source=args.source,
                    source_label=loaded.source_label,
                    output_path=str(output_path) if output_path else None,
                    metrics={"rows_loaded": len(dataset.rows), "rows_visible": len(view.rows)},
                ),
            )
            print(json_dumps(payload))
        else:
            print(render_view_text(dataset, view, loaded.source_label), end="")
        if output_path is not None:
            emit_human(f"Rows written: {output_path}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_columns(args: argparse.Namespace) -> int:
    configure_logging(args.verbose)
    try:
        loaded = load_source(args.source)
        dataset = loaded.dataset
        roles = resolve_columns(dataset.headers)
        options = {
            "systems": unique_values(dataset.rows, roles.system),
            "milestones": unique_values(dataset.rows, roles.milestone),
        }
        if args.json:
            payload = wrap_payload(
                "projstat.columns",
                {
                    "headers": list(dataset.headers),
                    "roles": roles.as_dict(),
                    "role_headers": role_headers(dataset, roles),
                    "options": options,
                },
                build_run_summary(command="columns", source=args.source, source_label=loaded.source_label),
            )
            print(json_dumps(payload))
        else:
            print(render_columns_text(dataset, roles, options), end="")
            emit_human(f"Loaded via {loaded.source_label}", quiet=args.quiet)
        return EXIT_SUCCESS
    except Exception as exc:
        eprint(str(exc))
        return classify_exception(exc)


def run_version() -> int:
    print(TOOL_VERSION)
    return EXIT_SUCCESS


def main(argv: list[str] | None = None) -> int:
    try:
        parser = build_parser()
        args = parser.parse_args(argv)
        if args.command == "view":
            return run_view(args)
        if args.command == "resolve":
            return run_resolve(args)
        if args.command == "columns":
            return run_columns(args)
        if args.command == "version":
            return run_version()
        raise CliError(f"Unknown command: {args.command}", EXIT_COMMAND_ERROR)
    except CliError as exc:
        eprint(str(exc))
        return exc.code


if __name__ == "__main__":
    raise SystemExit(main())
