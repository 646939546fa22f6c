"""Command-line interface for the spreadsheet explorer.

Usage (examples):
    python -m sheet_finder.cli shipments.xlsx
    python -m sheet_finder.cli shipments.xlsx --query "acme" --sort "Valor (USD)" --desc
    python -m sheet_finder.cli data.csv --range Amount=100:200 --equals Client=Acme --stats Amount
    python -m sheet_finder.cli shipments.xlsx --entity "ACME SA" --export result.csv

The CLI prints a concise human-readable summary by default; use --json for the
current page, stats and entity totals as JSON.
"""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .filters import FilterMode
from .pipeline import ExplorerSession
from .sorting import SortDirection


def _split_assignment(raw: str, flag: str) -> Tuple[str, str]:
    if "=" not in raw:
        raise SystemExit(f"{flag} expects COLUMN=VALUE, got: {raw}")
    col, value = raw.split("=", 1)
    return col.strip(), value


def _parse_range(raw: str) -> Tuple[str, Optional[float], Optional[float]]:
    col, bounds = _split_assignment(raw, "--range")
    lo, _, hi = bounds.partition(":")
    try:
        return (
            col,
            float(lo) if lo.strip() else None,
            float(hi) if hi.strip() else None,
        )
    except ValueError:
        raise SystemExit(f"--range bounds must be numbers, got: {bounds}")


def _summarize(session: ExplorerSession) -> str:
    cols = session.columns
    preview_cols = cols[:8]
    more = "" if len(cols) <= 8 else f" (+{len(cols)-8} more)"
    lines = [
        f"Sheet: {session.active_sheet}  Sheets: {', '.join(session.sheet_names)}",
        f"Columns: {', '.join(preview_cols)}{more}",
        f"Showing {session.visible_count:,} of {session.total_count:,} results "
        f"from {session.raw_count:,} rows (page {session.current_page} of {session.page_count})",
    ]
    if session.sort_key:
        lines.append(f"Sorted by: {session.sort_key} ({session.sort_dir.value})")
    stats = session.selected_stats
    if stats is not None:
        if stats.is_numeric:
            lines.append(
                f"  - {stats.column}: count={stats.count} sum={stats.sum:,.2f} avg={stats.avg:,.2f} "
                f"min={stats.min:,.2f} max={stats.max:,.2f} median={stats.median:,.2f}"
            )
        else:
            top = ", ".join(f"{v} ({c})" for v, c in stats.top_values)
            lines.append(
                f"  - {stats.column}: count={stats.count} unique={stats.unique_count} top: {top}"
            )
    entity = session.selected_entity
    if entity is not None:
        lines.append(
            f"Entity {entity.entity_name} [{entity.scope.value}]: value={entity.total_value:,.2f} "
            f"weight={entity.total_weight:,.0f} price/unit={entity.price_per_unit_weight:,.4f}"
        )
    return "\n".join(lines)


def _payload(session: ExplorerSession) -> Dict[str, Any]:
    return {
        "sheet": session.active_sheet,
        "columns": session.columns,
        "column_types": {c: t.value for c, t in session.column_types.items()},
        "raw_rows": session.raw_count,
        "total": session.total_count,
        "page": session.current_page,
        "page_count": session.page_count,
        "rows": list(session.page_rows()),
        "stats": session.selected_stats.to_dict() if session.selected_stats else None,
        "entity": session.selected_entity.to_dict() if session.selected_entity else None,
    }


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(
        description="Search, filter, sort and summarize a CSV or Excel file."
    )
    parser.add_argument("file", help="Path to input CSV or Excel file")
    parser.add_argument("--sheet", help="Sheet to activate (default: first sheet)")
    parser.add_argument("--query", default="", help="Fuzzy search text")
    parser.add_argument(
        "--search-columns",
        nargs="+",
        help="Columns the fuzzy search looks at (default: all)",
    )
    parser.add_argument(
        "--filter",
        action="append",
        default=[],
        metavar="COL=TEXT",
        help="Keep rows whose COL contains TEXT (case-insensitive). Repeatable.",
    )
    parser.add_argument(
        "--equals",
        action="append",
        default=[],
        metavar="COL=TEXT",
        help="Keep rows whose COL equals TEXT (case-insensitive). Repeatable.",
    )
    parser.add_argument(
        "--range",
        action="append",
        default=[],
        metavar="COL=MIN:MAX",
        help="Inclusive numeric bounds; either side may be empty. Repeatable.",
    )
    parser.add_argument("--sort", help="Column to sort by")
    parser.add_argument("--desc", action="store_true", help="Sort descending")
    parser.add_argument("--page", type=int, default=1, help="Page number (default: 1)")
    parser.add_argument(
        "--page-size",
        type=int,
        default=None,
        help="Rows per page: 25, 50, 100, 250 or 500 (default: 50)",
    )
    parser.add_argument("--stats", metavar="COL", help="Show statistics for a column")
    parser.add_argument("--entity", metavar="NAME", help="Show totals for an entity")
    parser.add_argument("--export", metavar="PATH", help="Write results as CSV")
    parser.add_argument(
        "--export-scope",
        choices=["all", "page"],
        default="all",
        help="Rows to export (default: all)",
    )
    parser.add_argument("--json", action="store_true", help="Print JSON payload to stdout")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    path = Path(args.file)
    if not path.exists():
        raise SystemExit(f"File not found: {path}")

    session = ExplorerSession()
    if not session.load_file(str(path)):
        raise SystemExit(session.notice)
    if args.sheet:
        try:
            session.select_sheet(args.sheet)
        except KeyError:
            raise SystemExit(f"Sheet not found: {args.sheet}")

    try:
        if args.search_columns:
            session.set_search_columns(args.search_columns)
        for raw in args.filter:
            col, text = _split_assignment(raw, "--filter")
            session.set_text_filter(col, text, FilterMode.CONTAINS)
        for raw in args.equals:
            col, text = _split_assignment(raw, "--equals")
            session.set_text_filter(col, text, FilterMode.EQUALS)
        for raw in args.range:
            col, lo, hi = _parse_range(raw)
            session.set_range_filter(col, lo, hi)
        session.set_query(args.query)
        if args.stats:
            session.selected_stats = session.column_stats(args.stats)
        if args.sort:
            session.set_sort(args.sort, SortDirection.DESC if args.desc else SortDirection.ASC)
        if args.page_size:
            session.set_page_size(args.page_size)
        session.set_page(args.page)
        if args.entity:
            session.click_entity(args.entity)
    except (KeyError, ValueError) as exc:
        raise SystemExit(str(exc))

    print(_summarize(session))

    if args.json:
        print("\n=== JSON Payload ===")
        print(json.dumps(_payload(session), indent=2, default=str))

    if args.export:
        out_path = Path(args.export)
        out_path.write_text(session.export_csv(args.export_scope), encoding="utf-8")
        print(f"\nSaved {args.export_scope} results to {out_path}")


if __name__ == "__main__":  # pragma: no cover
    main()
