"""Import whole cells from a tab-delimited text file into a period."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from cellboard.partition import EditingSession, GatewayConfig, SynchronizationError
from cellboard.partition.http_gateway import HttpCellGateway


logger = logging.getLogger("cellboard.scripts.import_cells")


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create cells from a spreadsheet paste: row 1 holds leaders, the rows below hold members",
    )
    parser.add_argument("file", type=Path, help="Text file with one column per cell")
    parser.add_argument("--year", type=int, required=True, help="Period (year) to import into")
    parser.add_argument(
        "--delimiter",
        default="\t",
        help="Column delimiter (default: tab)",
    )
    parser.add_argument(
        "--base-url",
        default=None,
        help="Service base URL (default: CELLBOARD_API_BASE_URL or http://localhost:8000)",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="Save the result to the service; without it the import is only previewed",
    )
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> int:
    config = GatewayConfig.from_env()
    if args.base_url:
        config.base_url = args.base_url.rstrip("/")
    session = EditingSession(HttpCellGateway(config), args.year, max_concurrency=config.max_concurrency)

    text = args.file.read_text(encoding="utf-8")
    result = session.import_text(text, delimiter=args.delimiter)
    print(
        f"Prepared {len(result.group_ids)} cells with {result.resolved_count} people placed; "
        f"{len(result.misses)} names not found."
    )
    for miss in result.misses:
        role = "leader" if miss.as_leader else "member"
        print(f"  not found ({role}, row {miss.row + 1}, column {miss.column + 1}): {miss.text}")

    if not args.save:
        print("Preview only; re-run with --save to write these cells.")
        return 0

    try:
        report = session.save_blocking()
    except SynchronizationError as exc:
        print(exc.operator_message(), file=sys.stderr)
        logger.error("import_save_failed: phase=%s outcome=%s", exc.phase.value, exc.outcome.value)
        return 1
    print(f"Saved: {len(report.created)} cells created, {report.batch_size} cells written.")
    return 0


def main(argv: list[str] | None = None) -> int:
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    return run(parse_args(argv))


if __name__ == "__main__":  # pragma: no cover - manual execution path
    sys.exit(main())
