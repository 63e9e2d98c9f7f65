from __future__ import annotations

import argparse
import dataclasses
import json
import logging
import sys

from stockbook.application.container import build_container
from stockbook.config import get_app_paths
from stockbook.domain.errors import AppError
from stockbook.logging_config import setup_logging

log = logging.getLogger(__name__)


def _parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="stockbook", description="Inventory ledger and reports")
    sub = parser.add_subparsers(dest="command", required=True)

    report = sub.add_parser("report", help="Print the report for a date window as JSON")
    export = sub.add_parser("export-report", help="Write the report for a date window to .xlsx")
    for p in (report, export):
        p.add_argument("--start", help="YYYY-MM-DD (default: first day of this month)")
        p.add_argument("--end", help="YYYY-MM-DD (default: last day of this month)")
        p.add_argument("--product-id")
    export.add_argument("--out", required=True)

    imp = sub.add_parser("import-purchases", help="Record restock purchases from .xlsx")
    imp.add_argument("path")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = _parser().parse_args(argv)
    paths = get_app_paths()
    setup_logging(paths.logs_dir, level=logging.INFO)
    app = build_container(paths.db_path)

    try:
        if args.command == "report":
            result = app.reporting.generate_report(args.start, args.end, args.product_id)
            print(json.dumps(dataclasses.asdict(result), indent=2))
        elif args.command == "export-report":
            app.reporting.export_report_excel(args.out, args.start, args.end, args.product_id)
            print(args.out)
        elif args.command == "import-purchases":
            ok, skipped = app.excel.import_purchases_excel(args.path)
            print(json.dumps({"imported": ok, "skipped": skipped}))
    except AppError as e:
        log.warning("command_failed command=%s error=%s", args.command, e)
        print(f"{type(e).__name__}: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
