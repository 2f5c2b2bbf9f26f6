"""
Zendesk CSAT attribution CLI

  zendesk-csat-attribution process-row responses.xlsx --row 42
  zendesk-csat-attribution backfill responses.xlsx --sheet "Form Responses 1"
  zendesk-csat-attribution resolve 220162
  zendesk-csat-attribution serve
"""

import argparse
import asyncio
import logging
import sys

from zendesk_csat_attribution.config import configure_logging, get_settings
from zendesk_csat_attribution.driver import RowProcessor
from zendesk_csat_attribution.exceptions import ConfigurationError
from zendesk_csat_attribution.server import build_runtime
from zendesk_csat_attribution.sheet import ColumnLayout, normalize_ticket_id, open_workbook, select_sheet
from zendesk_csat_attribution.throttle import Throttle

logger = logging.getLogger(__name__)


def run_process_row(workbook_path: str, sheet_name: str | None, row: int) -> int:
    """Handle one new form submission row and save the workbook."""
    settings = get_settings()
    runtime = build_runtime(settings)
    processor = RowProcessor(runtime.resolver, runtime.client, settings)

    workbook = open_workbook(workbook_path)
    sheet = select_sheet(workbook, sheet_name, ColumnLayout.from_settings(settings))
    outcome = processor.process_submission(sheet, row)
    if outcome.status != "skipped":
        workbook.save(workbook_path)

    print(outcome.model_dump_json(indent=2))
    return 1 if outcome.status == "failed" else 0


def run_backfill(workbook_path: str, sheet_name: str | None, post_notes: bool, delay: float | None) -> int:
    """Fill missing agent names across the sheet and save the workbook."""
    settings = get_settings()
    runtime = build_runtime(settings)
    throttle = Throttle(settings.backfill_delay if delay is None else delay)
    processor = RowProcessor(runtime.resolver, runtime.client, settings, throttle=throttle)

    workbook = open_workbook(workbook_path)
    sheet = select_sheet(workbook, sheet_name, ColumnLayout.from_settings(settings))
    try:
        report = processor.backfill(sheet, post_notes=post_notes)
    finally:
        # Keep whatever was filled even if the sweep is interrupted
        workbook.save(workbook_path)

    print(report.model_dump_json(indent=2))
    return 0


def run_resolve(raw_ticket: str) -> int:
    ticket_id = normalize_ticket_id(raw_ticket)
    if ticket_id is None:
        print(f"Invalid ticket id: {raw_ticket!r}", file=sys.stderr)
        return 2

    runtime = build_runtime(get_settings())
    agent_name = runtime.resolver.resolve_owner(ticket_id)
    print(agent_name)
    return 0 if agent_name else 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Attribute CSAT survey responses to Zendesk agents")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")

    subparsers = parser.add_subparsers(dest="command", required=True)

    row_parser = subparsers.add_parser("process-row", help="Process one newly submitted survey row")
    row_parser.add_argument("workbook", help="Path to the .xlsx survey responses workbook")
    row_parser.add_argument("--row", type=int, required=True, help="1-based row number")
    row_parser.add_argument("--sheet", default=None, help="Worksheet name (default: active sheet)")

    backfill_parser = subparsers.add_parser("backfill", help="Fill missing agent names for existing rows")
    backfill_parser.add_argument("workbook", help="Path to the .xlsx survey responses workbook")
    backfill_parser.add_argument("--sheet", default=None, help="Worksheet name (default: active sheet)")
    backfill_parser.add_argument("--post-notes", action="store_true", help="Also post CSAT notes on each ticket")
    backfill_parser.add_argument("--delay", type=float, default=None,
                                 help="Seconds between Zendesk-bound rows (default: CSAT_BACKFILL_DELAY)")

    resolve_parser = subparsers.add_parser("resolve", help="Print the CSAT agent for one ticket")
    resolve_parser.add_argument("ticket_id", help="Ticket number, e.g. 220162 or 'Ticket #220162'")

    subparsers.add_parser("serve", help="Run the MCP server on stdio")

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        if args.command == "process-row":
            return run_process_row(args.workbook, args.sheet, args.row)
        if args.command == "backfill":
            return run_backfill(args.workbook, args.sheet, args.post_notes, args.delay)
        if args.command == "resolve":
            return run_resolve(args.ticket_id)
        if args.command == "serve":
            from zendesk_csat_attribution.server import main as serve
            asyncio.run(serve())
            return 0
    except ConfigurationError as e:
        logger.error(str(e))
        return 2
    except KeyError as e:
        # unknown --sheet
        logger.error(e.args[0] if e.args else str(e))
        return 2
    except ValueError as e:
        # e.g. a negative --delay
        logger.error(f"Invalid argument: {e}")
        return 2

    return 0


if __name__ == "__main__":
    sys.exit(main())
