#!/usr/bin/env python3
"""
Auction Confirm-Sync - confirm auction sales from the Auction sheet

CLI Commands:
    serve              - Run the edit-event webhook service
    validate           - Validate configuration
    test-sheets        - Test Google Sheets connection and workbook layout
    confirm            - Run the confirm handler as if Auction!L4 was just checked

Usage:
    python main.py serve --port 8000
    python main.py validate
    python main.py test-sheets
    python main.py confirm
    python main.py confirm --workbook auction.json --write
"""

import argparse
import json
import os
import sys

# Ensure project root is in path
PROJECT_ROOT = os.path.dirname(os.path.abspath(__file__))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from core.config import ConfigurationError, load_config_from_env
from core.logging_config import get_logger, setup_logging
from schemas.auction_layout import (
    AUCTION_SHEET,
    CONFIRM_COL,
    CONFIRM_ROW,
    PLAYERS_FIRST_DATA_ROW,
    PLAYERS_SHEET,
    SOLD_LOG_SHEET,
)

logger = get_logger(__name__)


def cmd_serve(args):
    """Run the webhook service with uvicorn."""
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, log_level=args.log_level.lower())
    return 0


def cmd_validate(args):
    """Validate configuration and print it with secrets masked."""
    config = load_config_from_env()
    print(config)
    try:
        config.validate(require_sheets=not args.no_sheets)
    except ConfigurationError as e:
        print(f"\nFAIL: {e}")
        return 1
    print("\nOK: configuration is valid")
    return 0


def cmd_test_sheets(args):
    """Connect to the spreadsheet and report the workbook layout."""
    from google.auth.exceptions import GoogleAuthError
    from services.google_sheets_store import SheetsBackendError, create_store_from_config

    config = load_config_from_env()
    store = create_store_from_config(config)
    if store is None:
        print("FAIL: SHEETS_SPREADSHEET_ID is not set")
        return 1

    try:
        titles = store.sheet_titles()
    except (SheetsBackendError, GoogleAuthError, OSError, ValueError) as e:
        print(f"FAIL: {e}")
        return 1

    print(f"Connected to spreadsheet {config.sheets.spreadsheet_id}")
    ok = True
    for name, required in ((AUCTION_SHEET, True), (PLAYERS_SHEET, True), (SOLD_LOG_SHEET, False)):
        if name in titles:
            print(f"  OK: {name}")
        elif required:
            print(f"  FAIL: {name} missing")
            ok = False
        else:
            print(f"  SKIP: {name} missing (created on first confirmation)")

    players = store.get_sheet(PLAYERS_SHEET)
    if players is not None:
        count = max(players.last_row() - PLAYERS_FIRST_DATA_ROW + 1, 0)
        print(f"  Players: {count} data row(s)")

    return 0 if ok else 1


def cmd_confirm(args):
    """Run the confirm handler against a JSON workbook or the configured spreadsheet."""
    from services.confirm_sync import ConfirmOutcome, ConfirmSyncHandler, EditEvent

    config = load_config_from_env()

    if args.workbook:
        from services.memory_store import InMemoryStore
        store = InMemoryStore.from_json_file(args.workbook)
    else:
        from services.google_sheets_store import create_store_from_config
        store = create_store_from_config(config)
        if store is None:
            print("FAIL: SHEETS_SPREADSHEET_ID is not set (or pass --workbook)")
            return 1

    handler = ConfirmSyncHandler.from_config(store, config)
    event = EditEvent(sheet_name=AUCTION_SHEET, row=CONFIRM_ROW, column=CONFIRM_COL, value=True)
    result = handler.handle(event)

    print(json.dumps({
        "outcome": result.outcome.value,
        "message": result.message,
        "player_name": result.player_name,
        "player_row": result.player_row,
        "logged_row": result.logged_row,
    }, indent=2, default=str))

    if args.workbook and args.write:
        store.save_json_file(args.workbook)
        logger.info(f"Saved workbook to {args.workbook}")

    return 0 if result.outcome == ConfirmOutcome.CONFIRMED else 1


def main():
    parser = argparse.ArgumentParser(
        description="Auction Confirm-Sync",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("--log-level", default=os.getenv("LOG_LEVEL", "INFO"), help="Log level")
    parser.add_argument("--log-format", default=os.getenv("LOG_FORMAT", "text"), choices=["text", "json"])

    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    serve_parser = subparsers.add_parser("serve", help="Run the webhook service")
    serve_parser.add_argument("--host", default="0.0.0.0")
    serve_parser.add_argument("--port", type=int, default=8000)

    validate_parser = subparsers.add_parser("validate", help="Validate configuration")
    validate_parser.add_argument("--no-sheets", action="store_true", help="Skip Google Sheets checks")

    subparsers.add_parser("test-sheets", help="Test Google Sheets connection")

    confirm_parser = subparsers.add_parser("confirm", help="Confirm the sale currently shown in Auction")
    confirm_parser.add_argument("--workbook", help="Local JSON workbook instead of Google Sheets")
    confirm_parser.add_argument("--write", action="store_true", help="Write the workbook back after confirming")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(level=args.log_level, format_type=args.log_format)

    commands = {
        "serve": cmd_serve,
        "validate": cmd_validate,
        "test-sheets": cmd_test_sheets,
        "confirm": cmd_confirm,
    }
    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
