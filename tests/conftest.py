"""
Pytest configuration and shared fixtures.
"""

import copy
import os
import sys
from datetime import datetime, timezone
from pathlib import Path

# Set environment variables BEFORE any imports that might use them
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["SHEETS_SPREADSHEET_ID"] = ""
os.environ["WEBHOOK_SECRET"] = ""
os.environ["TIMEZONE"] = "UTC"

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from schemas.auction_layout import SOLD_LOG_HEADERS  # noqa: E402
from services.confirm_sync import ConfirmSyncHandler  # noqa: E402
from services.memory_store import InMemoryStore  # noqa: E402

FIXED_NOW = datetime(2026, 10, 19, 12, 30, 0, tzinfo=timezone.utc)
FIXED_TIMESTAMP = "2026-10-19 12:30:00"

PLAYERS_HEADER = [
    "Player Name", "Player Email", "GENDER", "Course", "Base Price",
    "Auction Status", "Sold At", "Bought by (Team)", "Owner Contact",
    "Timestamp sold", "Notes",
]


def players_rows():
    """Players sheet: header plus three players."""
    return [
        list(PLAYERS_HEADER),
        ["John Smith", "john@example.com", "M", "CSE", 500, "", "", "", "1112223333", "", "opener"],
        ["Asha Rao", "asha@example.com", "F", "ECE", 400, "", "", "", "", "", ""],
        ["Ravi  Kumar", "ravi@example.com", "M", "MECH", 300, "", "", "", "", "", ""],
    ]


def auction_rows(
    player_name="John Smith",
    status="SOLD",
    sold_price=1500,
    buyer="Team Red",
    contact="9876543210",
    confirm=True,
    message="",
):
    """Auction sheet with the shown player in A3 and pending inputs in row 4."""
    return [
        ["Select player", "John Smith", "", "", "", "", "", "", "", "", "", ""],
        ["Name", "Email", "Gender", "Course", "Base", "Status", "Price", "Team", "Contact", "", "Message", "Confirm"],
        [player_name, "", "", "", "", "", "", "", "", "", "", ""],
        ["", "", "", "", "", status, sold_price, buyer, contact, "", message, confirm],
    ]


@pytest.fixture
def make_store():
    """Factory for an in-memory workbook with Auction and Players sheets."""
    def _make(players=None, include_players=True, sold_log=None, **auction_kwargs):
        sheets = {"Auction": auction_rows(**auction_kwargs)}
        if include_players:
            sheets["Players"] = players if players is not None else players_rows()
        if sold_log is not None:
            sheets["Sold Log"] = sold_log
        return InMemoryStore(sheets)
    return _make


@pytest.fixture
def store(make_store):
    """Workbook with a valid pending confirmation for John Smith."""
    return make_store()


@pytest.fixture
def handler(store):
    """Confirm handler over the default store with a fixed clock."""
    return ConfirmSyncHandler(store, clock=lambda: FIXED_NOW)


@pytest.fixture
def snapshot():
    """Deep copy of a store's contents, for no-mutation assertions."""
    def _snapshot(s):
        return copy.deepcopy(s.to_dict())
    return _snapshot


@pytest.fixture
def sold_log_header():
    return list(SOLD_LOG_HEADERS)
