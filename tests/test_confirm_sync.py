"""Tests for the confirm-sync handler."""

from unittest.mock import Mock

import pytest

from schemas.auction_layout import (
    MSG_INVALID_INPUTS,
    MSG_NO_PLAYER,
    MSG_NO_PLAYERS_SHEET,
    MSG_PLAYER_NOT_FOUND,
    MSG_PLAYERS_EMPTY,
)
from services.confirm_sync import (
    ConfirmInputs,
    ConfirmOutcome,
    ConfirmSyncHandler,
    EditEvent,
    cell_text,
    is_checked,
)
from services.memory_store import InMemorySheet
from services.tabular_store import TabularStore

from conftest import FIXED_NOW, FIXED_TIMESTAMP, PLAYERS_HEADER, players_rows

CONFIRM_EVENT = EditEvent(sheet_name="Auction", row=4, column=12, value=True)


def auction_cell(store, a1_row, a1_col):
    return store.get_sheet("Auction").get_cell(a1_row, a1_col)


class TestTriggerGate:
    """Edits other than checking Auction!L4 must do nothing."""

    @pytest.mark.parametrize("event", [
        EditEvent(sheet_name="Players", row=4, column=12, value=True),
        EditEvent(sheet_name="Auction", row=4, column=11, value=True),
        EditEvent(sheet_name="Auction", row=5, column=12, value=True),
        EditEvent(sheet_name="Auction", row=3, column=1, value="John Smith"),
        EditEvent(sheet_name="auction", row=4, column=12, value=True),
    ])
    def test_other_cells_do_not_touch_store(self, event):
        """Test that non-confirm edits never reach the store."""
        store = Mock(spec=TabularStore)
        result = ConfirmSyncHandler(store).handle(event)

        assert result.outcome == ConfirmOutcome.IGNORED
        store.get_sheet.assert_not_called()
        store.create_sheet.assert_not_called()
        store.refresh.assert_not_called()

    def test_unchecking_confirm_is_ignored(self, make_store, snapshot):
        """Test that setting L4 to FALSE has no side effects."""
        store = make_store(confirm=False)
        before = snapshot(store)

        event = EditEvent(sheet_name="Auction", row=4, column=12, value=False)
        result = ConfirmSyncHandler(store).handle(event)

        assert result.outcome == ConfirmOutcome.IGNORED
        assert snapshot(store) == before

    def test_text_true_counts_as_checked(self, make_store):
        """Test that a relayed 'TRUE' string triggers the confirmation."""
        store = make_store(confirm="TRUE")
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)
        assert result.outcome == ConfirmOutcome.CONFIRMED

    def test_non_boolean_value_is_ignored(self, make_store, snapshot):
        """Test that a non-checkbox value in L4 is not treated as checked."""
        store = make_store(confirm="yes")
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.IGNORED
        assert snapshot(store) == before


class TestSuccessfulConfirmation:
    """Tests for the commit path."""

    def test_players_row_updated(self, handler, store):
        """Test that status, price, buyer, contact and timestamp are written."""
        result = handler.handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert result.player_row == 2
        assert result.player_name == "John Smith"

        row = store.get_sheet("Players").get_range(2, 1, 1, 11)[0]
        assert row == [
            "John Smith", "john@example.com", "M", "CSE", 500,
            "SOLD", 1500, "Team Red", "9876543210", FIXED_TIMESTAMP, "opener",
        ]

    def test_other_players_untouched(self, handler, store):
        """Test that only the matched row changes."""
        handler.handle(CONFIRM_EVENT)
        players = store.get_sheet("Players")
        assert players.rows[2] == players_rows()[2]
        assert players.rows[3] == players_rows()[3]

    def test_sold_log_created_with_header(self, handler, store, sold_log_header):
        """Test that the Sold Log is created lazily with its fixed header."""
        assert store.get_sheet("Sold Log") is None

        handler.handle(CONFIRM_EVENT)

        sold_log = store.get_sheet("Sold Log")
        assert sold_log is not None
        assert sold_log.rows[0] == sold_log_header
        assert sold_log.last_row() == 2

    def test_sold_log_row_matches_players_row(self, handler, store):
        """Test that the logged snapshot equals the Players row across A:K."""
        result = handler.handle(CONFIRM_EVENT)

        players_row = store.get_sheet("Players").get_range(2, 1, 1, 11)[0]
        sold_log = store.get_sheet("Sold Log")
        last_logged = sold_log.get_range(sold_log.last_row(), 1, 1, 11)[0]

        assert last_logged == players_row
        assert result.logged_row == players_row

    def test_auction_inputs_reset(self, handler, store):
        """Test that F4:I4, K4 and B1 are cleared and L4 unchecked."""
        handler.handle(CONFIRM_EVENT)
        auction = store.get_sheet("Auction")

        assert auction.get_range(4, 6, 1, 4) == [["", "", "", ""]]
        assert auction.get_cell(4, 11) == ""
        assert auction.get_cell(4, 12) is False
        assert auction.get_cell(1, 2) == ""

    def test_previous_error_message_cleared(self, make_store):
        """Test that a leftover error message in K4 is cleared on success."""
        store = make_store(message=MSG_INVALID_INPUTS)
        ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)
        assert auction_cell(store, 4, 11) == ""

    def test_player_name_left_in_place(self, handler, store):
        """Test that A3 (filter output) is never written."""
        handler.handle(CONFIRM_EVENT)
        assert auction_cell(store, 3, 1) == "John Smith"

    def test_tolerant_name_match(self, make_store):
        """Test that irregular case and spacing still resolve the player."""
        store = make_store(player_name=" john   smith ")
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert result.player_row == 2

    def test_sheet_name_with_extra_spaces_matches(self, make_store):
        """Test that a doubly-spaced Players name matches a single-spaced A3."""
        store = make_store(player_name="Ravi Kumar")
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert result.player_row == 4

    def test_first_matching_row_wins(self, make_store):
        """Test that duplicate names resolve to the topmost row."""
        players = players_rows() + [
            ["JOHN SMITH", "other@example.com", "M", "EEE", 200, "", "", "", "", "", ""],
        ]
        store = make_store(players=players)
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.player_row == 2
        assert store.get_sheet("Players").get_cell(5, 6) == ""

    def test_lowercase_status_accepted(self, make_store):
        """Test that the SOLD check is case-insensitive and the typed value is stored."""
        store = make_store(status=" sold ")
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert store.get_sheet("Players").get_cell(2, 6) == "sold"

    @pytest.mark.parametrize("contact", ["   ", 0])
    def test_blank_contact_keeps_existing(self, make_store, contact):
        """Test that a blank (or 0) I4 never overwrites the stored contact."""
        store = make_store(contact=contact)
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        row = store.get_sheet("Players").get_range(2, 1, 1, 11)[0]
        assert row[8] == "1112223333"
        assert row[5:8] == ["SOLD", 1500, "Team Red"]
        assert row[9] == FIXED_TIMESTAMP

    def test_zero_price_is_filled(self, make_store):
        """Test that a sold price of 0 counts as filled in."""
        store = make_store(sold_price=0)
        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.CONFIRMED
        assert store.get_sheet("Players").get_cell(2, 7) == 0

    def test_existing_sold_log_appended(self, make_store, sold_log_header):
        """Test that an existing Sold Log keeps its rows and gets no second header."""
        earlier = ["Asha Rao", "asha@example.com", "F", "ECE", 400, "SOLD", 900, "Team Blue", "", "2026-10-18 10:00:00", ""]
        store = make_store(sold_log=[sold_log_header, earlier])

        ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        rows = store.get_sheet("Sold Log").rows
        assert len(rows) == 3
        assert rows[1] == earlier
        assert rows[2][0] == "John Smith"

    def test_timestamp_format(self, make_store):
        """Test that a custom timestamp format is used for column J."""
        store = make_store()
        handler = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW, timestamp_format="%d/%m/%Y %H:%M")
        handler.handle(CONFIRM_EVENT)
        assert store.get_sheet("Players").get_cell(2, 10) == "19/10/2026 12:30"

    def test_repeat_confirmation_logs_twice(self, handler, store):
        """Test that re-confirming the same player appends a second Sold Log row.

        The log is an audit trail of confirmations, not of players, so repeats
        are not deduplicated.
        """
        first = handler.handle(CONFIRM_EVENT)
        assert first.outcome == ConfirmOutcome.CONFIRMED

        auction = store.get_sheet("Auction")
        auction.set_range(4, 6, [["SOLD", 1700, "Team Green", ""]])
        auction.set_cell(4, 12, True)

        second = handler.handle(CONFIRM_EVENT)
        assert second.outcome == ConfirmOutcome.CONFIRMED

        sold_log = store.get_sheet("Sold Log")
        assert sold_log.last_row() == 3
        assert sold_log.rows[1][0] == sold_log.rows[2][0] == "John Smith"
        assert sold_log.rows[2][6:8] == [1700, "Team Green"]


class TestValidationFailures:
    """Validation failures report in K4, uncheck L4 and change nothing else."""

    def assert_rejected(self, store, before, result, message):
        assert result.outcome == ConfirmOutcome.VALIDATION_FAILED
        assert result.message == message

        auction = store.get_sheet("Auction")
        assert auction.get_cell(4, 11) == message
        assert auction.get_cell(4, 12) is False

        after = store.to_dict()
        # Only K4 and L4 differ
        after["Auction"][3][10] = before["Auction"][3][10]
        after["Auction"][3][11] = before["Auction"][3][11]
        assert after == before

    def test_missing_status(self, make_store, snapshot):
        """Test that an empty F4 blocks the confirmation and keeps the inputs."""
        store = make_store(status="")
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_INVALID_INPUTS)
        assert store.get_sheet("Auction").get_range(4, 7, 1, 2) == [[1500, "Team Red"]]
        assert store.get_sheet("Sold Log") is None

    @pytest.mark.parametrize("kwargs", [
        {"status": "UNSOLD"},
        {"status": "SOLD OUT"},
        {"sold_price": ""},
        {"sold_price": None},
        {"buyer": ""},
        {"buyer": "   "},
        {"buyer": 0},
        {"buyer": False},
        {"status": False},
    ])
    def test_invalid_inputs(self, make_store, snapshot, kwargs):
        """Test each required-input failure."""
        store = make_store(**kwargs)
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_INVALID_INPUTS)

    def test_no_player_shown(self, make_store, snapshot):
        """Test that a blank A3 is rejected before inputs are checked."""
        store = make_store(player_name="  ", status="")
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_NO_PLAYER)

    @pytest.mark.parametrize("player_name", [0, False])
    def test_zero_or_false_player_name_is_blank(self, make_store, snapshot, player_name):
        """Test that a 0 or FALSE in A3 reads as no player shown."""
        store = make_store(player_name=player_name)
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_NO_PLAYER)

    def test_players_sheet_missing(self, make_store, snapshot):
        """Test that a missing Players sheet is reported."""
        store = make_store(include_players=False)
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_NO_PLAYERS_SHEET)

    def test_players_sheet_header_only(self, make_store, snapshot):
        """Test that a Players sheet without data rows is reported as empty."""
        store = make_store(players=[list(PLAYERS_HEADER)])
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_PLAYERS_EMPTY)

    def test_player_not_found(self, make_store, snapshot):
        """Test that an unknown player is reported."""
        store = make_store(player_name="Nobody Here")
        before = snapshot(store)

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        self.assert_rejected(store, before, result, MSG_PLAYER_NOT_FOUND)
        assert result.player_name == "Nobody Here"


class FailingSheet(InMemorySheet):
    """Sheet whose writes fail, as a broken backend would."""

    def set_range(self, row, col, values):
        raise OSError("backend unavailable")


class TestScriptErrors:
    """Unexpected failures are caught and reported on a best-effort basis."""

    def test_write_failure_reported(self, make_store):
        """Test that a Players write failure becomes a SCRIPT ERROR in K4."""
        store = make_store()
        store.sheets["Players"] = FailingSheet("Players", players_rows())

        result = ConfirmSyncHandler(store, clock=lambda: FIXED_NOW).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.SCRIPT_ERROR
        assert result.message == "SCRIPT ERROR: backend unavailable"
        assert auction_cell(store, 4, 11) == "SCRIPT ERROR: backend unavailable"
        assert auction_cell(store, 4, 12) is False
        assert store.get_sheet("Sold Log") is None

    def test_report_failure_swallowed(self, make_store):
        """Test that a failing error report does not escape the handler."""
        store = make_store()
        store.sheets["Auction"] = FailingSheet("Auction", store.sheets["Auction"].rows)
        store.sheets["Players"] = FailingSheet("Players", players_rows())

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.SCRIPT_ERROR

    def test_store_failure_swallowed(self):
        """Test that a store that cannot open any sheet does not raise."""
        store = Mock(spec=TabularStore)
        store.get_sheet.side_effect = RuntimeError("connection reset")

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.SCRIPT_ERROR
        assert "connection reset" in result.message

    def test_missing_auction_sheet(self, make_store):
        """Test that a missing Auction sheet is a script error, not a crash."""
        store = make_store()
        del store.sheets["Auction"]

        result = ConfirmSyncHandler(store).handle(CONFIRM_EVENT)

        assert result.outcome == ConfirmOutcome.SCRIPT_ERROR


class TestHelpers:
    """Tests for value helpers."""

    @pytest.mark.parametrize("value,expected", [
        (True, True),
        (False, False),
        ("TRUE", True),
        (" true ", True),
        ("FALSE", False),
        ("", False),
        (None, False),
        (1, False),
    ])
    def test_is_checked(self, value, expected):
        assert is_checked(value) is expected

    @pytest.mark.parametrize("value,expected", [
        (None, ""),
        ("", ""),
        ("  Team Red ", "Team Red"),
        (9876543210.0, "9876543210"),
        (12.5, "12.5"),
        (0, ""),
        (0.0, ""),
        (False, ""),
        (7, "7"),
    ])
    def test_cell_text(self, value, expected):
        assert cell_text(value) == expected

    def test_inputs_complete(self):
        assert ConfirmInputs(status="Sold", sold_price=10, buyer="A").is_complete()
        assert not ConfirmInputs(status="Sold", sold_price="", buyer="A").is_complete()

    def test_edit_event_cell(self):
        assert CONFIRM_EVENT.cell == "L4"
