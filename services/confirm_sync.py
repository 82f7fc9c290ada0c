"""
Confirm-Sync Handler

Finalizes an auction sale when the confirm checkbox (Auction!L4) is checked.

Flow for one edit event:
1. Gate: only an edit of Auction!L4 whose value is TRUE is acted on
2. Validate the shown player (A3) and the inputs in row 4 (F4:I4)
3. Locate the player in Players column A (tolerant name match)
4. Write status, price, buyer, contact (if given) and timestamp to Players
5. Append the updated Players row (A:K) to the Sold Log
6. Clear the Auction inputs, message cell, checkbox and selector (B1)

Validation failures are reported in Auction!K4 and the checkbox is reset;
the row-4 inputs stay in place so the user can correct them and re-check.
Unexpected errors are caught at the top of ``handle`` and reported in K4
with a "SCRIPT ERROR:" prefix on a best-effort basis.

The Sold Log append is not deduplicated: confirming the same player twice
logs two rows.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Callable, List, Optional, Tuple

from core.logging_config import LogContext, generate_run_id
from schemas.auction_layout import (
    AUCTION_SHEET,
    BUYER_COL,
    CONFIRM_COL,
    CONFIRM_ROW,
    CONTACT_COL,
    INPUT_FIRST_COL,
    INPUT_NUM_COLS,
    INPUT_ROW,
    MESSAGE_COL,
    MSG_INVALID_INPUTS,
    MSG_NO_PLAYER,
    MSG_NO_PLAYERS_SHEET,
    MSG_PLAYER_NOT_FOUND,
    MSG_PLAYERS_EMPTY,
    PLAYER_NAME_COL,
    PLAYER_NAME_ROW,
    PLAYERS_CONTACT_COL,
    PLAYERS_FIRST_DATA_ROW,
    PLAYERS_NAME_COL,
    PLAYERS_SHEET,
    PLAYERS_STATUS_COL,
    PLAYERS_TIMESTAMP_COL,
    RECORD_NUM_COLS,
    REQUIRED_STATUS,
    SCRIPT_ERROR_PREFIX,
    SELECTOR_COL,
    SELECTOR_ROW,
    SOLD_LOG_HEADERS,
    SOLD_LOG_SHEET,
    SOLD_PRICE_COL,
    STATUS_COL,
    a1_notation,
)
from services.tabular_store import SheetHandle, TabularStore, is_blank

logger = logging.getLogger(__name__)

DEFAULT_TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConfirmOutcome(str, Enum):
    """Terminal state of one handled edit event."""
    IGNORED = "IGNORED"                       # Not the confirm checkbox, or unchecked
    VALIDATION_FAILED = "VALIDATION_FAILED"   # Reported in K4, nothing written
    CONFIRMED = "CONFIRMED"                   # Players updated, Sold Log appended
    SCRIPT_ERROR = "SCRIPT_ERROR"             # Unexpected failure, best-effort report


class ConfirmValidationError(Exception):
    """A confirmation precondition failed; message is shown to the user."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


@dataclass
class EditEvent:
    """A single-cell edit on a named sheet."""
    sheet_name: str
    row: int
    column: int
    value: Any = None
    event_id: Optional[str] = None

    @property
    def cell(self) -> str:
        return a1_notation(self.row, self.column)


@dataclass
class ConfirmInputs:
    """Pending confirmation inputs from Auction row 4."""
    status: str = ""
    sold_price: Any = ""
    buyer: str = ""
    contact: str = ""

    def is_complete(self) -> bool:
        return (
            self.status.upper() == REQUIRED_STATUS
            and not is_blank(self.sold_price)
            and self.buyer != ""
        )


@dataclass
class ConfirmResult:
    """What handling an edit event did."""
    outcome: ConfirmOutcome
    message: str = ""
    player_name: str = ""
    player_row: Optional[int] = None
    logged_row: List[Any] = field(default_factory=list)


def is_checked(value: Any) -> bool:
    """Checkbox value reads as TRUE (a boolean, or the text 'TRUE' from webhook relays)."""
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().upper() == "TRUE"
    return False


def cell_text(value: Any) -> str:
    """Cell value as trimmed text; None, '', 0 and FALSE read as blank."""
    if is_blank(value) or value is False or (isinstance(value, (int, float)) and value == 0):
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


class ConfirmSyncHandler:
    """Applies confirm-checkbox edits to a tabular store."""

    def __init__(
        self,
        store: TabularStore,
        clock: Optional[Callable[[], datetime]] = None,
        timestamp_format: str = DEFAULT_TIMESTAMP_FORMAT,
    ):
        self.store = store
        self.clock = clock or (lambda: datetime.now(timezone.utc))
        self.timestamp_format = timestamp_format

    @classmethod
    def from_config(cls, store: TabularStore, config) -> "ConfirmSyncHandler":
        tz = config.tzinfo
        return cls(
            store,
            clock=lambda: datetime.now(tz),
            timestamp_format=config.timestamp_format,
        )

    @staticmethod
    def is_confirm_edit(event: EditEvent) -> bool:
        """True when the edit targets the confirm checkbox cell."""
        return (
            event.sheet_name == AUCTION_SHEET
            and event.row == CONFIRM_ROW
            and event.column == CONFIRM_COL
        )

    def handle(self, event: EditEvent) -> ConfirmResult:
        """Handle one edit event. Never raises."""
        if not self.is_confirm_edit(event):
            return ConfirmResult(ConfirmOutcome.IGNORED)

        with LogContext(
            run_id=event.event_id or generate_run_id(),
            sheet_name=event.sheet_name,
            cell=event.cell,
        ):
            try:
                return self._confirm()
            except Exception as e:
                logger.exception(f"Error in confirm-sync: {e}")
                message = SCRIPT_ERROR_PREFIX + str(e)
                self._report_script_error(message)
                return ConfirmResult(ConfirmOutcome.SCRIPT_ERROR, message=message)

    # ---- pipeline ----

    def _confirm(self) -> ConfirmResult:
        # Tabs may have been added, renamed or deleted since the last event
        self.store.refresh()
        auction = self.store.get_sheet(AUCTION_SHEET)
        if auction is None:
            raise LookupError(f"{AUCTION_SHEET} sheet not found")

        if not is_checked(auction.get_cell(CONFIRM_ROW, CONFIRM_COL)):
            logger.debug("Confirm checkbox not checked, nothing to do")
            return ConfirmResult(ConfirmOutcome.IGNORED)

        player_name = ""
        try:
            player_name = self._read_player_name(auction)
            inputs = self._read_inputs(auction)
            players, target_row = self._locate_player(player_name)
        except ConfirmValidationError as e:
            logger.warning(f"Confirmation rejected for '{player_name}': {e.message}")
            self._reject(auction, e.message)
            return ConfirmResult(
                ConfirmOutcome.VALIDATION_FAILED,
                message=e.message,
                player_name=player_name,
            )

        with LogContext(player_name=player_name):
            record = self._commit(auction, players, target_row, inputs)
            logger.info(
                f"Confirmed sale of '{player_name}' (Players row {target_row}) "
                f"to '{inputs.buyer}' for {inputs.sold_price}"
            )

        return ConfirmResult(
            ConfirmOutcome.CONFIRMED,
            player_name=player_name,
            player_row=target_row,
            logged_row=record,
        )

    def _read_player_name(self, auction: SheetHandle) -> str:
        name = cell_text(auction.get_cell(PLAYER_NAME_ROW, PLAYER_NAME_COL))
        if not name:
            raise ConfirmValidationError(MSG_NO_PLAYER)
        return name

    def _read_inputs(self, auction: SheetHandle) -> ConfirmInputs:
        row = auction.get_range(INPUT_ROW, INPUT_FIRST_COL, 1, INPUT_NUM_COLS)[0]
        values = dict(zip(range(INPUT_FIRST_COL, INPUT_FIRST_COL + INPUT_NUM_COLS), row))

        sold_price = values[SOLD_PRICE_COL]
        inputs = ConfirmInputs(
            status=cell_text(values[STATUS_COL]),
            sold_price="" if is_blank(sold_price) else sold_price,
            buyer=cell_text(values[BUYER_COL]),
            contact=cell_text(values[CONTACT_COL]),
        )
        if not inputs.is_complete():
            raise ConfirmValidationError(MSG_INVALID_INPUTS)
        return inputs

    def _locate_player(self, player_name: str) -> Tuple[SheetHandle, int]:
        players = self.store.get_sheet(PLAYERS_SHEET)
        if players is None:
            raise ConfirmValidationError(MSG_NO_PLAYERS_SHEET)

        last_row = players.last_row()
        if last_row < PLAYERS_FIRST_DATA_ROW:
            raise ConfirmValidationError(MSG_PLAYERS_EMPTY)

        target_row = players.find_row_by_key(
            player_name,
            column=PLAYERS_NAME_COL,
            start_row=PLAYERS_FIRST_DATA_ROW,
            last_row=last_row,
        )
        if target_row is None:
            raise ConfirmValidationError(MSG_PLAYER_NOT_FOUND)
        return players, target_row

    def _commit(
        self,
        auction: SheetHandle,
        players: SheetHandle,
        target_row: int,
        inputs: ConfirmInputs,
    ) -> List[Any]:
        players.set_range(
            target_row,
            PLAYERS_STATUS_COL,
            [[inputs.status, inputs.sold_price, inputs.buyer]],
        )
        # Never overwrite a stored contact with a blank
        if inputs.contact:
            players.set_cell(target_row, PLAYERS_CONTACT_COL, inputs.contact)
        players.set_cell(target_row, PLAYERS_TIMESTAMP_COL, self._timestamp())

        record = players.get_range(target_row, 1, 1, RECORD_NUM_COLS)[0]
        sold_log = self.store.get_or_create_sheet(SOLD_LOG_SHEET, SOLD_LOG_HEADERS)
        sold_log.append_row(record)

        auction.clear_range(INPUT_ROW, INPUT_FIRST_COL, 1, INPUT_NUM_COLS)
        auction.clear_cell(INPUT_ROW, MESSAGE_COL)
        auction.set_cell(CONFIRM_ROW, CONFIRM_COL, False)
        auction.clear_cell(SELECTOR_ROW, SELECTOR_COL)
        return record

    def _timestamp(self) -> str:
        return self.clock().strftime(self.timestamp_format)

    # ---- reporting ----

    @staticmethod
    def _reject(auction: SheetHandle, message: str) -> None:
        auction.set_cell(INPUT_ROW, MESSAGE_COL, message)
        auction.set_cell(CONFIRM_ROW, CONFIRM_COL, False)

    def _report_script_error(self, message: str) -> None:
        """Best-effort: show the error in K4 and uncheck the box. Failures are swallowed."""
        try:
            auction = self.store.get_sheet(AUCTION_SHEET)
            if auction is None:
                return
        except Exception as e:
            logger.debug(f"Could not open {AUCTION_SHEET} to report error: {e}")
            return

        try:
            auction.set_cell(INPUT_ROW, MESSAGE_COL, message)
        except Exception as e:
            logger.debug(f"Could not write error message: {e}")

        try:
            auction.set_cell(CONFIRM_ROW, CONFIRM_COL, False)
        except Exception as e:
            logger.debug(f"Could not reset confirm checkbox: {e}")
