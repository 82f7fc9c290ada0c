"""
Auction Workbook Layout - fixed cell contract for confirm-sync

The confirm handler reads and writes fixed cells in three sheets.
Row and column numbers are 1-based, matching spreadsheet notation.

Auction (working surface):
    A3      current player name (filled upstream by a FILTER formula)
    F4:I4   pending inputs: status, sold price, buyer, owner contact
    K4      error/status message output
    L4      confirm checkbox (trigger + reset target)
    B1      current player selector, cleared after a confirmation

Players (record store, header in row 1, data from row 2):
    A       player name (lookup key)
    F:J     status, sold price, buyer, owner contact, timestamp sold
    A:K     full record snapshot copied to the Sold Log

Sold Log (append-only audit trail, created on first use)
"""

from typing import List

# =============================================================================
# SHEET NAMES
# =============================================================================

AUCTION_SHEET = "Auction"
PLAYERS_SHEET = "Players"
SOLD_LOG_SHEET = "Sold Log"

# =============================================================================
# AUCTION SHEET CELLS
# =============================================================================

PLAYER_NAME_ROW, PLAYER_NAME_COL = 3, 1     # A3
INPUT_ROW = 4
STATUS_COL = 6                              # F4
SOLD_PRICE_COL = 7                          # G4
BUYER_COL = 8                               # H4
CONTACT_COL = 9                             # I4
INPUT_FIRST_COL, INPUT_NUM_COLS = 6, 4      # F4:I4
MESSAGE_COL = 11                            # K4
CONFIRM_ROW, CONFIRM_COL = 4, 12            # L4
SELECTOR_ROW, SELECTOR_COL = 1, 2           # B1

REQUIRED_STATUS = "SOLD"

# =============================================================================
# PLAYERS SHEET COLUMNS
# =============================================================================

PLAYERS_FIRST_DATA_ROW = 2
PLAYERS_NAME_COL = 1                        # A
PLAYERS_STATUS_COL = 6                      # F (then G sold price, H buyer)
PLAYERS_CONTACT_COL = 9                    # I
PLAYERS_TIMESTAMP_COL = 10                  # J
RECORD_NUM_COLS = 11                        # A:K

# =============================================================================
# SOLD LOG
# =============================================================================

SOLD_LOG_HEADERS: List[str] = [
    "Player Name",
    "Player Email",
    "GENDER",
    "Course",
    "Base Price",
    "Auction Status",
    "Sold At",
    "Bought by (Team)",
    "Owner Contact",
    "Timestamp sold",
    "Notes",
]

# =============================================================================
# MESSAGES (written to Auction!K4)
# =============================================================================

MSG_NO_PLAYER = "ERROR: No player shown in A3."
MSG_INVALID_INPUTS = "ERROR: To confirm, set Status=SOLD and fill Sold price and Bought by."
MSG_NO_PLAYERS_SHEET = "ERROR: Players sheet not found."
MSG_PLAYERS_EMPTY = "ERROR: Players sheet empty."
MSG_PLAYER_NOT_FOUND = "ERROR: Player not found in Players sheet. Check name."
SCRIPT_ERROR_PREFIX = "SCRIPT ERROR: "


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def column_index_to_letter(index: int) -> str:
    """Convert 0-based column index to Excel-style letter (A, B, ..., Z, AA, AB, ...)."""
    result = ""
    while index >= 0:
        result = chr(index % 26 + ord('A')) + result
        index = index // 26 - 1
    return result


def column_letter(col: int) -> str:
    """Convert 1-based column number to its letter (1 -> A, 12 -> L)."""
    if col < 1:
        raise ValueError(f"Column numbers start at 1, got {col}")
    return column_index_to_letter(col - 1)


def a1_notation(row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> str:
    """Build A1 notation for a cell or a rectangular block (e.g. F4 or F4:I4)."""
    if row < 1:
        raise ValueError(f"Row numbers start at 1, got {row}")
    start = f"{column_letter(col)}{row}"
    if num_rows == 1 and num_cols == 1:
        return start
    end = f"{column_letter(col + num_cols - 1)}{row + num_rows - 1}"
    return f"{start}:{end}"
