"""Repository abstraction over a spreadsheet-like tabular store.

The confirm handler never talks to a spreadsheet API directly. It receives a
``TabularStore`` and works with ``SheetHandle`` objects, so the same logic
runs against Google Sheets or the in-memory store used by tests and the CLI.

All row and column numbers are 1-based.
"""
from abc import ABC, abstractmethod
from typing import Any, List, Optional, Sequence

from services.name_matching import find_matching_index


def is_blank(value: Any) -> bool:
    """Blank means no content: None or an empty string."""
    return value is None or value == ""


def pad_block(values: List[List[Any]], num_rows: int, num_cols: int) -> List[List[Any]]:
    """Pad a possibly ragged block of values to a full rectangle of blanks."""
    block = []
    for i in range(num_rows):
        row = list(values[i]) if i < len(values) else []
        row = row[:num_cols]
        row.extend([""] * (num_cols - len(row)))
        block.append(row)
    return block


class SheetHandle(ABC):
    """One named sheet (tab) of a tabular store."""

    def __init__(self, name: str):
        self.name = name

    @abstractmethod
    def get_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> List[List[Any]]:
        """Read a block of cells. Always returns num_rows x num_cols values, blanks as ''."""

    @abstractmethod
    def set_range(self, row: int, col: int, values: List[List[Any]]) -> None:
        """Write a rectangular block of values starting at (row, col)."""

    @abstractmethod
    def clear_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> None:
        """Clear the contents of a block of cells."""

    @abstractmethod
    def last_row(self) -> int:
        """Last row holding any content, or 0 for an empty sheet."""

    @abstractmethod
    def append_row(self, values: Sequence[Any]) -> None:
        """Append one row after the last populated row."""

    def get_cell(self, row: int, col: int) -> Any:
        return self.get_range(row, col)[0][0]

    def set_cell(self, row: int, col: int, value: Any) -> None:
        self.set_range(row, col, [[value]])

    def clear_cell(self, row: int, col: int) -> None:
        self.clear_range(row, col)

    def find_row_by_key(
        self,
        key: Any,
        column: int = 1,
        start_row: int = 2,
        last_row: Optional[int] = None,
    ) -> Optional[int]:
        """
        Find the first row whose value in column matches key (tolerant match).

        Args:
            last_row: Last populated row when the caller already knows it,
                saving a second full-sheet read.

        Returns:
            1-based row number, or None when no row matches.
        """
        last = self.last_row() if last_row is None else last_row
        if last < start_row:
            return None

        column_values = self.get_range(start_row, column, last - start_row + 1, 1)
        idx = find_matching_index([r[0] for r in column_values], key)
        if idx is None:
            return None
        return start_row + idx

    def __repr__(self) -> str:
        return f"{type(self).__name__}(name={self.name!r})"


class TabularStore(ABC):
    """A workbook: a set of named sheets."""

    @abstractmethod
    def get_sheet(self, name: str) -> Optional[SheetHandle]:
        """Return the named sheet, or None if it does not exist."""

    @abstractmethod
    def create_sheet(self, name: str) -> SheetHandle:
        """Create a new empty sheet and return it."""

    def refresh(self) -> None:
        """Drop cached workbook metadata so sheet lookups see added or removed tabs."""

    def get_or_create_sheet(self, name: str, header: Optional[Sequence[Any]] = None) -> SheetHandle:
        """Return the named sheet, creating it (with an optional header row) if missing."""
        sheet = self.get_sheet(name)
        if sheet is None:
            sheet = self.create_sheet(name)
            if header:
                sheet.append_row(list(header))
        return sheet
