"""In-memory tabular store.

Used by the test suite and by the CLI to run the confirm handler against a
local JSON workbook of the form ``{"Sheet name": [[row1...], [row2...]]}``.
"""
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from services.tabular_store import SheetHandle, TabularStore, is_blank, pad_block

logger = logging.getLogger(__name__)


class InMemorySheet(SheetHandle):
    """A sheet backed by a list of rows."""

    def __init__(self, name: str, rows: Optional[List[List[Any]]] = None):
        super().__init__(name)
        self.rows: List[List[Any]] = [list(r) for r in (rows or [])]

    def _ensure_size(self, num_rows: int, num_cols: int) -> None:
        while len(self.rows) < num_rows:
            self.rows.append([])
        for r in range(num_rows):
            row = self.rows[r]
            if len(row) < num_cols:
                row.extend([""] * (num_cols - len(row)))

    def get_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> List[List[Any]]:
        window = [r[col - 1:col - 1 + num_cols] for r in self.rows[row - 1:row - 1 + num_rows]]
        return pad_block(window, num_rows, num_cols)

    def set_range(self, row: int, col: int, values: List[List[Any]]) -> None:
        if not values:
            return
        width = max(len(v) for v in values)
        self._ensure_size(row - 1 + len(values), col - 1 + width)
        for i, row_values in enumerate(values):
            for j, value in enumerate(row_values):
                self.rows[row - 1 + i][col - 1 + j] = value

    def clear_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> None:
        for r in range(row - 1, min(row - 1 + num_rows, len(self.rows))):
            current = self.rows[r]
            for c in range(col - 1, min(col - 1 + num_cols, len(current))):
                current[c] = ""

    def last_row(self) -> int:
        for i in range(len(self.rows) - 1, -1, -1):
            if any(not is_blank(v) for v in self.rows[i]):
                return i + 1
        return 0

    def append_row(self, values: Sequence[Any]) -> None:
        last = self.last_row()
        del self.rows[last:]
        self.rows.append(list(values))


class InMemoryStore(TabularStore):
    """Workbook of InMemorySheet objects, keyed by sheet name."""

    def __init__(self, sheets: Optional[Dict[str, List[List[Any]]]] = None):
        self.sheets: Dict[str, InMemorySheet] = {}
        for name, rows in (sheets or {}).items():
            self.sheets[name] = InMemorySheet(name, rows)

    def get_sheet(self, name: str) -> Optional[InMemorySheet]:
        return self.sheets.get(name)

    def create_sheet(self, name: str) -> InMemorySheet:
        if name in self.sheets:
            raise ValueError(f"Sheet already exists: {name}")
        sheet = InMemorySheet(name)
        self.sheets[name] = sheet
        logger.info(f"Created sheet '{name}'")
        return sheet

    def to_dict(self) -> Dict[str, List[List[Any]]]:
        return {name: [list(r) for r in sheet.rows] for name, sheet in self.sheets.items()}

    @classmethod
    def from_json_file(cls, path: Union[str, Path]) -> "InMemoryStore":
        """Load a workbook from a JSON file mapping sheet names to rows."""
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
        if not isinstance(data, dict):
            raise ValueError(f"Workbook file must contain a JSON object, got {type(data).__name__}")
        return cls(data)

    def save_json_file(self, path: Union[str, Path]) -> None:
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f, indent=2, ensure_ascii=False, default=str)
