"""Google Sheets backend for the tabular store.

This module provides:
1. Service-account access to one spreadsheet (Sheets API v4)
2. Cell/block reads and writes addressed by 1-based (row, column)
3. Sheet discovery and lazy sheet creation (batchUpdate addSheet)
4. Row append after the last populated row

Reads use UNFORMATTED_VALUE so checkboxes come back as booleans and numbers
as numbers; date cells come back as formatted strings, which USER_ENTERED
writes parse back into dates.
"""
import json
import logging
from typing import Any, Dict, List, Optional, Sequence

from googleapiclient.errors import HttpError
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from core.config import SheetsConfig
from schemas.auction_layout import a1_notation
from services.tabular_store import SheetHandle, TabularStore, pad_block

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


class SheetsBackendError(Exception):
    """A Google Sheets API call failed."""
    pass


@retry(
    retry=retry_if_exception_type(HttpError),
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=1, min=2, max=10),
    reraise=True,
)
def _execute_with_retry(request) -> Dict[str, Any]:
    return request.execute()


def _quote_sheet_name(name: str) -> str:
    return "'" + name.replace("'", "''") + "'"


def _to_api_value(value: Any) -> Any:
    if value is None:
        return ""
    return value


class GoogleSheet(SheetHandle):
    """One tab of a Google spreadsheet."""

    def __init__(self, store: "GoogleSheetsStore", name: str):
        super().__init__(name)
        self._store = store

    def _range(self, notation: str = "") -> str:
        if notation:
            return f"{_quote_sheet_name(self.name)}!{notation}"
        return _quote_sheet_name(self.name)

    def _get_values(self, range_name: str) -> List[List[Any]]:
        service = self._store.get_service()
        request = service.spreadsheets().values().get(
            spreadsheetId=self._store.spreadsheet_id,
            range=range_name,
            valueRenderOption="UNFORMATTED_VALUE",
            dateTimeRenderOption="FORMATTED_STRING",
        )
        result = self._store.execute(request, f"read {range_name}")
        return result.get("values", [])

    def get_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> List[List[Any]]:
        values = self._get_values(self._range(a1_notation(row, col, num_rows, num_cols)))
        return pad_block(values, num_rows, num_cols)

    def set_range(self, row: int, col: int, values: List[List[Any]]) -> None:
        if not values:
            return
        width = max(len(v) for v in values)
        range_name = self._range(a1_notation(row, col, len(values), width))
        service = self._store.get_service()
        request = service.spreadsheets().values().update(
            spreadsheetId=self._store.spreadsheet_id,
            range=range_name,
            valueInputOption=self._store.value_input_option,
            body={"values": [[_to_api_value(v) for v in r] for r in values]},
        )
        self._store.execute(request, f"write {range_name}")
        logger.debug(f"Wrote {range_name}")

    def clear_range(self, row: int, col: int, num_rows: int = 1, num_cols: int = 1) -> None:
        range_name = self._range(a1_notation(row, col, num_rows, num_cols))
        service = self._store.get_service()
        request = service.spreadsheets().values().clear(
            spreadsheetId=self._store.spreadsheet_id,
            range=range_name,
            body={},
        )
        self._store.execute(request, f"clear {range_name}")
        logger.debug(f"Cleared {range_name}")

    def last_row(self) -> int:
        # The API drops trailing empty rows, so the row count is the last populated row
        values = self._get_values(self._range())
        for i in range(len(values) - 1, -1, -1):
            if any(v not in (None, "") for v in values[i]):
                return i + 1
        return 0

    def append_row(self, values: Sequence[Any]) -> None:
        range_name = self._range("A1")
        service = self._store.get_service()
        request = service.spreadsheets().values().append(
            spreadsheetId=self._store.spreadsheet_id,
            range=range_name,
            valueInputOption=self._store.value_input_option,
            insertDataOption="INSERT_ROWS",
            body={"values": [[_to_api_value(v) for v in values]]},
        )
        # Not retried: a retried append can duplicate the row
        result = self._store.execute(request, f"append to {self._range()}", retry_call=False)
        updated_range = result.get("updates", {}).get("updatedRange", "")
        logger.info(f"Appended row to {updated_range or self.name}")


class GoogleSheetsStore(TabularStore):
    """Tabular store backed by a single Google spreadsheet."""

    def __init__(self, config: SheetsConfig, service=None):
        self.config = config
        self.spreadsheet_id = config.spreadsheet_id
        self.value_input_option = config.value_input_option
        self._service = service
        self._titles: Optional[List[str]] = None

    def get_service(self):
        """Get or create the Sheets API service."""
        if self._service is None:
            from google.oauth2 import service_account
            from googleapiclient.discovery import build

            if self.config.credentials_json:
                credentials = service_account.Credentials.from_service_account_info(
                    json.loads(self.config.credentials_json),
                    scopes=SCOPES,
                )
            else:
                credentials = service_account.Credentials.from_service_account_file(
                    self.config.credentials_file,
                    scopes=SCOPES,
                )
            self._service = build("sheets", "v4", credentials=credentials, cache_discovery=False)
        return self._service

    def execute(self, request, action: str, retry_call: bool = True) -> Dict[str, Any]:
        """Execute an API request, wrapping HTTP failures in SheetsBackendError."""
        try:
            if retry_call:
                return _execute_with_retry(request)
            return request.execute()
        except HttpError as e:
            raise SheetsBackendError(f"Google Sheets {action} failed: {e}") from e

    def sheet_titles(self, refresh: bool = False) -> List[str]:
        """Titles of all tabs in the spreadsheet (cached)."""
        if self._titles is None or refresh:
            request = self.get_service().spreadsheets().get(
                spreadsheetId=self.spreadsheet_id,
                fields="properties.title,sheets.properties.title",
            )
            result = self.execute(request, "metadata read")
            self._titles = [
                s.get("properties", {}).get("title", "")
                for s in result.get("sheets", [])
            ]
        return self._titles

    def refresh(self) -> None:
        self._titles = None

    def get_sheet(self, name: str) -> Optional[GoogleSheet]:
        if name not in self.sheet_titles():
            return None
        return GoogleSheet(self, name)

    def create_sheet(self, name: str) -> GoogleSheet:
        request = self.get_service().spreadsheets().batchUpdate(
            spreadsheetId=self.spreadsheet_id,
            body={"requests": [{"addSheet": {"properties": {"title": name}}}]},
        )
        self.execute(request, f"create sheet '{name}'", retry_call=False)
        if self._titles is not None:
            self._titles.append(name)
        logger.info(f"Created sheet '{name}'")
        return GoogleSheet(self, name)


def create_store_from_config(config) -> Optional[GoogleSheetsStore]:
    """Create GoogleSheetsStore from app config if a spreadsheet is configured."""
    if not config.sheets.enabled:
        return None
    return GoogleSheetsStore(config.sheets)
