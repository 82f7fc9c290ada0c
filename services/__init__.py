"""Services for Auction Confirm-Sync."""

from services.confirm_sync import (
    ConfirmInputs,
    ConfirmOutcome,
    ConfirmResult,
    ConfirmSyncHandler,
    ConfirmValidationError,
    EditEvent,
)
from services.google_sheets_store import GoogleSheet, GoogleSheetsStore, SheetsBackendError
from services.memory_store import InMemorySheet, InMemoryStore
from services.name_matching import find_matching_index, normalize_name
from services.tabular_store import SheetHandle, TabularStore

__all__ = [
    # Confirm handler
    "ConfirmSyncHandler",
    "ConfirmOutcome",
    "ConfirmResult",
    "ConfirmInputs",
    "ConfirmValidationError",
    "EditEvent",
    # Store abstraction
    "TabularStore",
    "SheetHandle",
    # Backends
    "GoogleSheetsStore",
    "GoogleSheet",
    "SheetsBackendError",
    "InMemoryStore",
    "InMemorySheet",
    # Name matching
    "normalize_name",
    "find_matching_index",
]
