"""
Edit Event Webhook

Receives single-cell edit events forwarded from the spreadsheet (for example
by an installable onEdit trigger doing UrlFetchApp.fetch) and runs the
confirm-sync handler against the configured spreadsheet.

Usage:
1. Forward each edit as POST /api/events/edit with
   {"sheet_name": "Auction", "row": 4, "column": 12, "value": true}
2. If WEBHOOK_SECRET is set, send it in the X-Webhook-Secret header
3. Outcomes other than CONFIRMED are already reported in Auction!K4, so the
   endpoint answers 200 for them too
"""

import hmac
import logging
import threading
from typing import Any, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from pydantic import BaseModel, Field

from core.config import AppConfig, get_config
from services.confirm_sync import ConfirmSyncHandler, EditEvent
from services.google_sheets_store import create_store_from_config
from services.tabular_store import TabularStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/events", tags=["Edit Events"])

# Edits are applied one at a time per process
_handler_lock = threading.Lock()

_store: Optional[TabularStore] = None


# =============================================================================
# MODELS
# =============================================================================


class EditEventPayload(BaseModel):
    """A single-cell edit forwarded from the spreadsheet."""

    sheet_name: str = Field(..., description="Name of the edited sheet")
    row: int = Field(..., ge=1, description="1-based row of the edited cell")
    column: int = Field(..., ge=1, description="1-based column of the edited cell")
    value: Optional[Any] = Field(None, description="New cell value, informational")
    event_id: Optional[str] = Field(None, description="Caller's id for log correlation")


class EditEventResponse(BaseModel):
    """Result of handling an edit event."""

    status: str
    outcome: str
    message: str = ""
    player_name: str = ""
    player_row: Optional[int] = None
    logged_row: List[Any] = []
    request_id: str = ""


# =============================================================================
# DEPENDENCIES
# =============================================================================


def get_app_config() -> AppConfig:
    return get_config()


def get_store(config: AppConfig = Depends(get_app_config)) -> TabularStore:
    """Store for the configured spreadsheet, created once per process."""
    global _store
    if _store is None:
        _store = create_store_from_config(config)
        if _store is None:
            raise HTTPException(status_code=503, detail="Google Sheets not configured")
    return _store


def verify_webhook_secret(
    x_webhook_secret: Optional[str] = Header(None),
    config: AppConfig = Depends(get_app_config),
) -> None:
    """Reject the request if a webhook secret is configured and does not match."""
    expected = config.webhook.secret
    if not expected:
        return
    if not x_webhook_secret or not hmac.compare_digest(x_webhook_secret, expected):
        logger.warning("Rejected edit event with invalid webhook secret")
        raise HTTPException(status_code=401, detail="Invalid webhook secret")


# =============================================================================
# ENDPOINTS
# =============================================================================


@router.post(
    "/edit",
    response_model=EditEventResponse,
    dependencies=[Depends(verify_webhook_secret)],
)
def receive_edit_event(
    payload: EditEventPayload,
    request: Request,
    store: TabularStore = Depends(get_store),
    config: AppConfig = Depends(get_app_config),
):
    """Apply one edit event to the spreadsheet."""
    event = EditEvent(
        sheet_name=payload.sheet_name,
        row=payload.row,
        column=payload.column,
        value=payload.value,
        event_id=payload.event_id,
    )
    handler = ConfirmSyncHandler.from_config(store, config)

    with _handler_lock:
        result = handler.handle(event)

    return EditEventResponse(
        status="ok",
        outcome=result.outcome.value,
        message=result.message,
        player_name=result.player_name,
        player_row=result.player_row,
        logged_row=result.logged_row,
        request_id=getattr(request.state, "request_id", ""),
    )
