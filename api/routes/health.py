"""Health check endpoints."""
from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from api.routes.edit_events import get_app_config
from core.config import AppConfig

router = APIRouter()

# Version info - updated on build/deploy
APP_VERSION = "1.0.0"
BUILD_TIME = datetime.now(timezone.utc).isoformat()


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    version: str
    build_time: str
    checks: Dict[str, Any]


@router.get("/health", response_model=HealthResponse)
async def health_check(config: AppConfig = Depends(get_app_config)):
    """
    Health check endpoint.

    Reports whether a spreadsheet is configured and whether the webhook
    expects a shared secret. Does not call the Sheets API.
    """
    checks = {
        "sheets": {
            "status": "ok" if config.sheets.enabled else "not_configured",
            "value_input_option": config.sheets.value_input_option,
        },
        "webhook": {
            "secret_required": bool(config.webhook.secret),
        },
        "timezone": config.timezone,
    }

    overall_status = "ok" if config.sheets.enabled else "degraded"

    return HealthResponse(
        status=overall_status,
        version=APP_VERSION,
        build_time=BUILD_TIME,
        checks=checks,
    )
