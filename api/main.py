"""FastAPI service for Auction Confirm-Sync.

Run with: uvicorn api.main:app --port 8000

Endpoints:
- /api/health - Health check
- /api/events/edit - Spreadsheet edit-event webhook
"""
import sys
import uuid
from pathlib import Path

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from fastapi import FastAPI, Request
from starlette.middleware.base import BaseHTTPMiddleware

from api.routes import edit_events, health
from core.config import get_config
from core.logging_config import current_request_id, setup_logging


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Middleware that adds a unique request ID to each request.

    - Uses the client's X-Request-ID or generates one
    - Sets it in context variables for access (and logging) during the request
    - Adds X-Request-ID header to responses
    """
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        log_token = current_request_id.set(request_id)
        request.state.request_id = request_id

        try:
            response = await call_next(request)
        finally:
            current_request_id.reset(log_token)

        response.headers["X-Request-ID"] = request_id
        return response


app = FastAPI(
    title="Auction Confirm-Sync",
    description="Applies confirmed auction sales from the Auction sheet to Players and the Sold Log",
    version=health.APP_VERSION,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
)

app.add_middleware(RequestIDMiddleware)

app.include_router(health.router, prefix="/api", tags=["Health"])
app.include_router(edit_events.router)


@app.on_event("startup")
async def startup():
    """Configure logging from the environment."""
    config = get_config()
    setup_logging(level=config.log_level, format_type=config.log_format)
