"""
Settings Endpoints
==================
Backend of the configuration form.

Routes:
    GET    /settings                  — current organization filter and poll interval
    PUT    /settings                  — update both (validated), restarts polling
    PUT    /settings/token            — store a new API token, restarts polling
    DELETE /settings/token            — remove the API token, restarts polling
    POST   /settings/test-connection  — probe GET /me with a candidate token;
                                        the candidate is stored only on success

The token itself is never echoed back.
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel, Field, ValidationError

from cistern.core.constants import DEFAULT_POLL_INTERVAL, MAX_POLL_INTERVAL, MIN_POLL_INTERVAL
from cistern.core.output_formatter import format_interval
from cistern.services.connection_check import verify_token
from cistern.services.settings_store import PollSettings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["Settings"])


# ---------------------------------------------------------------------------
# Request / Response schemas
# ---------------------------------------------------------------------------
class SettingsRequest(BaseModel):
    organization: Optional[str] = None
    poll_interval: float = DEFAULT_POLL_INTERVAL


class SettingsResponse(BaseModel):
    organization: Optional[str] = None
    poll_interval: float
    poll_interval_label: str
    has_token: bool


class TokenRequest(BaseModel):
    token: str = Field(min_length=1)


class ConnectionResponse(BaseModel):
    success: bool
    message: str


def _settings_response(request: Request) -> SettingsResponse:
    settings = request.app.state.settings_store.settings
    return SettingsResponse(
        organization=settings.organization,
        poll_interval=settings.poll_interval,
        poll_interval_label=format_interval(settings.poll_interval),
        has_token=request.app.state.token_store.has_token(),
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------
@router.get("", response_model=SettingsResponse)
async def get_settings(request: Request):
    return _settings_response(request)


@router.put("", response_model=SettingsResponse)
async def update_settings(body: SettingsRequest, request: Request):
    try:
        settings = PollSettings(organization=body.organization, poll_interval=body.poll_interval)
    except ValidationError:
        raise HTTPException(
            status_code=422,
            detail=f"poll_interval must be between {MIN_POLL_INTERVAL} and {MAX_POLL_INTERVAL} seconds",
        )

    request.app.state.settings_store.update(settings)
    await request.app.state.poller.restart()
    return _settings_response(request)


@router.put("/token", response_model=SettingsResponse)
async def set_token(body: TokenRequest, request: Request):
    if not request.app.state.token_store.set_token(body.token):
        raise HTTPException(status_code=422, detail="Please enter a token")
    await request.app.state.poller.restart()
    return _settings_response(request)


@router.delete("/token", response_model=SettingsResponse)
async def delete_token(request: Request):
    request.app.state.token_store.delete_token()
    await request.app.state.poller.restart()
    return _settings_response(request)


@router.post("/test-connection", response_model=ConnectionResponse)
async def test_connection(body: TokenRequest, request: Request):
    result = await verify_token(request.app.state.client, request.app.state.token_store, body.token)
    if result.success:
        await request.app.state.poller.restart()
    return ConnectionResponse(success=result.success, message=result.message)
