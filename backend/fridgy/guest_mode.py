"""
Guest quota for anonymous analyses.

The quota state travels with the client in a cookie holding a signed JWT,
so it cannot be edited without the server's ``SECRET_KEY``.
"""
import logging
from datetime import datetime, timedelta, timezone

import jwt
from fastapi import Request, Response
from pydantic import BaseModel, Field, ValidationError

from fridgy.core.config import settings
from fridgy.core.security import ALGORITHM

logger = logging.getLogger(__name__)

GUEST_TOKEN_SUBJECT = "guest"


class GuestModeData(BaseModel):
    remaining_requests: int = Field(default_factory=lambda: settings.GUEST_ANALYSIS_LIMIT)
    last_request_time: datetime | None = None
    analysis_ids: list[str] = Field(default_factory=list)


def default_guest_data() -> GuestModeData:
    return GuestModeData()


def encode_guest_data(data: GuestModeData) -> str:
    payload = {
        "sub": GUEST_TOKEN_SUBJECT,
        "exp": datetime.now(timezone.utc)
        + timedelta(seconds=settings.GUEST_COOKIE_MAX_AGE_SECONDS),
        "data": data.model_dump(mode="json"),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def decode_guest_data(token: str | None) -> GuestModeData:
    """Decode the cookie value; anything missing, expired or tampered gives fresh data."""
    if not token:
        return default_guest_data()
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
        if payload.get("sub") != GUEST_TOKEN_SUBJECT:
            raise jwt.InvalidTokenError("unexpected subject")
        return GuestModeData.model_validate(payload.get("data") or {})
    except (jwt.InvalidTokenError, ValidationError) as exc:
        logger.warning("Discarding invalid guest cookie: %s", exc)
        return default_guest_data()


def can_perform_analysis(data: GuestModeData) -> bool:
    return data.remaining_requests > 0


def register_analysis(data: GuestModeData, analysis_id: str) -> GuestModeData | None:
    """Consume one guest analysis. Returns the updated data, or None if the quota is used up."""
    if not can_perform_analysis(data):
        return None
    return GuestModeData(
        remaining_requests=data.remaining_requests - 1,
        last_request_time=datetime.now(timezone.utc),
        analysis_ids=[*data.analysis_ids, analysis_id],
    )


def is_guest_analysis(data: GuestModeData, analysis_id: str) -> bool:
    return analysis_id in data.analysis_ids


def read_guest_data(request: Request) -> GuestModeData:
    return decode_guest_data(request.cookies.get(settings.GUEST_COOKIE_NAME))


def write_guest_data(response: Response, data: GuestModeData) -> None:
    response.set_cookie(
        key=settings.GUEST_COOKIE_NAME,
        value=encode_guest_data(data),
        max_age=settings.GUEST_COOKIE_MAX_AGE_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT != "local",
        path="/",
    )


def reset_guest_data(response: Response) -> GuestModeData:
    data = default_guest_data()
    write_guest_data(response, data)
    return data
