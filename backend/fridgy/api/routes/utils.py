from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request, Response

from fridgy import guest_mode
from fridgy.core.config import settings
from fridgy.guest_mode import GuestModeData
from fridgy.ingredients import suggest_ingredients

router = APIRouter(prefix="/utils", tags=["utils"])


@router.get("/health-check/")
async def health_check() -> bool:
    return True


@router.get("/status")
def service_status() -> dict[str, Any]:
    return {
        "project": settings.PROJECT_NAME,
        "environment": settings.ENVIRONMENT,
        "llm_configured": settings.llm_configured,
    }


@router.get("/ingredients", response_model=list[str])
def autocomplete_ingredients(
    q: str = Query(default=""), limit: int = Query(default=5, ge=1, le=20)
) -> Any:
    return suggest_ingredients(q, limit=limit)


@router.get("/guest-status", response_model=GuestModeData)
def read_guest_status(request: Request) -> Any:
    return guest_mode.read_guest_data(request)


@router.delete("/guest-status", response_model=GuestModeData)
def reset_guest_status(response: Response) -> Any:
    """
    Restore the full guest quota. Local development only.
    """
    if settings.ENVIRONMENT != "local":
        raise HTTPException(status_code=403, detail="Not available in this environment")
    return guest_mode.reset_guest_data(response)
