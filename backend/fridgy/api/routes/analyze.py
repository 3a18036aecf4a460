import logging
import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from starlette.datastructures import UploadFile

from fridgy import guest_mode
from fridgy.agent.orchestrator import run_analysis_pipeline
from fridgy.api.deps import OptionalUser, SessionDep
from fridgy.core.config import settings
from fridgy.models import AnalyzeResponse
from fridgy.rate_limit import RateLimitResult, enforce_rate_limit

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analyze", tags=["analyze"])


def _declared_length(request: Request) -> int | None:
    raw = request.headers.get("content-length")
    if raw is None:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


@router.post("", response_model=AnalyzeResponse)
async def analyze_fridge(
    _rate_limit: Annotated[RateLimitResult, Depends(enforce_rate_limit)],
    request: Request,
    response: Response,
    session: SessionDep,
    current_user: OptionalUser,
) -> AnalyzeResponse:
    """
    Analyze a fridge photo (multipart field ``image``) and suggest recipes.

    Anonymous callers consume one analysis from the guest quota.
    """
    declared_length = _declared_length(request)
    if declared_length is not None and declared_length > settings.MAX_IMAGE_BYTES:
        raise HTTPException(status_code=413, detail="Image is too large")

    content_type = request.headers.get("content-type", "")
    if not content_type.lower().startswith("multipart/form-data"):
        raise HTTPException(
            status_code=415, detail="Content type must be multipart/form-data"
        )

    form = await request.form()
    image = form.get("image")
    if not isinstance(image, UploadFile):
        raise HTTPException(status_code=400, detail="No image provided")

    content = await image.read()
    if not content:
        raise HTTPException(status_code=400, detail="Image is empty")
    if len(content) > settings.MAX_IMAGE_BYTES:
        raise HTTPException(status_code=400, detail="Image is too large")
    image_type = (image.content_type or "").lower()
    if not image_type.startswith("image/"):
        raise HTTPException(status_code=400, detail="File must be an image")

    analysis_id = str(uuid.uuid4())
    guest_data = None
    if current_user is None:
        guest_data = guest_mode.register_analysis(
            guest_mode.read_guest_data(request), analysis_id
        )
        if guest_data is None:
            logger.info("Guest analysis limit reached")
            raise HTTPException(
                status_code=403,
                detail={
                    "message": "Guest analysis limit reached. Sign up to keep analyzing.",
                    "limit_reached": True,
                },
            )

    outcome = await run_analysis_pipeline(
        session=session,
        content=content,
        content_type=image_type,
        user=current_user,
        analysis_id=analysis_id,
    )

    response.set_cookie(
        key=settings.LAST_ANALYSIS_COOKIE_NAME,
        value=outcome.analysis_id,
        max_age=settings.ANALYSIS_CACHE_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.ENVIRONMENT != "local",
        path="/",
    )
    if guest_data is not None:
        guest_mode.write_guest_data(response, guest_data)

    return AnalyzeResponse(
        analysis_id=outcome.analysis_id,
        data=outcome.result,
        is_fallback=outcome.is_fallback,
    )


@router.get("")
def analyze_wrong_method() -> None:
    raise HTTPException(
        status_code=400,
        detail="Send a POST request with an image in the 'image' form field",
    )
