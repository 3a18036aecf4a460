import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from sqlmodel import Session

from fridgy import crud, guest_mode
from fridgy.agent.orchestrator import load_analysis_result
from fridgy.analysis_cache import analysis_cache
from fridgy.api.deps import CurrentUser, OptionalUser, SessionDep
from fridgy.core.config import settings
from fridgy.models import (
    AnalysesPublic,
    AnalysisPublic,
    AnalysisResult,
    Message,
    RecipeSuggestions,
    User,
)
from fridgy.recipe_filter import filter_and_sort_recipes

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/analyses", tags=["analyses"])


def _visible_result(
    request: Request, session: Session, user: User | None, analysis_id: str
) -> AnalysisResult:
    guest_data = guest_mode.read_guest_data(request)
    result = load_analysis_result(
        session, analysis_id, user=user, guest_data=guest_data
    )
    if result is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    return result


@router.get("", response_model=AnalysesPublic)
def read_analyses(
    session: SessionDep, current_user: CurrentUser, skip: int = 0, limit: int = 100
) -> Any:
    """
    Retrieve the caller's stored analyses, newest first.
    """
    analyses, count = crud.get_user_analyses(
        session=session, owner_id=current_user.id, skip=skip, limit=limit
    )
    return AnalysesPublic(
        data=[AnalysisPublic.model_validate(analysis) for analysis in analyses],
        count=count,
    )


@router.get("/last", response_model=AnalysisResult)
def read_last_analysis(
    request: Request, session: SessionDep, current_user: OptionalUser
) -> Any:
    """
    Analysis referenced by the last-analysis cookie.
    """
    analysis_id = request.cookies.get(settings.LAST_ANALYSIS_COOKIE_NAME)
    if not analysis_id:
        raise HTTPException(status_code=404, detail="No recent analysis")
    return _visible_result(request, session, current_user, analysis_id)


@router.get("/latest/ingredients", response_model=list[str])
def read_latest_ingredients(session: SessionDep, current_user: CurrentUser) -> Any:
    analysis = crud.get_latest_analysis(session=session, owner_id=current_user.id)
    if analysis is None:
        return []
    return list(analysis.ingredients or [])


@router.get("/{analysis_id}", response_model=AnalysisResult)
def read_analysis(
    analysis_id: str, request: Request, session: SessionDep, current_user: OptionalUser
) -> Any:
    return _visible_result(request, session, current_user, analysis_id)


@router.get("/{analysis_id}/suggestions", response_model=RecipeSuggestions)
def read_analysis_suggestions(
    analysis_id: str, request: Request, session: SessionDep, current_user: OptionalUser
) -> Any:
    """
    Recipes of an analysis split by compatibility with the caller's preferences.
    """
    result = _visible_result(request, session, current_user, analysis_id)
    preferences = (
        crud.get_user_preferences(current_user) if current_user else None
    )
    compatible, incompatible = filter_and_sort_recipes(
        result.recipes,
        preferences.dietary_preferences if preferences else [],
        preferences.allergies if preferences else [],
    )
    return RecipeSuggestions(compatible=compatible, incompatible=incompatible)


@router.delete("/{analysis_id}", response_model=Message)
def delete_analysis(
    analysis_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    """
    Delete a stored analysis with its recipes and their favorite marks.
    """
    analysis = crud.get_owned_analysis(
        session=session, analysis_id=analysis_id, owner_id=current_user.id
    )
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    session.delete(analysis)
    session.commit()
    analysis_cache.delete(str(analysis_id))
    logger.info("Deleted analysis %s", analysis_id)
    return Message(message="Analysis deleted successfully")
