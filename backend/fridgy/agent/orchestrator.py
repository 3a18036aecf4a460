import base64
import logging
import uuid
from dataclasses import dataclass
from typing import Any

from sqlmodel import Session

from fridgy.agent.artifacts import FridgeAnalysis, FridgeImage, SuggestedRecipe
from fridgy.agent.fallback import fallback_analysis
from fridgy.agent.fridge_agent import FridgeAnalysisAgent
from fridgy.analysis_cache import analysis_cache
from fridgy.core.config import settings
from fridgy.crud import (
    create_analysis,
    create_notification,
    get_owned_analysis,
    get_user_favorites,
    get_user_preferences,
)
from fridgy.guest_mode import GuestModeData, is_guest_analysis
from fridgy.models import (
    Analysis,
    AnalysisResult,
    NotificationCreate,
    Recipe,
    RecipeSuggestion,
    User,
    UserPreferences,
    get_datetime_utc,
)
from fridgy.recipe_filter import enrich_recipes
from fridgy.recipe_utils import as_uuid, generate_recipe_id, parse_generated_recipe_id
from fridgy.storage import save_uploaded_image

logger = logging.getLogger(__name__)


@dataclass
class AnalysisOutcome:
    analysis_id: str
    result: AnalysisResult
    is_fallback: bool
    persisted: bool


def to_data_uri(content: bytes, content_type: str) -> str:
    return f"data:{content_type};base64,{base64.b64encode(content).decode('ascii')}"


def _rollback_session_safely(session: Session) -> None:
    try:
        session.rollback()
    except Exception as exc:
        logger.warning("Session rollback failed: %s", exc)


async def analyze_fridge_image(image: FridgeImage) -> tuple[FridgeAnalysis, bool]:
    """Run the model on the photo. Returns (analysis, is_fallback)."""
    if not settings.llm_configured:
        logger.warning("No LLM API key configured, using example analysis")
        return fallback_analysis(), True
    try:
        analysis = await FridgeAnalysisAgent().run(image)
    except Exception as exc:
        logger.error("Fridge analysis failed, using example analysis: %s", exc)
        return fallback_analysis(), True
    logger.info(
        "Fridge analysis found %s ingredients and %s recipes",
        len(analysis.ingredients),
        len(analysis.recipes),
    )
    return analysis, False


def suggestion_payload(recipe: SuggestedRecipe) -> dict[str, Any]:
    return {
        "id": recipe.id,
        "title": recipe.title,
        "description": recipe.description,
        "ingredients": recipe.ingredients.model_dump(),
        "steps": list(recipe.steps),
        "calories": recipe.calories,
        "image_url": recipe.image_url,
    }


def stored_recipe_payload(recipe: Recipe) -> dict[str, Any]:
    return {
        "id": str(recipe.id),
        "title": recipe.title,
        "description": recipe.description,
        "ingredients": {
            "available": list(recipe.available_ingredients or []),
            "additional": list(recipe.additional_ingredients or []),
        },
        "steps": list(recipe.preparation_steps or []),
        "calories": recipe.calories,
        "image_url": recipe.image_url,
    }


def stored_analysis_result(analysis: Analysis, preferences: UserPreferences) -> AnalysisResult:
    recipes = sorted(analysis.recipes, key=lambda recipe: recipe.created_at or get_datetime_utc())
    return AnalysisResult(
        id=str(analysis.id),
        ingredients=list(analysis.ingredients or []),
        recipes=enrich_recipes(
            [stored_recipe_payload(recipe) for recipe in recipes],
            preferences.dietary_preferences,
            preferences.allergies,
        ),
        image_url=analysis.image_url,
        created_at=analysis.created_at,
    )


def _persist_analysis_safely(
    session: Session,
    *,
    owner: User,
    analysis_id: str,
    analysis: FridgeAnalysis,
    image_url: str | None,
) -> list[uuid.UUID] | None:
    """Store the analysis and its recipes. Returns the stored recipe ids, or None on failure."""
    recipe_ids = [uuid.uuid4() for _ in analysis.recipes]
    try:
        create_analysis(
            session=session,
            owner_id=owner.id,
            analysis_id=uuid.UUID(analysis_id),
            ingredients=list(analysis.ingredients),
            image_url=image_url,
            recipes=[
                {
                    "id": recipe_id,
                    "title": recipe.title[:255],
                    "description": recipe.description,
                    "available_ingredients": list(recipe.ingredients.available),
                    "additional_ingredients": list(recipe.ingredients.additional),
                    "preparation_steps": list(recipe.steps),
                    "calories": recipe.calories,
                }
                for recipe_id, recipe in zip(recipe_ids, analysis.recipes)
            ],
        )
    except Exception as exc:
        logger.error("Failed to store analysis %s: %s", analysis_id, exc)
        _rollback_session_safely(session)
        return None
    logger.info("Stored analysis %s with %s recipes", analysis_id, len(recipe_ids))
    return recipe_ids


def _notify_analysis_completed_safely(
    session: Session, *, owner: User, analysis_id: str, analysis: FridgeAnalysis
) -> None:
    try:
        create_notification(
            session=session,
            owner_id=owner.id,
            notification_in=NotificationCreate(
                title="Analysis completed",
                message=(
                    f"Found {len(analysis.ingredients)} ingredients and "
                    f"generated {len(analysis.recipes)} recipes."
                ),
                type="analysis",
                link=f"/results?id={analysis_id}",
            ),
        )
    except Exception as exc:
        logger.warning("Failed to create notification for analysis %s: %s", analysis_id, exc)
        _rollback_session_safely(session)


async def run_analysis_pipeline(
    *,
    session: Session,
    content: bytes,
    content_type: str,
    user: User | None,
    analysis_id: str | None = None,
) -> AnalysisOutcome:
    """
    Full fridge analysis: model call (or fallback), recipe ids, compatibility,
    optional persistence and notification, then caching of the result.
    """
    preferences = get_user_preferences(user) if user else UserPreferences()
    analysis_id = analysis_id or str(uuid.uuid4())

    analysis, is_fallback = await analyze_fridge_image(
        FridgeImage(
            data_uri=to_data_uri(content, content_type),
            dietary_preferences=preferences.dietary_preferences,
            allergies=preferences.allergies,
        )
    )

    recipes = [
        recipe.model_copy(update={"id": generate_recipe_id(analysis_id, index)})
        for index, recipe in enumerate(analysis.recipes)
    ]
    image_url = save_uploaded_image(analysis_id, content, content_type)

    persisted = False
    if user and preferences.save_history:
        stored_ids = _persist_analysis_safely(
            session, owner=user, analysis_id=analysis_id, analysis=analysis, image_url=image_url
        )
        if stored_ids is not None:
            persisted = True
            recipes = [
                recipe.model_copy(update={"id": str(stored_id)})
                for recipe, stored_id in zip(recipes, stored_ids)
            ]

    result = AnalysisResult(
        id=analysis_id,
        ingredients=list(analysis.ingredients),
        recipes=enrich_recipes(
            [suggestion_payload(recipe) for recipe in recipes],
            preferences.dietary_preferences,
            preferences.allergies,
        ),
        image_url=image_url,
        created_at=get_datetime_utc(),
        is_fallback=is_fallback,
    )
    analysis_cache.set(
        analysis_id,
        {
            "owner_id": str(user.id) if user else None,
            "result": result.model_dump(mode="json"),
        },
    )

    if user:
        _notify_analysis_completed_safely(
            session, owner=user, analysis_id=analysis_id, analysis=analysis
        )

    return AnalysisOutcome(
        analysis_id=analysis_id,
        result=result,
        is_fallback=is_fallback,
        persisted=persisted,
    )


def favorite_recipe_ids(session: Session, user: User | None) -> set[str]:
    if user is None:
        return set()
    return {
        str(favorite.recipe_id)
        for favorite in get_user_favorites(session=session, owner_id=user.id)
    }


def _mark_favorites(result: AnalysisResult, favorite_ids: set[str]) -> AnalysisResult:
    for recipe in result.recipes:
        recipe.is_favorite = recipe.id in favorite_ids
    return result


def _cached_analysis_result(
    analysis_id: str,
    *,
    user: User | None,
    guest_data: GuestModeData | None,
    preferences: UserPreferences,
) -> AnalysisResult | None:
    cached = analysis_cache.get(analysis_id)
    if cached is None:
        return None
    owner_id = cached.get("owner_id")
    if owner_id is None:
        if guest_data is None or not is_guest_analysis(guest_data, analysis_id):
            return None
    elif user is None or owner_id != str(user.id):
        return None
    result = AnalysisResult.model_validate(cached["result"])
    # Compatibility is recomputed so preference changes apply to cached results
    result.recipes = [
        RecipeSuggestion.model_validate(recipe)
        for recipe in enrich_recipes(
            [recipe.model_dump() for recipe in result.recipes],
            preferences.dietary_preferences,
            preferences.allergies,
        )
    ]
    return result


def load_analysis_result(
    session: Session,
    analysis_id: str,
    *,
    user: User | None,
    guest_data: GuestModeData | None = None,
) -> AnalysisResult | None:
    """
    Find an analysis visible to the caller: the in-memory cache first, then the
    caller's stored history. Returns None when neither has it.
    """
    preferences = get_user_preferences(user) if user else UserPreferences()
    result = _cached_analysis_result(
        analysis_id, user=user, guest_data=guest_data, preferences=preferences
    )
    if result is None and user is not None:
        stored_id = as_uuid(analysis_id)
        analysis = (
            get_owned_analysis(session=session, analysis_id=stored_id, owner_id=user.id)
            if stored_id
            else None
        )
        if analysis is not None:
            result = stored_analysis_result(analysis, preferences)
    if result is None:
        return None
    return _mark_favorites(result, favorite_recipe_ids(session, user))


def find_generated_recipe(
    session: Session,
    recipe_id: str,
    *,
    user: User | None,
    guest_data: GuestModeData | None = None,
) -> RecipeSuggestion | None:
    """Resolve ``recipe_<analysis_id>_<index>`` against an analysis visible to the caller."""
    parsed = parse_generated_recipe_id(recipe_id)
    if parsed is None:
        return None
    analysis_id, index = parsed
    result = load_analysis_result(session, analysis_id, user=user, guest_data=guest_data)
    if result is None:
        return None
    for recipe in result.recipes:
        if recipe.id == recipe_id:
            return recipe
    # Persisted analyses replace generated ids, the position still identifies the recipe
    if index < len(result.recipes):
        return result.recipes[index]
    return None
