import logging
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from sqlmodel import Session

from fridgy import crud, guest_mode
from fridgy.agent.orchestrator import (
    favorite_recipe_ids,
    find_generated_recipe,
    stored_recipe_payload,
)
from fridgy.agent.recipe_image import get_recipe_image, placeholder_image_url
from fridgy.api.deps import CurrentUser, OptionalUser, SessionDep
from fridgy.models import (
    FavoritePublic,
    FavoriteStatus,
    Recipe,
    RecipeImage,
    RecipeSuggestion,
    User,
    UserPreferences,
)
from fridgy.recipe_filter import enrich_recipe
from fridgy.recipe_utils import as_uuid, is_valid_recipe_id

logger = logging.getLogger(__name__)
router = APIRouter(tags=["recipes"])


def _require_valid_id(recipe_id: str) -> None:
    if not is_valid_recipe_id(recipe_id):
        raise HTTPException(status_code=400, detail="Invalid recipe id")


def _stored_recipe(session: Session, user: User | None, recipe_id: str) -> Recipe | None:
    stored_id = as_uuid(recipe_id)
    if user is None or stored_id is None:
        return None
    return crud.get_owned_recipe(session=session, recipe_id=stored_id, owner_id=user.id)


@router.get("/recipes/{recipe_id}", response_model=RecipeSuggestion)
def read_recipe(
    recipe_id: str, request: Request, session: SessionDep, current_user: OptionalUser
) -> Any:
    """
    A stored recipe of the caller, or a generated recipe of a cached analysis.
    """
    _require_valid_id(recipe_id)
    stored = _stored_recipe(session, current_user, recipe_id)
    if stored is not None:
        preferences = (
            crud.get_user_preferences(current_user) if current_user else UserPreferences()
        )
        recipe = RecipeSuggestion.model_validate(
            enrich_recipe(
                stored_recipe_payload(stored),
                preferences.dietary_preferences,
                preferences.allergies,
            )
        )
        recipe.is_favorite = recipe.id in favorite_recipe_ids(session, current_user)
        return recipe
    generated = find_generated_recipe(
        session,
        recipe_id,
        user=current_user,
        guest_data=guest_mode.read_guest_data(request),
    )
    if generated is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    return generated


@router.get("/recipes/{recipe_id}/image", response_model=RecipeImage)
async def read_recipe_image(
    recipe_id: str, request: Request, session: SessionDep, current_user: OptionalUser
) -> Any:
    """
    Image for a recipe. Stored recipes keep the first generated image.
    """
    _require_valid_id(recipe_id)
    stored = _stored_recipe(session, current_user, recipe_id)
    if stored is not None:
        if stored.image_url:
            return RecipeImage(recipe_id=recipe_id, url=stored.image_url)
        url = await get_recipe_image(stored.title)
        if url != placeholder_image_url(stored.title):
            crud.set_recipe_image(session=session, recipe=stored, image_url=url)
        return RecipeImage(recipe_id=recipe_id, url=url)
    generated = find_generated_recipe(
        session,
        recipe_id,
        user=current_user,
        guest_data=guest_mode.read_guest_data(request),
    )
    if generated is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    if generated.image_url:
        return RecipeImage(recipe_id=recipe_id, url=generated.image_url)
    return RecipeImage(recipe_id=recipe_id, url=await get_recipe_image(generated.title))


@router.get("/recipes/{recipe_id}/favorite", response_model=FavoriteStatus)
def read_favorite_status(
    recipe_id: str, session: SessionDep, current_user: CurrentUser
) -> Any:
    _require_valid_id(recipe_id)
    stored_id = as_uuid(recipe_id)
    favorite = (
        crud.get_favorite(session=session, owner_id=current_user.id, recipe_id=stored_id)
        if stored_id
        else None
    )
    return FavoriteStatus(recipe_id=recipe_id, is_favorite=favorite is not None)


@router.post("/recipes/{recipe_id}/favorite", response_model=FavoriteStatus)
def toggle_favorite(
    recipe_id: str, session: SessionDep, current_user: CurrentUser
) -> Any:
    """
    Add or remove the favorite mark of a stored recipe.
    """
    _require_valid_id(recipe_id)
    stored = _stored_recipe(session, current_user, recipe_id)
    if stored is None:
        raise HTTPException(status_code=404, detail="Recipe not found")
    is_favorite = crud.toggle_favorite(
        session=session, owner_id=current_user.id, recipe_id=stored.id
    )
    return FavoriteStatus(recipe_id=recipe_id, is_favorite=is_favorite)


@router.get("/favorites", response_model=list[FavoritePublic])
def read_favorites(session: SessionDep, current_user: CurrentUser) -> Any:
    favorites = crud.get_user_favorites(session=session, owner_id=current_user.id)
    return [FavoritePublic.model_validate(favorite) for favorite in favorites]
