import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Request
from sqlmodel import Session

from fridgy import crud, guest_mode
from fridgy.agent.orchestrator import find_generated_recipe
from fridgy.api.deps import CurrentUser, SessionDep
from fridgy.models import (
    AddFromAnalysis,
    Message,
    NotificationCreate,
    ShoppingList,
    ShoppingListCreate,
    ShoppingListItemCreate,
    ShoppingListItemPublic,
    ShoppingListItemUpdate,
    ShoppingListPublic,
    ShoppingListUpdate,
    User,
)
from fridgy.recipe_utils import as_uuid, is_valid_recipe_id

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/shopping-lists", tags=["shopping-lists"])


def _owned_list(session: Session, user: User, list_id: uuid.UUID) -> ShoppingList:
    db_list = crud.get_owned_shopping_list(
        session=session, list_id=list_id, owner_id=user.id
    )
    if db_list is None:
        raise HTTPException(status_code=404, detail="Shopping list not found")
    return db_list


@router.get("", response_model=list[ShoppingListPublic])
def read_shopping_lists(session: SessionDep, current_user: CurrentUser) -> Any:
    return crud.get_user_shopping_lists(session=session, owner_id=current_user.id)


@router.post("", response_model=ShoppingListPublic)
def create_shopping_list(
    *, session: SessionDep, current_user: CurrentUser, list_in: ShoppingListCreate
) -> Any:
    db_list = crud.create_shopping_list(
        session=session, list_in=list_in, owner_id=current_user.id
    )
    crud.create_notification(
        session=session,
        owner_id=current_user.id,
        notification_in=NotificationCreate(
            title="Shopping list created",
            message=f'Your shopping list "{db_list.name}" is ready.',
            type="shopping_list",
            link=f"/shopping-lists/{db_list.id}",
        ),
    )
    return db_list


@router.get("/{list_id}", response_model=ShoppingListPublic)
def read_shopping_list(
    list_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    return _owned_list(session, current_user, list_id)


@router.patch("/{list_id}", response_model=ShoppingListPublic)
def rename_shopping_list(
    *,
    list_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    list_in: ShoppingListUpdate,
) -> Any:
    db_list = _owned_list(session, current_user, list_id)
    return crud.rename_shopping_list(session=session, db_list=db_list, name=list_in.name)


@router.delete("/{list_id}", response_model=Message)
def delete_shopping_list(
    list_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    db_list = _owned_list(session, current_user, list_id)
    session.delete(db_list)
    session.commit()
    return Message(message="Shopping list deleted successfully")


@router.post("/{list_id}/items", response_model=ShoppingListItemPublic)
def add_item(
    *,
    list_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    item_in: ShoppingListItemCreate,
) -> Any:
    db_list = _owned_list(session, current_user, list_id)
    return crud.add_shopping_list_item(session=session, db_list=db_list, item_in=item_in)


@router.patch("/{list_id}/items/{item_id}", response_model=ShoppingListItemPublic)
def update_item(
    *,
    list_id: uuid.UUID,
    item_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    item_in: ShoppingListItemUpdate,
) -> Any:
    db_list = _owned_list(session, current_user, list_id)
    db_item = crud.get_list_item(session=session, db_list=db_list, item_id=item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    return crud.update_shopping_list_item(
        session=session, db_list=db_list, db_item=db_item, item_in=item_in
    )


@router.delete("/{list_id}/items/{item_id}", response_model=Message)
def delete_item(
    list_id: uuid.UUID, item_id: uuid.UUID, session: SessionDep, current_user: CurrentUser
) -> Any:
    db_list = _owned_list(session, current_user, list_id)
    db_item = crud.get_list_item(session=session, db_list=db_list, item_id=item_id)
    if db_item is None:
        raise HTTPException(status_code=404, detail="Item not found")
    crud.delete_shopping_list_item(session=session, db_list=db_list, db_item=db_item)
    return Message(message="Item deleted successfully")


@router.post("/{list_id}/items/from-analysis", response_model=ShoppingListPublic)
def add_items_from_analysis(
    *,
    list_id: uuid.UUID,
    session: SessionDep,
    current_user: CurrentUser,
    body: AddFromAnalysis,
) -> Any:
    """
    Add the ingredients of an analysis (the latest one by default), skipping
    names already on the list.
    """
    db_list = _owned_list(session, current_user, list_id)
    if body.analysis_id is not None:
        analysis = crud.get_owned_analysis(
            session=session, analysis_id=body.analysis_id, owner_id=current_user.id
        )
    else:
        analysis = crud.get_latest_analysis(session=session, owner_id=current_user.id)
    if analysis is None:
        raise HTTPException(status_code=404, detail="Analysis not found")
    added = crud.add_missing_items(
        session=session,
        db_list=db_list,
        names=list(analysis.ingredients or []),
        from_analysis=True,
    )
    logger.info("Added %s analysis ingredients to list %s", len(added), db_list.id)
    session.refresh(db_list)
    return db_list


@router.post(
    "/{list_id}/items/from-recipe/{recipe_id}", response_model=ShoppingListPublic
)
def add_items_from_recipe(
    list_id: uuid.UUID,
    recipe_id: str,
    request: Request,
    session: SessionDep,
    current_user: CurrentUser,
) -> Any:
    """
    Add the ingredients a recipe needs beyond what was found in the fridge.
    """
    if not is_valid_recipe_id(recipe_id):
        raise HTTPException(status_code=400, detail="Invalid recipe id")
    db_list = _owned_list(session, current_user, list_id)

    names: list[str] | None = None
    stored_id = as_uuid(recipe_id)
    if stored_id is not None:
        stored = crud.get_owned_recipe(
            session=session, recipe_id=stored_id, owner_id=current_user.id
        )
        if stored is not None:
            names = list(stored.additional_ingredients or [])
    if names is None:
        generated = find_generated_recipe(
            session,
            recipe_id,
            user=current_user,
            guest_data=guest_mode.read_guest_data(request),
        )
        if generated is None:
            raise HTTPException(status_code=404, detail="Recipe not found")
        names = list(generated.ingredients.additional)

    crud.add_missing_items(
        session=session, db_list=db_list, names=names, from_analysis=False
    )
    session.refresh(db_list)
    return db_list
