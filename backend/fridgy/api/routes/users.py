import logging
from typing import Any

from fastapi import APIRouter, HTTPException

from fridgy import crud
from fridgy.api.deps import CurrentUser, SessionDep
from fridgy.core.security import verify_password
from fridgy.models import (
    Message,
    NotificationCreate,
    UpdatePassword,
    UserCreate,
    UserPreferences,
    UserPreferencesUpdate,
    UserPublic,
    UserRegister,
    UserUpdateMe,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"])


@router.post("/signup", response_model=UserPublic)
def register_user(session: SessionDep, user_in: UserRegister) -> Any:
    """
    Create new user without the need to be logged in.
    """
    user = crud.get_user_by_email(session=session, email=user_in.email)
    if user:
        raise HTTPException(
            status_code=409,
            detail="The user with this email already exists in the system",
        )
    user_create = UserCreate.model_validate(user_in)
    user = crud.create_user(session=session, user_create=user_create)
    crud.create_notification(
        session=session,
        owner_id=user.id,
        notification_in=NotificationCreate(
            title="Welcome to Fridgy",
            message="Take a photo of your fridge to get recipe ideas.",
            type="system",
            link="/app",
        ),
    )
    logger.info("Registered user %s", user.id)
    return user


@router.get("/me", response_model=UserPublic)
def read_user_me(current_user: CurrentUser) -> Any:
    """
    Get current user.
    """
    return current_user


@router.patch("/me", response_model=UserPublic)
def update_user_me(
    *, session: SessionDep, user_in: UserUpdateMe, current_user: CurrentUser
) -> Any:
    """
    Update own profile.
    """
    if user_in.email:
        existing_user = crud.get_user_by_email(session=session, email=user_in.email)
        if existing_user and existing_user.id != current_user.id:
            raise HTTPException(
                status_code=409, detail="User with this email already exists"
            )
    return crud.update_user(session=session, db_user=current_user, user_in=user_in)


@router.patch("/me/password", response_model=Message)
def update_password_me(
    *, session: SessionDep, body: UpdatePassword, current_user: CurrentUser
) -> Any:
    """
    Update own password.
    """
    verified, _ = verify_password(body.current_password, current_user.hashed_password)
    if not verified:
        raise HTTPException(status_code=400, detail="Incorrect password")
    if body.current_password == body.new_password:
        raise HTTPException(
            status_code=400, detail="New password cannot be the same as the current one"
        )
    crud.update_password(session=session, db_user=current_user, new_password=body.new_password)
    return Message(message="Password updated successfully")


@router.delete("/me", response_model=Message)
def delete_user_me(session: SessionDep, current_user: CurrentUser) -> Any:
    """
    Delete own account together with its analyses, favorites, lists and notifications.
    """
    session.delete(current_user)
    session.commit()
    logger.info("Deleted user %s", current_user.id)
    return Message(message="User deleted successfully")


@router.get("/me/preferences", response_model=UserPreferences)
def read_preferences_me(current_user: CurrentUser) -> Any:
    return crud.get_user_preferences(current_user)


@router.patch("/me/preferences", response_model=UserPreferences)
def update_preferences_me(
    *, session: SessionDep, preferences_in: UserPreferencesUpdate, current_user: CurrentUser
) -> Any:
    """
    Merge the given fields into the stored preferences.
    """
    return crud.update_user_preferences(
        session=session, db_user=current_user, preferences_in=preferences_in
    )
