import uuid
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, col, func, select

from fridgy.core.security import get_password_hash, verify_password
from fridgy.models import (
    Analysis,
    FavoriteRecipe,
    Notification,
    NotificationCreate,
    Recipe,
    ShoppingList,
    ShoppingListCreate,
    ShoppingListItem,
    ShoppingListItemCreate,
    ShoppingListItemUpdate,
    User,
    UserCreate,
    UserPreferences,
    UserPreferencesUpdate,
    UserUpdateMe,
    get_datetime_utc,
)


def create_user(*, session: Session, user_create: UserCreate) -> User:
    db_obj = User.model_validate(
        user_create, update={"hashed_password": get_password_hash(user_create.password)}
    )
    session.add(db_obj)
    session.commit()
    session.refresh(db_obj)
    return db_obj


def update_user(*, session: Session, db_user: User, user_in: UserUpdateMe) -> Any:
    user_data = user_in.model_dump(exclude_unset=True)
    db_user.sqlmodel_update(user_data, update={"updated_at": get_datetime_utc()})
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user


def update_password(*, session: Session, db_user: User, new_password: str) -> User:
    db_user.hashed_password = get_password_hash(new_password)
    db_user.updated_at = get_datetime_utc()
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return db_user


def get_user_by_email(*, session: Session, email: str) -> User | None:
    statement = select(User).where(User.email == email)
    session_user = session.exec(statement).first()
    return session_user


# Dummy hash to use for timing attack prevention when user is not found
# This is an Argon2 hash of a random password, used to ensure constant-time comparison
DUMMY_HASH = "$argon2id$v=19$m=65536,t=3,p=4$MjQyZWE1MzBjYjJlZTI0Yw$YTU4NGM5ZTZmYjE2NzZlZjY0ZWY3ZGRkY2U2OWFjNjk"


def authenticate(*, session: Session, email: str, password: str) -> User | None:
    db_user = get_user_by_email(session=session, email=email)
    if not db_user:
        # Keep response time similar whether or not the email exists
        verify_password(password, DUMMY_HASH)
        return None
    verified, updated_password_hash = verify_password(password, db_user.hashed_password)
    if not verified:
        return None
    if updated_password_hash:
        db_user.hashed_password = updated_password_hash
        session.add(db_user)
        session.commit()
        session.refresh(db_user)
    return db_user


def get_user_preferences(user: User) -> UserPreferences:
    return UserPreferences.model_validate(user.preferences or {})


def update_user_preferences(
    *, session: Session, db_user: User, preferences_in: UserPreferencesUpdate
) -> UserPreferences:
    """Merge the given fields into the stored preferences document."""
    current = get_user_preferences(db_user)
    merged = UserPreferences.model_validate(
        {**current.model_dump(), **preferences_in.model_dump(exclude_unset=True, exclude_none=True)}
    )
    db_user.preferences = merged.model_dump()
    db_user.updated_at = get_datetime_utc()
    session.add(db_user)
    session.commit()
    session.refresh(db_user)
    return merged


# Analyses and recipes

def create_analysis(
    *,
    session: Session,
    owner_id: uuid.UUID,
    ingredients: list[str],
    recipes: list[dict[str, Any]],
    image_url: str | None = None,
    analysis_id: uuid.UUID | None = None,
) -> Analysis:
    db_analysis = Analysis(
        id=analysis_id or uuid.uuid4(),
        user_id=owner_id,
        ingredients=ingredients,
        image_url=image_url,
    )
    session.add(db_analysis)
    for recipe in recipes:
        session.add(Recipe(analysis_id=db_analysis.id, **recipe))
    session.commit()
    session.refresh(db_analysis)
    return db_analysis


def get_user_analyses(
    *, session: Session, owner_id: uuid.UUID, skip: int = 0, limit: int = 100
) -> tuple[list[Analysis], int]:
    count = session.exec(
        select(func.count()).select_from(Analysis).where(Analysis.user_id == owner_id)
    ).one()
    statement = (
        select(Analysis)
        .where(Analysis.user_id == owner_id)
        .order_by(col(Analysis.created_at).desc())
        .offset(skip)
        .limit(limit)
    )
    return list(session.exec(statement).all()), count


def get_latest_analysis(*, session: Session, owner_id: uuid.UUID) -> Analysis | None:
    statement = (
        select(Analysis)
        .where(Analysis.user_id == owner_id)
        .order_by(col(Analysis.created_at).desc())
        .limit(1)
    )
    return session.exec(statement).first()


def get_owned_analysis(
    *, session: Session, analysis_id: uuid.UUID, owner_id: uuid.UUID
) -> Analysis | None:
    analysis = session.get(Analysis, analysis_id)
    if not analysis or analysis.user_id != owner_id:
        return None
    return analysis


def get_owned_recipe(
    *, session: Session, recipe_id: uuid.UUID, owner_id: uuid.UUID
) -> Recipe | None:
    recipe = session.get(Recipe, recipe_id)
    if not recipe or not recipe.analysis or recipe.analysis.user_id != owner_id:
        return None
    return recipe


def set_recipe_image(*, session: Session, recipe: Recipe, image_url: str) -> Recipe:
    recipe.image_url = image_url
    session.add(recipe)
    session.commit()
    session.refresh(recipe)
    return recipe


# Favorites

def get_favorite(
    *, session: Session, owner_id: uuid.UUID, recipe_id: uuid.UUID
) -> FavoriteRecipe | None:
    statement = select(FavoriteRecipe).where(
        FavoriteRecipe.user_id == owner_id, FavoriteRecipe.recipe_id == recipe_id
    )
    return session.exec(statement).first()


def toggle_favorite(*, session: Session, owner_id: uuid.UUID, recipe_id: uuid.UUID) -> bool:
    """Add or remove the favorite mark. Returns the new state."""
    existing = get_favorite(session=session, owner_id=owner_id, recipe_id=recipe_id)
    if existing:
        session.delete(existing)
        session.commit()
        return False
    session.add(FavoriteRecipe(user_id=owner_id, recipe_id=recipe_id))
    try:
        session.commit()
    except IntegrityError:
        # a concurrent toggle already stored the favorite
        session.rollback()
    return True


def get_user_favorites(*, session: Session, owner_id: uuid.UUID) -> list[FavoriteRecipe]:
    statement = (
        select(FavoriteRecipe)
        .where(FavoriteRecipe.user_id == owner_id)
        .order_by(col(FavoriteRecipe.created_at).desc())
    )
    return list(session.exec(statement).all())


# Shopping lists

def create_shopping_list(
    *, session: Session, list_in: ShoppingListCreate, owner_id: uuid.UUID
) -> ShoppingList:
    db_list = ShoppingList.model_validate(list_in, update={"user_id": owner_id})
    session.add(db_list)
    session.commit()
    session.refresh(db_list)
    return db_list


def get_user_shopping_lists(*, session: Session, owner_id: uuid.UUID) -> list[ShoppingList]:
    statement = (
        select(ShoppingList)
        .where(ShoppingList.user_id == owner_id)
        .order_by(col(ShoppingList.created_at).desc())
    )
    return list(session.exec(statement).all())


def get_owned_shopping_list(
    *, session: Session, list_id: uuid.UUID, owner_id: uuid.UUID
) -> ShoppingList | None:
    db_list = session.get(ShoppingList, list_id)
    if not db_list or db_list.user_id != owner_id:
        return None
    return db_list


def rename_shopping_list(*, session: Session, db_list: ShoppingList, name: str) -> ShoppingList:
    db_list.name = name
    db_list.updated_at = get_datetime_utc()
    session.add(db_list)
    session.commit()
    session.refresh(db_list)
    return db_list


def _touch(session: Session, db_list: ShoppingList) -> None:
    db_list.updated_at = get_datetime_utc()
    session.add(db_list)


def add_shopping_list_item(
    *, session: Session, db_list: ShoppingList, item_in: ShoppingListItemCreate
) -> ShoppingListItem:
    db_item = ShoppingListItem.model_validate(item_in, update={"list_id": db_list.id})
    session.add(db_item)
    _touch(session, db_list)
    session.commit()
    session.refresh(db_item)
    return db_item


def add_missing_items(
    *, session: Session, db_list: ShoppingList, names: list[str], from_analysis: bool
) -> list[ShoppingListItem]:
    """Add each name not already on the list (case-insensitive). Returns the new items."""
    seen = {item.name.strip().lower() for item in db_list.items}
    added: list[ShoppingListItem] = []
    for name in names:
        cleaned = (name or "").strip()
        key = cleaned.lower()
        if not cleaned or key in seen:
            continue
        seen.add(key)
        db_item = ShoppingListItem(
            list_id=db_list.id, name=cleaned[:255], from_analysis=from_analysis
        )
        session.add(db_item)
        added.append(db_item)
    if added:
        _touch(session, db_list)
        session.commit()
        for db_item in added:
            session.refresh(db_item)
    return added


def get_list_item(
    *, session: Session, db_list: ShoppingList, item_id: uuid.UUID
) -> ShoppingListItem | None:
    db_item = session.get(ShoppingListItem, item_id)
    if not db_item or db_item.list_id != db_list.id:
        return None
    return db_item


def update_shopping_list_item(
    *,
    session: Session,
    db_list: ShoppingList,
    db_item: ShoppingListItem,
    item_in: ShoppingListItemUpdate,
) -> ShoppingListItem:
    item_data = item_in.model_dump(exclude_unset=True, exclude_none=True)
    db_item.sqlmodel_update(item_data, update={"updated_at": get_datetime_utc()})
    session.add(db_item)
    _touch(session, db_list)
    session.commit()
    session.refresh(db_item)
    return db_item


def delete_shopping_list_item(
    *, session: Session, db_list: ShoppingList, db_item: ShoppingListItem
) -> None:
    session.delete(db_item)
    _touch(session, db_list)
    session.commit()


# Notifications

def create_notification(
    *, session: Session, owner_id: uuid.UUID, notification_in: NotificationCreate
) -> Notification:
    db_notification = Notification.model_validate(
        notification_in, update={"user_id": owner_id}
    )
    session.add(db_notification)
    session.commit()
    session.refresh(db_notification)
    return db_notification


def get_user_notifications(*, session: Session, owner_id: uuid.UUID) -> list[Notification]:
    statement = (
        select(Notification)
        .where(Notification.user_id == owner_id)
        .order_by(col(Notification.created_at).desc())
    )
    return list(session.exec(statement).all())


def get_owned_notification(
    *, session: Session, notification_id: uuid.UUID, owner_id: uuid.UUID
) -> Notification | None:
    notification = session.get(Notification, notification_id)
    if not notification or notification.user_id != owner_id:
        return None
    return notification


def mark_notification_read(*, session: Session, notification: Notification) -> Notification:
    notification.read = True
    session.add(notification)
    session.commit()
    session.refresh(notification)
    return notification


def mark_all_notifications_read(*, session: Session, owner_id: uuid.UUID) -> int:
    statement = select(Notification).where(
        Notification.user_id == owner_id, Notification.read == False  # noqa: E712
    )
    unread = list(session.exec(statement).all())
    for notification in unread:
        notification.read = True
        session.add(notification)
    session.commit()
    return len(unread)
