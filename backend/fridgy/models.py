import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, EmailStr
from pydantic import Field as PydanticField
from sqlalchemy import JSON, DateTime, UniqueConstraint
from sqlmodel import Field, Relationship, SQLModel


def get_datetime_utc() -> datetime:
    return datetime.now(timezone.utc)


# User preferences, stored as a JSON document on the user row
class NotificationPreferences(BaseModel):
    email: bool = True
    push: bool = True


class UserPreferences(BaseModel):
    bio: str = ""
    dietary_preferences: list[str] = []
    allergies: list[str] = []
    notification_preferences: NotificationPreferences = PydanticField(
        default_factory=NotificationPreferences
    )
    theme: Literal["light", "dark", "system"] = "system"
    save_history: bool = True


class UserPreferencesUpdate(BaseModel):
    bio: str | None = None
    dietary_preferences: list[str] | None = None
    allergies: list[str] | None = None
    notification_preferences: NotificationPreferences | None = None
    theme: Literal["light", "dark", "system"] | None = None
    save_history: bool | None = None


# Shared properties
class UserBase(SQLModel):
    email: EmailStr = Field(unique=True, index=True, max_length=255)
    is_active: bool = True
    full_name: str | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1024)


# Properties to receive via API on creation
class UserCreate(UserBase):
    password: str = Field(min_length=8, max_length=128)


class UserRegister(SQLModel):
    email: EmailStr = Field(max_length=255)
    password: str = Field(min_length=8, max_length=128)
    full_name: str | None = Field(default=None, max_length=255)


class UserUpdateMe(SQLModel):
    full_name: str | None = Field(default=None, max_length=255)
    email: EmailStr | None = Field(default=None, max_length=255)
    avatar_url: str | None = Field(default=None, max_length=1024)


class UpdatePassword(SQLModel):
    current_password: str = Field(min_length=8, max_length=128)
    new_password: str = Field(min_length=8, max_length=128)


# Database model, database table inferred from class name
class User(UserBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    hashed_password: str
    preferences: dict = Field(default_factory=dict, sa_type=JSON)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    analyses: list["Analysis"] = Relationship(back_populates="owner", cascade_delete=True)
    favorites: list["FavoriteRecipe"] = Relationship(cascade_delete=True)
    shopping_lists: list["ShoppingList"] = Relationship(cascade_delete=True)
    notifications: list["Notification"] = Relationship(cascade_delete=True)


# Properties to return via API, id is always required
class UserPublic(UserBase):
    id: uuid.UUID
    created_at: datetime | None = None


# Generic message
class Message(SQLModel):
    message: str


# JSON payload containing access token
class Token(SQLModel):
    access_token: str
    token_type: str = "bearer"


# Contents of JWT token
class TokenPayload(SQLModel):
    sub: str | None = None


# Fridge analyses

class Analysis(SQLModel, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    ingredients: list = Field(default_factory=list, sa_type=JSON)
    image_url: str | None = Field(default=None, max_length=1024)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    owner: User | None = Relationship(back_populates="analyses")
    recipes: list["Recipe"] = Relationship(
        back_populates="analysis",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "Recipe.created_at"},
    )


class RecipeBase(SQLModel):
    title: str = Field(max_length=255)
    description: str | None = Field(default=None)
    available_ingredients: list = Field(default_factory=list, sa_type=JSON)
    additional_ingredients: list = Field(default_factory=list, sa_type=JSON)
    preparation_steps: list = Field(default_factory=list, sa_type=JSON)
    calories: int | None = None
    image_url: str | None = Field(default=None, max_length=1024)


class Recipe(RecipeBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    analysis_id: uuid.UUID = Field(
        foreign_key="analysis.id", nullable=False, ondelete="CASCADE", index=True
    )
    analysis: Analysis | None = Relationship(back_populates="recipes")
    favorites: list["FavoriteRecipe"] = Relationship(
        back_populates="recipe", cascade_delete=True
    )


class RecipePublic(RecipeBase):
    id: uuid.UUID
    analysis_id: uuid.UUID
    created_at: datetime | None = None


class AnalysisPublic(SQLModel):
    id: uuid.UUID
    ingredients: list[str]
    image_url: str | None = None
    created_at: datetime | None = None
    recipes: list[RecipePublic] = []


class AnalysesPublic(SQLModel):
    data: list[AnalysisPublic]
    count: int


class FavoriteRecipe(SQLModel, table=True):
    __tablename__ = "favorite_recipe"
    __table_args__ = (UniqueConstraint("user_id", "recipe_id"),)

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    recipe_id: uuid.UUID = Field(
        foreign_key="recipe.id", nullable=False, ondelete="CASCADE"
    )
    recipe: Recipe | None = Relationship(back_populates="favorites")


class FavoritePublic(SQLModel):
    id: uuid.UUID
    recipe_id: uuid.UUID
    created_at: datetime | None = None
    recipe: RecipePublic


class FavoriteStatus(SQLModel):
    recipe_id: str
    is_favorite: bool


# Shopping lists

class ShoppingListBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)


class ShoppingListCreate(ShoppingListBase):
    pass


class ShoppingListUpdate(SQLModel):
    name: str = Field(min_length=1, max_length=255)


class ShoppingList(ShoppingListBase, table=True):
    __tablename__ = "shopping_list"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )
    items: list["ShoppingListItem"] = Relationship(
        back_populates="shopping_list",
        cascade_delete=True,
        sa_relationship_kwargs={"order_by": "ShoppingListItem.created_at"},
    )


class ShoppingListItemBase(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    completed: bool = False
    from_analysis: bool = False


class ShoppingListItemCreate(SQLModel):
    name: str = Field(min_length=1, max_length=255)
    from_analysis: bool = False


class ShoppingListItemUpdate(SQLModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    completed: bool | None = None


class ShoppingListItem(ShoppingListItemBase, table=True):
    __tablename__ = "shopping_list_item"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    updated_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    list_id: uuid.UUID = Field(
        foreign_key="shopping_list.id", nullable=False, ondelete="CASCADE", index=True
    )
    shopping_list: ShoppingList | None = Relationship(back_populates="items")


class ShoppingListItemPublic(ShoppingListItemBase):
    id: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ShoppingListPublic(ShoppingListBase):
    id: uuid.UUID
    created_at: datetime | None = None
    updated_at: datetime | None = None
    items: list[ShoppingListItemPublic] = []


class AddFromAnalysis(SQLModel):
    analysis_id: uuid.UUID | None = None


# Notifications

NotificationType = Literal["system", "recipe", "analysis", "shopping_list"]


class NotificationBase(SQLModel):
    title: str = Field(max_length=255)
    message: str
    type: str = Field(default="system", max_length=32)
    link: str | None = Field(default=None, max_length=1024)
    read: bool = False


class NotificationCreate(SQLModel):
    title: str = Field(max_length=255)
    message: str
    type: NotificationType = "system"
    link: str | None = None


class Notification(NotificationBase, table=True):
    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime | None = Field(
        default_factory=get_datetime_utc,
        sa_type=DateTime(timezone=True),  # type: ignore
    )
    user_id: uuid.UUID = Field(
        foreign_key="user.id", nullable=False, ondelete="CASCADE", index=True
    )


class NotificationPublic(NotificationBase):
    id: uuid.UUID
    created_at: datetime | None = None


class NotificationsPublic(SQLModel):
    data: list[NotificationPublic]
    count: int
    unread_count: int


# Analysis results as returned to clients, for cached and stored analyses alike

class SuggestedIngredients(SQLModel):
    available: list[str] = []
    additional: list[str] = []


class RecipeSuggestion(SQLModel):
    id: str
    title: str
    description: str | None = None
    ingredients: SuggestedIngredients = SuggestedIngredients()
    steps: list[str] = []
    calories: int | None = None
    image_url: str | None = None
    compatible: bool = True
    incompatible_reasons: list[str] = []
    compatibility_score: float = 1.0
    is_favorite: bool = False


class AnalysisResult(SQLModel):
    id: str
    ingredients: list[str]
    recipes: list[RecipeSuggestion]
    image_url: str | None = None
    created_at: datetime | None = None
    is_fallback: bool = False


class AnalyzeResponse(SQLModel):
    success: bool = True
    analysis_id: str
    data: AnalysisResult
    is_fallback: bool = False


class RecipeSuggestions(SQLModel):
    compatible: list[RecipeSuggestion]
    incompatible: list[RecipeSuggestion]


class RecipeImage(SQLModel):
    recipe_id: str
    url: str
