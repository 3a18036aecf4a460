import uuid
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlmodel import Session, select

from fridgy import crud
from fridgy.agent.artifacts import FridgeAnalysis
from fridgy.agent.orchestrator import (
    find_generated_recipe,
    load_analysis_result,
    run_analysis_pipeline,
)
from fridgy.analysis_cache import analysis_cache
from fridgy.guest_mode import GuestModeData
from fridgy.models import Analysis, Notification, UserPreferencesUpdate
from fridgy.tests.utils.utils import PNG_BYTES, create_test_user, random_email

MODEL_ANALYSIS = FridgeAnalysis.model_validate(
    {
        "ingredients": ["Chicken", "Rice", "Peanuts"],
        "recipes": [
            {
                "title": "Chicken Fried Rice",
                "description": "Quick fried rice",
                "ingredients": {"available": ["Chicken", "Rice"], "additional": ["Soy sauce"]},
                "steps": ["Cook the rice.", "Fry with chicken."],
                "calories": 550,
            },
            {
                "title": "Peanut Rice Bowl",
                "description": "Rice with a peanut sauce",
                "ingredients": {"available": ["Rice", "Peanuts"], "additional": ["Lime"]},
                "steps": ["Cook the rice.", "Blend the sauce."],
                "calories": 480,
            },
        ],
    }
)


def _agent_returning(analysis: FridgeAnalysis | Exception) -> MagicMock:
    agent = MagicMock()
    if isinstance(analysis, Exception):
        agent.run = AsyncMock(side_effect=analysis)
    else:
        agent.run = AsyncMock(return_value=analysis)
    return MagicMock(return_value=agent)


@pytest.mark.asyncio
async def test_pipeline_without_model_returns_fallback(db: Session):
    outcome = await run_analysis_pipeline(
        session=db, content=PNG_BYTES, content_type="image/png", user=None
    )

    assert outcome.is_fallback is True
    assert outcome.persisted is False
    assert outcome.result.is_fallback is True
    assert [recipe.id for recipe in outcome.result.recipes] == [
        f"recipe_{outcome.analysis_id}_{index}" for index in range(3)
    ]
    cached = analysis_cache.get(outcome.analysis_id)
    assert cached is not None
    assert cached["owner_id"] is None


@pytest.mark.asyncio
async def test_pipeline_falls_back_when_model_fails(db: Session):
    with patch("fridgy.agent.orchestrator.settings.LLM_API_KEY", "dummy_key"), patch(
        "fridgy.agent.orchestrator.FridgeAnalysisAgent",
        _agent_returning(ValueError("bad output")),
    ):
        outcome = await run_analysis_pipeline(
            session=db, content=PNG_BYTES, content_type="image/png", user=None
        )
    assert outcome.is_fallback is True
    assert len(outcome.result.recipes) == 3


@pytest.mark.asyncio
async def test_pipeline_persists_for_user_with_history(db: Session):
    user = create_test_user(db, email=random_email(), password="supersecret")
    crud.update_user_preferences(
        session=db,
        db_user=user,
        preferences_in=UserPreferencesUpdate(allergies=["peanut"]),
    )

    with patch("fridgy.agent.orchestrator.settings.LLM_API_KEY", "dummy_key"), patch(
        "fridgy.agent.orchestrator.FridgeAnalysisAgent", _agent_returning(MODEL_ANALYSIS)
    ):
        outcome = await run_analysis_pipeline(
            session=db, content=PNG_BYTES, content_type="image/png", user=user
        )

    assert outcome.is_fallback is False
    assert outcome.persisted is True
    stored = db.get(Analysis, uuid.UUID(outcome.analysis_id))
    assert stored is not None
    assert stored.ingredients == ["Chicken", "Rice", "Peanuts"]
    stored_ids = {str(recipe.id) for recipe in stored.recipes}
    assert {recipe.id for recipe in outcome.result.recipes} == stored_ids

    peanut_bowl = next(r for r in outcome.result.recipes if r.title == "Peanut Rice Bowl")
    assert peanut_bowl.compatible is False
    assert peanut_bowl.incompatible_reasons == ["Contains peanut"]
    assert peanut_bowl.compatibility_score == 0.0

    notifications = db.exec(select(Notification).where(Notification.user_id == user.id)).all()
    assert [n.title for n in notifications] == ["Analysis completed"]
    assert notifications[0].link == f"/results?id={outcome.analysis_id}"


@pytest.mark.asyncio
async def test_pipeline_skips_persistence_when_history_disabled(db: Session):
    user = create_test_user(db, email=random_email(), password="supersecret")
    crud.update_user_preferences(
        session=db, db_user=user, preferences_in=UserPreferencesUpdate(save_history=False)
    )

    outcome = await run_analysis_pipeline(
        session=db, content=PNG_BYTES, content_type="image/png", user=user
    )

    assert outcome.persisted is False
    assert db.get(Analysis, uuid.UUID(outcome.analysis_id)) is None
    assert outcome.result.recipes[0].id == f"recipe_{outcome.analysis_id}_0"


@pytest.mark.asyncio
async def test_guest_results_are_visible_only_with_matching_cookie(db: Session):
    outcome = await run_analysis_pipeline(
        session=db, content=PNG_BYTES, content_type="image/png", user=None
    )
    owner = GuestModeData(analysis_ids=[outcome.analysis_id])
    stranger = GuestModeData()

    assert load_analysis_result(db, outcome.analysis_id, user=None, guest_data=owner)
    assert load_analysis_result(db, outcome.analysis_id, user=None, guest_data=stranger) is None

    recipe = find_generated_recipe(
        db, f"recipe_{outcome.analysis_id}_1", user=None, guest_data=owner
    )
    assert recipe is not None
    assert recipe.title == "Homemade Tomato Sauce"


@pytest.mark.asyncio
async def test_cached_results_use_current_preferences(db: Session):
    user = create_test_user(db, email=random_email(), password="supersecret")
    crud.update_user_preferences(
        session=db, db_user=user, preferences_in=UserPreferencesUpdate(save_history=False)
    )
    outcome = await run_analysis_pipeline(
        session=db, content=PNG_BYTES, content_type="image/png", user=user
    )
    assert all(recipe.compatible for recipe in outcome.result.recipes)

    crud.update_user_preferences(
        session=db,
        db_user=user,
        preferences_in=UserPreferencesUpdate(allergies=["olive oil"]),
    )
    result = load_analysis_result(db, outcome.analysis_id, user=user)

    assert result is not None
    assert not any(recipe.compatible for recipe in result.recipes)


@pytest.mark.asyncio
async def test_pipeline_serves_cached_result_when_storing_fails(db: Session):
    user = create_test_user(db, email=random_email(), password="supersecret")
    analysis_id = str(uuid.uuid4())
    existing = crud.create_analysis(
        session=db,
        owner_id=user.id,
        analysis_id=uuid.UUID(analysis_id),
        ingredients=["Milk"],
        recipes=[],
    )
    # a second row with the same primary key fails at the database
    db.expunge(existing)

    with patch("fridgy.agent.orchestrator.settings.LLM_API_KEY", "dummy_key"), patch(
        "fridgy.agent.orchestrator.FridgeAnalysisAgent", _agent_returning(MODEL_ANALYSIS)
    ):
        outcome = await run_analysis_pipeline(
            session=db,
            content=PNG_BYTES,
            content_type="image/png",
            user=user,
            analysis_id=analysis_id,
        )

    assert outcome.is_fallback is False
    assert outcome.persisted is False
    assert [recipe.id for recipe in outcome.result.recipes] == [
        f"recipe_{analysis_id}_0",
        f"recipe_{analysis_id}_1",
    ]

    stored = db.get(Analysis, uuid.UUID(analysis_id))
    assert stored.ingredients == ["Milk"]
    assert stored.recipes == []

    result = load_analysis_result(db, analysis_id, user=user)
    assert result is not None
    assert result.ingredients == ["Chicken", "Rice", "Peanuts"]
    assert [recipe.title for recipe in result.recipes] == [
        "Chicken Fried Rice",
        "Peanut Rice Bowl",
    ]

    notifications = db.exec(select(Notification).where(Notification.user_id == user.id)).all()
    assert [n.title for n in notifications] == ["Analysis completed"]
