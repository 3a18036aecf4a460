import re
import uuid

_GENERATED_RECIPE_ID = re.compile(r"^recipe_(?P<analysis_id>.+)_(?P<index>\d+)$")
_INVALID_IDS = {"undefined", "null"}


def is_valid_recipe_id(recipe_id: object) -> bool:
    return isinstance(recipe_id, str) and len(recipe_id) > 0 and recipe_id not in _INVALID_IDS


def generate_recipe_id(analysis_id: str, index: int) -> str:
    return f"recipe_{analysis_id}_{index}"


def parse_generated_recipe_id(recipe_id: str) -> tuple[str, int] | None:
    """Split ``recipe_<analysis_id>_<index>`` into its parts."""
    match = _GENERATED_RECIPE_ID.match(recipe_id or "")
    if not match:
        return None
    return match.group("analysis_id"), int(match.group("index"))


def as_uuid(value: str) -> uuid.UUID | None:
    try:
        return uuid.UUID(value)
    except (ValueError, TypeError, AttributeError):
        return None
