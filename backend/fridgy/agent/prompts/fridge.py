FRIDGE_SYSTEM_PROMPT = """
You are an expert nutritionist and chef who analyses photographs of food.
You calculate calories precisely from the identified ingredients and the typical quantities each recipe uses.
You always answer with valid JSON in the requested structure, with no text before or after the JSON.
"""

FRIDGE_USER_PROMPT = """
Analyse this image of a fridge and list every food item you can identify.
Then suggest {recipe_count} recipes that can be prepared with those ingredients.
{preferences_block}
For each recipe include:
1. A descriptive title
2. A short description
3. The ingredients needed, split into the ones already in the fridge ("available") and the ones that must be added ("additional")
4. Detailed preparation steps
5. A PRECISE total calorie estimate based on:
   - the typical quantity of each ingredient for the recipe
   - the real nutritional values of each ingredient
   - the cooking method used

Respond ONLY with a valid JSON object with exactly this structure:
{{
  "ingredients": ["ingredient1", "ingredient2"],
  "recipes": [
    {{
      "title": "Recipe title",
      "description": "Short description",
      "ingredients": {{
        "available": ["ingredient1"],
        "additional": ["ingredient3"]
      }},
      "steps": ["step 1", "step 2"],
      "calories": 350
    }}
  ]
}}
"""


def format_preferences_block(dietary_preferences: list[str], allergies: list[str]) -> str:
    if not dietary_preferences and not allergies:
        return ""
    lines = ["Take the following user preferences into account:"]
    if dietary_preferences:
        lines.append(f"Dietary preferences: {', '.join(dietary_preferences)}.")
    if allergies:
        lines.append(f"Allergies (never use these): {', '.join(allergies)}.")
    return "\n".join(lines) + "\n"


RECIPE_IMAGE_PROMPT = (
    "A professional photograph of {recipe_title}, food photography style, "
    "nicely plated dish, no text."
)
