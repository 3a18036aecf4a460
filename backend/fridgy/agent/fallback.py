from fridgy.agent.artifacts import FridgeAnalysis

# Example analysis returned when the language model is not configured or fails.
FALLBACK_ANALYSIS = {
    "ingredients": ["Tomatoes", "Onion", "Bell pepper", "Garlic", "Eggs", "Cheese", "Milk", "Butter"],
    "recipes": [
        {
            "title": "Vegetable Omelette",
            "description": "A tasty omelette made with the vegetables in your fridge",
            "ingredients": {
                "available": ["Eggs", "Onion", "Bell pepper", "Cheese"],
                "additional": ["Salt", "Pepper", "Olive oil"],
            },
            "steps": [
                "Chop the onion and the bell pepper into small pieces.",
                "Beat the eggs in a bowl and season with salt and pepper.",
                "Heat oil in a pan and cook the onion and pepper until tender.",
                "Add the beaten eggs and cook over medium-low heat.",
                "When it is almost set, sprinkle the grated cheese on top.",
                "Fold the omelette in half and serve hot.",
            ],
            "calories": 320,
        },
        {
            "title": "Homemade Tomato Sauce",
            "description": "A versatile sauce for pasta, pizza or as a side",
            "ingredients": {
                "available": ["Tomatoes", "Onion", "Garlic"],
                "additional": ["Olive oil", "Salt", "Pepper", "Basil"],
            },
            "steps": [
                "Finely chop the onion and the garlic.",
                "Heat oil in a pan and cook the onion and garlic until translucent.",
                "Add the diced tomatoes and simmer over medium heat for 15-20 minutes.",
                "Season with salt and pepper to taste.",
                "Add chopped fresh basil at the end if you like.",
            ],
            "calories": 180,
        },
        {
            "title": "Grilled Cheese with Tomato",
            "description": "A quick and tasty starter",
            "ingredients": {
                "available": ["Cheese", "Tomatoes"],
                "additional": ["Bread", "Oregano", "Olive oil"],
            },
            "steps": [
                "Cut the cheese into slices about 1 cm thick.",
                "Heat a non-stick pan over medium-high heat.",
                "Cook the cheese slices until golden on both sides.",
                "Serve the hot cheese with fresh tomato slices.",
                "Drizzle with a little olive oil and sprinkle oregano on top.",
                "Serve with toasted bread if you like.",
            ],
            "calories": 280,
        },
    ],
}


def fallback_analysis() -> FridgeAnalysis:
    return FridgeAnalysis.model_validate(FALLBACK_ANALYSIS)
