"""Sample schema documents shared by the test modules.

``PROFILE_FORM`` exercises every field type; ``BASELINE_TEST`` is a
two-question scored test shaped like the locked baseline evaluation.
"""

PROFILE_FORM = {
    "version": 1,
    "sections": [
        {
            "title": "About you",
            "fields": [
                {"key": "name", "label": "Full name", "type": "text", "required": True},
                {"key": "age", "label": "Age", "type": "number", "required": True},
                {
                    "key": "diet",
                    "label": "Diet",
                    "type": "radio",
                    "required": True,
                    "options": [
                        {"value": "omni", "label": "Omnivore"},
                        {"value": "veg", "label": "Vegetarian"},
                    ],
                },
            ],
        },
        {
            "title": "Goals",
            "description": "Optional",
            "fields": [
                {
                    "key": "goals",
                    "label": "Goals",
                    "type": "checkbox",
                    "options": [
                        {"value": "lose", "label": "Lose weight"},
                        {"value": "energy", "label": "More energy"},
                    ],
                },
                {
                    "key": "notes",
                    "label": "Notes",
                    "type": "textarea",
                    "helpText": "Anything else we should know",
                },
            ],
        },
    ],
}

BASELINE_TEST = {
    "version": 1,
    "sections": [
        {
            "title": "Questions",
            "fields": [
                {
                    "key": "q1",
                    "label": "How many fruit portions do you eat a day?",
                    "type": "radio",
                    "required": True,
                    "options": [
                        {"value": "none", "label": "None", "score": 0},
                        {"value": "some", "label": "One or two", "score": 1},
                        {"value": "many", "label": "Three or more", "score": 2},
                    ],
                },
                {
                    "key": "q2",
                    "label": "How often do you drink sugary drinks?",
                    "type": "radio",
                    "required": True,
                    "options": [
                        {"value": "daily", "label": "Daily", "score": 0},
                        {"value": "rarely", "label": "Rarely", "score": 2},
                    ],
                },
                {
                    "key": "extras",
                    "label": "Which apply?",
                    "type": "checkbox",
                    "options": [
                        {"value": "a", "label": "Option A", "score": 5},
                        {"value": "b", "label": "Option B", "score": 5},
                    ],
                },
            ],
        }
    ],
    "scoring": {
        "enabled": True,
        "results": [
            {"min_score": 0, "max_score": 1, "result_title": "Low", "result_text": "Needs work"},
            {"min_score": 2, "max_score": 4, "result_title": "High", "result_text": "Well done"},
        ],
    },
}

VALID_PROFILE_ANSWERS = {"name": "Ana", "age": "34", "diet": "veg"}
