"""Structured-output schemas declared to Gemini for JSON requests."""

from google.genai import types

ITEM_OPTION_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "optionName": types.Schema(type=types.Type.STRING),
        "description": types.Schema(type=types.Type.STRING),
    },
    required=["optionName", "description"],
    property_ordering=["optionName", "description"],
)

SUGGESTION_SCHEMA = types.Schema(
    type=types.Type.ARRAY,
    items=types.Schema(
        type=types.Type.OBJECT,
        properties={
            "name": types.Schema(type=types.Type.STRING),
            "description": types.Schema(type=types.Type.STRING),
            "estimatedPriceRange": types.Schema(type=types.Type.STRING),
            "searchQuery": types.Schema(type=types.Type.STRING),
            "options": types.Schema(type=types.Type.ARRAY, items=ITEM_OPTION_SCHEMA),
        },
        required=["name", "description", "estimatedPriceRange", "searchQuery", "options"],
        property_ordering=[
            "name",
            "description",
            "estimatedPriceRange",
            "searchQuery",
            "options",
        ],
    ),
)

DESIGN_TURN_SCHEMA = types.Schema(
    type=types.Type.OBJECT,
    properties={
        "summary": types.Schema(type=types.Type.STRING),
        "suggestedItems": types.Schema(
            type=types.Type.ARRAY,
            items=types.Schema(
                type=types.Type.OBJECT,
                properties={
                    "name": types.Schema(type=types.Type.STRING),
                    "description": types.Schema(type=types.Type.STRING),
                    "estimatedPriceRange": types.Schema(type=types.Type.STRING),
                    "searchQuery": types.Schema(type=types.Type.STRING),
                },
                required=["name", "description", "estimatedPriceRange", "searchQuery"],
                property_ordering=[
                    "name",
                    "description",
                    "estimatedPriceRange",
                    "searchQuery",
                ],
            ),
        ),
    },
    required=["summary", "suggestedItems"],
    property_ordering=["summary", "suggestedItems"],
)
