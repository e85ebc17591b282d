"""Mock suggestions and design summary for running without a Gemini key."""

from typing import Any, Dict, List


class Mock:
    """Provide canned model output for mock design flows."""

    def __init__(self):
        self.PANORAMA_SIZE = (1024, 576)
        self.PANORAMA_COLORS = ((233, 214, 186), (120, 98, 74))

        self.MOCK_SUGGESTIONS: List[Dict[str, Any]] = [
            {
                "name": "Armchair",
                "description": "A deep, comfortable reading chair placed by the window.",
                "estimatedPriceRange": "$300 - $650",
                "searchQuery": "reading armchair",
                "options": [
                    {
                        "optionName": "Tan Leather",
                        "description": "Tan leather armchair with walnut legs and a low back.",
                    },
                    {
                        "optionName": "Boucle Cream",
                        "description": "Rounded cream boucle armchair with a soft, nubby texture.",
                    },
                ],
            },
            {
                "name": "Floor Lamp",
                "description": "A tall lamp to light the reading corner in the evening.",
                "estimatedPriceRange": "$80 - $180",
                "searchQuery": "arc floor lamp",
                "options": [
                    {
                        "optionName": "Brass Arc",
                        "description": "Brushed brass arc lamp with a linen drum shade.",
                    },
                    {
                        "optionName": "Black Tripod",
                        "description": "Matte black tripod lamp with a warm fabric shade.",
                    },
                    {
                        "optionName": "Paper Lantern",
                        "description": "Slim floor lamp with a rice paper lantern shade.",
                    },
                ],
            },
            {
                "name": "Area Rug",
                "description": "A textured rug that anchors the seating area.",
                "estimatedPriceRange": "$150 - $400",
                "searchQuery": "wool area rug 5x8",
                "options": [
                    {
                        "optionName": "Jute Natural",
                        "description": "Hand-woven natural jute rug with a chunky weave.",
                    },
                    {
                        "optionName": "Vintage Red",
                        "description": "Faded red vintage-style wool rug with a medallion pattern.",
                    },
                ],
            },
        ]

        self.MOCK_SUMMARY: Dict[str, Any] = {
            "summary": (
                "A warm reading nook built around a leather armchair and a brass arc "
                "lamp, grounded by a natural jute rug that softens the existing desk area."
            ),
            "suggestedItems": [
                {
                    "name": "Armchair",
                    "description": "Tan leather armchair with walnut legs and a low back.",
                    "estimatedPriceRange": "$300 - $650",
                    "searchQuery": "tan leather reading armchair",
                },
                {
                    "name": "Floor Lamp",
                    "description": "Brushed brass arc lamp with a linen drum shade.",
                    "estimatedPriceRange": "$80 - $180",
                    "searchQuery": "brass arc floor lamp",
                },
            ],
        }
