"""Build natural-language instructions for suggestion, generation and summary requests."""

from typing import Iterable, List, Optional, Sequence

from forma.config.settings import Settings, get_settings
from forma.models.design import FormInputs, SuggestedItem
from forma.utility.utils import Helper
from forma.utility.logger import AppLogger

logger = AppLogger.get_logger(__name__)

# Explicit filler keeps prompt segments from being blank or ambiguous
NO_EXISTING_OBJECTS = "None specified."
NO_DESIGN_GOALS = "No specific goals."
NO_DESIGN_VIBE = "Unspecified."
NO_ROOM_DIMENSIONS = "Not provided."
NO_SELECTED_ITEMS = "No new items selected."

GOALS_SEPARATOR = ". "


class PromptBuilder:
    """Assemble prompt text from form inputs and selected items.

    Pure string templating: identical inputs always produce identical text.
    Templates live in config/templates.yml.
    """

    def __init__(self, settings: Optional[Settings] = None, helper: Optional[Helper] = None):
        self.settings = settings or get_settings()
        self.helper = helper or Helper()

    def _base_values(self, inputs: FormInputs) -> dict:
        """Form fields with filler text substituted for empty values."""
        return {
            "existing_objects": inputs.existing_objects or NO_EXISTING_OBJECTS,
            "design_goals": inputs.design_prompt or NO_DESIGN_GOALS,
            "design_vibe": inputs.design_vibe or NO_DESIGN_VIBE,
            "room_dimensions": inputs.room_dimensions or NO_ROOM_DIMENSIONS,
        }

    @staticmethod
    def format_items(items: Sequence[SuggestedItem]) -> str:
        """Render items as a bullet list the model can follow."""
        lines = [f"- {item.name}: {item.description}" for item in items]
        return "\n".join(lines) if lines else NO_SELECTED_ITEMS

    def build_suggestion_prompt(self, inputs: FormInputs) -> str:
        """Prompt asking for 3-5 new items, each with 2-3 style options."""
        return self.helper.render("suggestion", self._base_values(inputs))

    def build_generation_prompt(
        self,
        inputs: FormInputs,
        selected_items: Sequence[SuggestedItem] = (),
        refinement: Optional[str] = None,
    ) -> str:
        """
        Prompt asking for a single wide-angle room image.

        ``refinement`` marks a redesign turn: the latest change request is
        restated and the model is told to keep the selected items.
        """
        values = self._base_values(inputs)
        values["selected_items"] = self.format_items(selected_items)
        values["redesign_instructions"] = ""
        if refinement:
            values["redesign_instructions"] = self.helper.render(
                "redesign", {"refinement": refinement}
            )
        return self.helper.render("generation", values)

    def build_summary_prompt(
        self, inputs: FormInputs, selected_items: Sequence[SuggestedItem] = ()
    ) -> str:
        """Prompt asking for a design summary and the matching shopping list."""
        values = self._base_values(inputs)
        values["selected_items"] = self.format_items(selected_items)
        return self.helper.render("summary", values)

    def compose_design_goals(self, goals: str, refinements: Iterable[str]) -> str:
        """
        Append refinement requests to the original design goals.

        "cozy reading nook" + ["make it brighter"] gives
        "cozy reading nook. make it brighter". When the result exceeds
        ``max_design_goals_chars`` the oldest refinements are dropped first;
        the original goals and the latest refinement are always kept.
        """
        base = self._clean_segment(goals)
        steps: List[str] = [s for s in (self._clean_segment(r) for r in refinements) if s]
        text = self._join([base] + steps)

        limit = self.settings.max_design_goals_chars
        dropped = 0
        while len(text) > limit and len(steps) > 1:
            steps.pop(0)
            dropped += 1
            text = self._join([base] + steps)
        if dropped:
            logger.warning(
                f"Design goals exceeded {limit} characters, dropped {dropped} oldest refinement(s)"
            )
        return text

    @staticmethod
    def _clean_segment(text: Optional[str]) -> str:
        """Trim whitespace and a trailing period so joins never produce '..'."""
        return (text or "").strip().rstrip(".").strip()

    @staticmethod
    def _join(segments: List[str]) -> str:
        return GOALS_SEPARATOR.join(s for s in segments if s)
