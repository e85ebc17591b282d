"""Models for the design session: states, selection snapshots and API payloads."""

from enum import Enum
from typing import Dict, FrozenSet, List, Literal, Optional
from pydantic import BaseModel, Field, field_validator

from forma.models.design import DesignSummary, InitialSuggestedItem, SuggestedItem


class SessionState(str, Enum):
    """Stages of the collect, select, output flow."""

    COLLECTING_INPUTS = "collecting_inputs"
    AWAITING_SUGGESTIONS = "awaiting_suggestions"
    SELECTING_ITEMS = "selecting_items"
    AWAITING_GENERATION = "awaiting_generation"
    SHOWING_OUTPUT = "showing_output"
    AWAITING_REDESIGN = "awaiting_redesign"


class SelectionSnapshot(BaseModel):
    """Immutable view of which items (and which option of each) the user picked.

    ``choices`` maps every suggested item name to its chosen option name, or
    None when the item has no options. ``excluded`` holds the names the user
    toggled off.
    """

    choices: Dict[str, Optional[str]] = Field(default_factory=dict)
    excluded: FrozenSet[str] = Field(default_factory=frozenset)

    model_config = {"frozen": True}

    @property
    def included(self) -> List[str]:
        return [name for name in self.choices if name not in self.excluded]

    def is_included(self, name: str) -> bool:
        return name in self.choices and name not in self.excluded


class SessionView(BaseModel):
    """What the presentation layer needs to render the current screen."""

    session_id: str = Field(alias="sessionId")
    state: SessionState
    busy: bool = False
    error: Optional[str] = None
    error_type: Optional[str] = Field(default=None, alias="errorType")
    existing_objects: str = Field(default="", alias="existingObjects")
    design_prompt: str = Field(default="", alias="designPrompt")
    design_vibe: str = Field(default="", alias="designVibe")
    room_dimensions: Optional[str] = Field(default=None, alias="roomDimensions")
    has_room_image: bool = Field(default=False, alias="hasRoomImage")
    suggestions: List[InitialSuggestedItem] = Field(default_factory=list)
    selection: Dict[str, Optional[str]] = Field(default_factory=dict)
    excluded_items: List[str] = Field(default_factory=list, alias="excludedItems")
    estimated_total: str = Field(default="N/A", alias="estimatedTotal")
    selected_items: List[SuggestedItem] = Field(
        default_factory=list, alias="selectedItems"
    )
    turn: int = 0
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    summary: Optional[DesignSummary] = None

    model_config = {"populate_by_name": True}


class OptionChoiceRequest(BaseModel):
    """Pick a style option for one suggested item."""

    item_name: str = Field(alias="itemName")
    option_name: str = Field(alias="optionName")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}


class ToggleItemRequest(BaseModel):
    """Include or exclude one suggested item."""

    item_name: str = Field(alias="itemName")

    model_config = {"populate_by_name": True, "str_strip_whitespace": True}


class BackRequest(BaseModel):
    """Navigate back to an earlier screen."""

    target: Literal["form", "selection"] = "form"


class RedesignRequest(BaseModel):
    """Free-text refinement for the current design."""

    prompt: str

    model_config = {"str_strip_whitespace": True}

    @field_validator("prompt")
    def prompt_must_not_be_blank(cls, value: str) -> str:
        """Ensure the refinement has meaningful text before processing."""
        if not value.strip():
            raise ValueError("Redesign prompt must not be empty.")
        return value
