"""Pydantic models for design inputs, suggested items and generated images."""

from decimal import ROUND_HALF_UP, Decimal
from typing import List, Optional
from pydantic import BaseModel, Field


class ImageItem(BaseModel):
    """Image blob encoded as base64 with MIME metadata."""

    mime_type: str = "image/png"
    data_b64: str = ""

    @property
    def data_url(self) -> str:
        """Data URL suitable for an <img> tag or a panorama viewer."""
        return f"data:{self.mime_type};base64,{self.data_b64}"


class RoomImage(BaseModel):
    """Raw room photo as uploaded by the user."""

    data: bytes
    mime_type: str
    filename: Optional[str] = None

    model_config = {"frozen": True}


class FormInputs(BaseModel):
    """The user's design request as submitted on the form."""

    room_image: Optional[RoomImage] = Field(default=None, alias="roomImage")
    existing_objects: str = Field(default="", alias="existingObjects")
    design_prompt: str = Field(default="", alias="designPrompt")
    design_vibe: str = Field(default="", alias="designVibe")
    room_dimensions: Optional[str] = Field(default=None, alias="roomDimensions")

    model_config = {
        "frozen": True,
        "populate_by_name": True,
        "str_strip_whitespace": True,
    }

    def has_content(self) -> bool:
        """True when the photo or one of the descriptive fields is filled in.

        Room dimensions alone are not enough to design anything.
        """
        return bool(
            self.room_image
            or self.existing_objects
            or self.design_prompt
            or self.design_vibe
        )

    def with_design_prompt(self, design_prompt: str) -> "FormInputs":
        """Return a copy carrying different design goals."""
        return self.model_copy(update={"design_prompt": design_prompt})


class ItemOption(BaseModel):
    """A named style variant of a suggested item."""

    option_name: str = Field(alias="optionName", min_length=1)
    description: str

    model_config = {"populate_by_name": True}


class SuggestedItem(BaseModel):
    """A furnishing item proposed by the model."""

    name: str = Field(min_length=1)
    description: str
    estimated_price_range: Optional[str] = Field(
        default=None, alias="estimatedPriceRange"
    )
    search_query: Optional[str] = Field(default=None, alias="searchQuery")

    model_config = {"populate_by_name": True}


class InitialSuggestedItem(SuggestedItem):
    """Suggested item as returned by the suggestion stage, with style options."""

    options: List[ItemOption] = Field(default_factory=list)

    def find_option(self, option_name: str) -> Optional[ItemOption]:
        """Look up an option by its name."""
        return next((o for o in self.options if o.option_name == option_name), None)


class DesignedItem(SuggestedItem):
    """Item listed by a design turn; price and search query are mandatory here."""

    estimated_price_range: str = Field(alias="estimatedPriceRange")
    search_query: str = Field(alias="searchQuery")


class DesignSummary(BaseModel):
    """Summary of a finished design turn plus its shopping list."""

    summary: str = Field(min_length=1)
    suggested_items: List[DesignedItem] = Field(
        default_factory=list, alias="suggestedItems"
    )

    model_config = {"populate_by_name": True}


class GeneratedImage(BaseModel):
    """The single current image of a design turn."""

    image: ImageItem
    alt_text: str = "Generated room design"

    @property
    def mime_type(self) -> str:
        return self.image.mime_type

    @property
    def data_url(self) -> str:
        return self.image.data_url


class DesignTurn(BaseModel):
    """Inputs, selected items and the image produced by one generation or redesign."""

    turn: int = 1
    inputs: FormInputs
    selected_items: List[SuggestedItem] = Field(
        default_factory=list, alias="selectedItems"
    )
    image: GeneratedImage
    summary: Optional[DesignSummary] = None

    model_config = {"populate_by_name": True}


class PriceRange(BaseModel):
    """Numeric bounds parsed from a loose price string; bounds keep source order."""

    minimum: float
    maximum: float


class PriceTotal(BaseModel):
    """Running total over a list of price strings."""

    minimum: float = 0.0
    maximum: float = 0.0
    counted: int = 0
    skipped: int = 0

    @property
    def display(self) -> str:
        """Human readable total in whole dollars, 'N/A' when nothing contributed."""
        if self.minimum == 0 and self.maximum == 0:
            return "N/A"
        return f"${_whole_dollars(self.minimum)} - ${_whole_dollars(self.maximum)}"


def _whole_dollars(amount: float) -> str:
    # halves round away from zero; format(x, ".0f") would round them to even
    return str(Decimal(amount).quantize(Decimal("1"), rounding=ROUND_HALF_UP))
