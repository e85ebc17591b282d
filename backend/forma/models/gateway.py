"""Request and response envelopes exchanged with the Model Gateway."""

from typing import List, Literal, Optional
from google.genai import types
from pydantic import BaseModel, Field, model_validator

from forma.models.design import ImageItem


class ContentPart(BaseModel):
    """One ordered content part: either an inline image or a text segment."""

    inline_image: Optional[ImageItem] = Field(default=None, alias="inlineImage")
    text: Optional[str] = None

    model_config = {"populate_by_name": True}

    @model_validator(mode="after")
    def exactly_one_payload(self) -> "ContentPart":
        """A part carries an image or text, never both and never neither."""
        if (self.inline_image is None) == (self.text is None):
            raise ValueError("A content part needs exactly one of inline_image or text.")
        return self


class ModelRequest(BaseModel):
    """Everything the gateway needs for one outbound call."""

    model: str
    parts: List[ContentPart]
    response_format: Literal["json", "image"] = Field(alias="responseFormat")
    response_schema: Optional[types.Schema] = Field(default=None, alias="responseSchema")
    max_output_tokens: Optional[int] = Field(default=None, alias="maxOutputTokens")
    thinking_budget: Optional[int] = Field(default=None, alias="thinkingBudget")
    temperature: float = 0.7

    model_config = {"populate_by_name": True, "arbitrary_types_allowed": True}

    @model_validator(mode="after")
    def json_needs_schema(self) -> "ModelRequest":
        """Schema-constrained requests must declare the schema they expect."""
        if self.response_format == "json" and self.response_schema is None:
            raise ValueError("JSON requests must declare a response schema.")
        return self

    @classmethod
    def build(
        cls,
        model: str,
        prompt: str,
        response_format: Literal["json", "image"],
        image: Optional[ImageItem] = None,
        **kwargs,
    ) -> "ModelRequest":
        """Assemble parts in the order the model expects: image first, then text."""
        parts = []
        if image is not None:
            parts.append(ContentPart(inline_image=image))
        parts.append(ContentPart(text=prompt))
        return cls(model=model, parts=parts, response_format=response_format, **kwargs)

    @property
    def prompt(self) -> str:
        """Concatenated text of the request, mostly for logging and tests."""
        return "\n".join(p.text for p in self.parts if p.text is not None)

    @property
    def has_image(self) -> bool:
        return any(p.inline_image is not None for p in self.parts)


class ModelResponse(BaseModel):
    """Raw output of a gateway call, before validation."""

    text: Optional[str] = None
    images: List[ImageItem] = Field(default_factory=list)
