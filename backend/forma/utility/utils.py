"""Shared helper utilities for template handling and image serialization."""

import io
import base64
from typing import Any, Dict

import yaml
from PIL import Image

from forma.models.design import ImageItem
from forma.utility.path_finder import Finder


class SafeDict(dict):
    def __missing__(self, key):
        """Return an empty string for missing keys to keep template formatting safe."""
        return ""


class Helper:
    """Provide reusable utilities for prompts, model output and image encoding.

    Handles loading YAML templates, cleaning template values, and converting
    PIL images to API-friendly structures.
    """

    TEMPLATE_MAP = {
        "suggestion": "SUGGESTION_PROMPT_TEMPLATE",
        "generation": "GENERATION_PROMPT_TEMPLATE",
        "redesign": "REDESIGN_INSTRUCTIONS_TEMPLATE",
        "summary": "SUMMARY_PROMPT_TEMPLATE",
    }

    def __init__(self):
        """Initialize the helper with access to configured paths."""
        self.path = Finder()
        self._templates: Dict[str, str] | None = None

    def load_template(self, template: str, filename: str = "templates.yml") -> str:
        """Load a prompt template from disk based on the requested type."""
        template_key = self.TEMPLATE_MAP.get(template)
        if not template_key:
            raise ValueError(f"Unknown template type: {template}")

        if self._templates is None:
            full_path = self.path.get_directory("config") / filename
            with open(full_path, "r", encoding="utf-8") as f:
                self._templates = yaml.safe_load(f) or {}

        if template_key not in self._templates:
            raise KeyError(f"Template '{template_key}' missing in {filename}")

        return self._templates[template_key]

    def render(self, template: str, values: Dict[str, Any]) -> str:
        """Fill a named template; unknown placeholders render as empty strings."""
        text = self.load_template(template)
        return text.format_map(SafeDict(self.safe_clean(values)))

    @staticmethod
    def safe_clean(values: Dict[str, Any]) -> Dict[str, str]:
        """Normalize values into strings while handling None and iterables."""
        out = {}
        for k, v in values.items():
            if v is None:
                out[k] = ""
            elif isinstance(v, (list, tuple, set)):
                out[k] = ", ".join(map(str, v))
            else:
                out[k] = str(v)
        return out

    @staticmethod
    def strip_code_fences(raw: str) -> str:
        """Remove a surrounding ```json ... ``` fence some models add to JSON output."""
        text = (raw or "").strip()
        if text.startswith("```"):
            text = text[3:]
            if text.lower().startswith("json"):
                text = text[4:]
            if text.rstrip().endswith("```"):
                text = text.rstrip()[:-3]
        return text.strip()

    @staticmethod
    def from_pil(img: Image.Image, fmt: str = "PNG") -> ImageItem:
        """Serialize a PIL image into base64-encoded ImageItem."""
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return ImageItem(
            mime_type=f"image/{fmt.lower()}",
            data_b64=base64.b64encode(buf.getvalue()).decode("utf-8"),
        )
