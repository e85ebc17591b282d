"""Unit tests for utility helpers used across services."""

import base64

import pytest
from PIL import Image

from forma.utility.utils import Helper, SafeDict


def test_safe_clean_normalizes_values():
    cleaned = Helper.safe_clean({"a": None, "b": ["x", "y"], "c": 3})

    assert cleaned == {"a": "", "b": "x, y", "c": "3"}


def test_safe_dict_fills_missing_keys():
    assert "{known}-{unknown}".format_map(SafeDict(known="k")) == "k-"


def test_load_template_rejects_unknown_type():
    with pytest.raises(ValueError):
        Helper().load_template("nonexistent")


def test_every_template_is_present():
    helper = Helper()
    for name in Helper.TEMPLATE_MAP:
        assert helper.load_template(name).strip()


def test_render_fills_placeholders():
    text = Helper().render("redesign", {"refinement": "make it brighter"})

    assert "make it brighter" in text
    assert "{refinement}" not in text


@pytest.mark.parametrize(
    "raw, expected",
    [
        ('```json\n[{"a": 1}]\n```', '[{"a": 1}]'),
        ('```\n{"a": 1}\n```', '{"a": 1}'),
        ('  [1, 2]  ', "[1, 2]"),
        ("", ""),
    ],
)
def test_strip_code_fences(raw, expected):
    assert Helper.strip_code_fences(raw) == expected


def test_from_pil_produces_png_item():
    item = Helper.from_pil(Image.new("RGB", (4, 4), (10, 20, 30)))

    assert item.mime_type == "image/png"
    assert base64.b64decode(item.data_b64).startswith(b"\x89PNG")
    assert item.data_url.startswith("data:image/png;base64,")
