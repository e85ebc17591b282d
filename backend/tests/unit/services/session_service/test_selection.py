"""Tests for pure selection snapshot transitions."""

import pytest

from forma.handlers.error_handler import InputValidationError
from forma.models.design import InitialSuggestedItem, ItemOption
from forma.services.session_service import selection as sel


@pytest.fixture
def items():
    return [
        InitialSuggestedItem(
            name="Armchair",
            description="A reading chair.",
            estimated_price_range="$300",
            search_query="armchair",
            options=[
                ItemOption(option_name="Tan Leather", description="Tan leather armchair."),
                ItemOption(option_name="Boucle", description="Cream boucle armchair."),
            ],
        ),
        InitialSuggestedItem(name="Plant", description="A tall fiddle leaf fig.", options=[]),
    ]


def test_initial_selection_picks_first_option(items):
    snapshot = sel.initial_selection(items)

    assert snapshot.choices == {"Armchair": "Tan Leather", "Plant": None}
    assert snapshot.included == ["Armchair", "Plant"]


def test_choose_option_returns_new_snapshot(items):
    before = sel.initial_selection(items)
    after = sel.choose_option(before, items, "Armchair", "Boucle")

    assert after.choices["Armchair"] == "Boucle"
    assert before.choices["Armchair"] == "Tan Leather"


def test_choose_option_reincludes_excluded_item(items):
    snapshot = sel.toggle_item(sel.initial_selection(items), items, "Armchair")
    snapshot = sel.choose_option(snapshot, items, "Armchair", "Boucle")

    assert snapshot.is_included("Armchair")


@pytest.mark.parametrize("item, option", [("Sofa", "Tan Leather"), ("Armchair", "Velvet")])
def test_choose_unknown_names_fail(items, item, option):
    with pytest.raises(InputValidationError):
        sel.choose_option(sel.initial_selection(items), items, item, option)


def test_toggle_flips_membership(items):
    first = sel.initial_selection(items)
    off = sel.toggle_item(first, items, "Plant")
    on = sel.toggle_item(off, items, "Plant")

    assert not off.is_included("Plant")
    assert on.is_included("Plant")
    assert first.is_included("Plant")


def test_toggle_unknown_item_fails(items):
    with pytest.raises(InputValidationError):
        sel.toggle_item(sel.initial_selection(items), items, "Sofa")


def test_resolve_uses_option_description_with_base_fallback(items):
    selected = sel.resolve_selected_items(sel.initial_selection(items), items)

    assert [(i.name, i.description) for i in selected] == [
        ("Armchair", "Tan leather armchair."),
        ("Plant", "A tall fiddle leaf fig."),
    ]
    assert selected[0].estimated_price_range == "$300"
    assert selected[0].search_query == "armchair"


def test_resolve_skips_excluded_items(items):
    snapshot = sel.toggle_item(sel.initial_selection(items), items, "Armchair")

    assert [i.name for i in sel.resolve_selected_items(snapshot, items)] == ["Plant"]
