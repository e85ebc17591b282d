"""Pure transitions over the item selection snapshot."""

from typing import List, Sequence

from forma.handlers.error_handler import InputValidationError
from forma.models.design import InitialSuggestedItem, SuggestedItem
from forma.models.session import SelectionSnapshot


def initial_selection(items: Sequence[InitialSuggestedItem]) -> SelectionSnapshot:
    """Every item included, each with its first option (None when it has none)."""
    return SelectionSnapshot(
        choices={item.name: (item.options[0].option_name if item.options else None) for item in items}
    )


def _find_item(items: Sequence[InitialSuggestedItem], name: str) -> InitialSuggestedItem:
    item = next((i for i in items if i.name == name), None)
    if item is None:
        raise InputValidationError(f"Unknown item '{name}'.", field="itemName")
    return item


def choose_option(
    snapshot: SelectionSnapshot,
    items: Sequence[InitialSuggestedItem],
    item_name: str,
    option_name: str,
) -> SelectionSnapshot:
    """Return a snapshot with ``option_name`` chosen for ``item_name``.

    Choosing an option for an excluded item includes it again.
    """
    item = _find_item(items, item_name)
    if item.find_option(option_name) is None:
        raise InputValidationError(
            f"Item '{item_name}' has no option '{option_name}'.", field="optionName"
        )
    return SelectionSnapshot(
        choices={**snapshot.choices, item_name: option_name},
        excluded=snapshot.excluded - {item_name},
    )


def toggle_item(
    snapshot: SelectionSnapshot,
    items: Sequence[InitialSuggestedItem],
    item_name: str,
) -> SelectionSnapshot:
    """Return a snapshot with ``item_name`` flipped between included and excluded."""
    _find_item(items, item_name)
    if item_name in snapshot.excluded:
        excluded = snapshot.excluded - {item_name}
    else:
        excluded = snapshot.excluded | {item_name}
    return SelectionSnapshot(choices=dict(snapshot.choices), excluded=frozenset(excluded))


def resolve_selected_items(
    snapshot: SelectionSnapshot, items: Sequence[InitialSuggestedItem]
) -> List[SuggestedItem]:
    """
    Flatten the included items for the generation prompt.

    The chosen option's description replaces the base description; items
    without options (or without a valid choice) keep their base description.
    Price range and search query always come from the base item.
    """
    selected = []
    for item in items:
        if not snapshot.is_included(item.name):
            continue
        option = item.find_option(snapshot.choices.get(item.name) or "")
        selected.append(
            SuggestedItem(
                name=item.name,
                description=option.description if option else item.description,
                estimated_price_range=item.estimated_price_range,
                search_query=item.search_query,
            )
        )
    return selected
