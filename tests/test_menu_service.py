import pytest

from order_assistant.models.order_models import MenuItem
from order_assistant.services.menu_service import MenuService


def test_lookup_by_id(menu_service):
    assert menu_service.get_item_by_id(4).name == "Pescado Frito"
    assert menu_service.get_item_by_id(42) is None


def test_unavailable_items_are_hidden():
    menu = MenuService([
        MenuItem(id=1, name="Mangú", description="Puré de plátano", price=150, category="desayuno"),
        MenuItem(id=2, name="Sancocho", description="Sopa", price=300, category="sopas", available=False),
    ])
    assert [i.name for i in menu.get_available_items()] == ["Mangú"]
    assert menu.get_item_by_id(2) is None
    assert menu.get_item_by_id(2, available_only=False).name == "Sancocho"
    assert menu.get_menu_categories() == ["desayuno"]


def test_duplicate_ids_rejected():
    item = MenuItem(id=1, name="A", description="", price=10, category="x")
    with pytest.raises(ValueError):
        MenuService([item, item])


def test_non_positive_price_rejected():
    with pytest.raises(ValueError):
        MenuItem(id=1, name="Gratis", description="", price=0, category="x")


def test_name_and_category_substring_match(menu_service):
    assert [i.id for i in menu_service.find_items_by_name("GUISAD")] == [1, 3]
    assert menu_service.find_items_by_name("  ") == []
    assert [i.id for i in menu_service.get_items_by_category("Pollo")] == [1, 2]
    assert len(menu_service.get_items_by_category(None)) == 6


def test_suggestions_for_misspelled_name(menu_service):
    assert "Pollo Guisado" in menu_service.get_suggestions("polo gisado")
    assert menu_service.get_suggestions("zzzz") == []


def test_mentioned_items_fold_accents_and_skip_short_words(menu_service):
    assert [i.id for i in menu_service.find_mentioned_items("Quiero pollo")] == [1, 2]
    assert [i.id for i in menu_service.find_mentioned_items("un FLAN por favor")] == [6]
    assert menu_service.find_mentioned_items("res") == []
    assert menu_service.find_mentioned_items("") == []


def test_listing_formats_prices(menu_service):
    listing = menu_service.format_listing([menu_service.get_item_by_id(5)], with_id=True)
    assert "**Jugo de Chinola** - RD$80" in listing
    assert "ID: 5" in listing
    assert menu_service.get_prompt_listing().startswith("1. Pollo Guisado - RD$350")
