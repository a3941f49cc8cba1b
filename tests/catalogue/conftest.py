import pytest

from catalogue.menu.repository import InMemoryMenuCatalogue, set_catalogue


@pytest.fixture()
def catalogue():
    menu = InMemoryMenuCatalogue()
    set_catalogue(menu)
    return menu
