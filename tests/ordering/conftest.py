import pytest
from protean.integrations.pytest import DomainFixture

from catalogue.menu.menu_item import MenuItem
from ordering.cart.cart import Cart


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield


@pytest.fixture()
def menu_items():
    return {
        "d1": MenuItem(id="d1", name="Cinnamon roll", price=250, category="desserts"),
        "b1": MenuItem(id="b1", name="Kahawa", price=50, category="breakfast"),
        "l1": MenuItem(id="l1", name="Shawarma", price=400, category="lunch"),
    }


@pytest.fixture()
def cart():
    return Cart.create()
