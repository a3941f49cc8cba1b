"""Menu catalogue: the explicit home of the till's menu.

Carts and the HTTP layer receive a catalogue instead of reading shared
global state. Anything that renders the menu subscribes and is called with
the full item list after every change.
"""

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable

import structlog
from protean.exceptions import ObjectNotFoundError

from catalogue.menu.defaults import DEFAULT_MENU
from catalogue.menu.menu_item import MenuCategory, MenuItem

logger = structlog.get_logger(__name__)

MenuListener = Callable[[list[MenuItem]], None]


class MenuCatalogue(ABC):
    @abstractmethod
    def list_items(self, category: MenuCategory | str | None = None) -> list[MenuItem]: ...

    @abstractmethod
    def get(self, item_id: str) -> MenuItem:
        """Raises ObjectNotFoundError for unknown ids."""
        ...

    @abstractmethod
    def save(self, item: MenuItem) -> None: ...

    @abstractmethod
    def remove(self, item_id: str) -> None: ...

    @abstractmethod
    def subscribe(self, listener: MenuListener) -> Callable[[], None]:
        """Register ``listener``; returns a callable that unregisters it."""
        ...


class InMemoryMenuCatalogue(MenuCatalogue):
    def __init__(self, items: Iterable[MenuItem] = DEFAULT_MENU) -> None:
        self._items: dict[str, MenuItem] = {item.id: item for item in items}
        self._listeners: list[MenuListener] = []

    def list_items(self, category: MenuCategory | str | None = None) -> list[MenuItem]:
        if category is None:
            return list(self._items.values())
        wanted = category.value if isinstance(category, MenuCategory) else category
        return [item for item in self._items.values() if item.category == wanted]

    def get(self, item_id: str) -> MenuItem:
        try:
            return self._items[item_id]
        except KeyError:
            raise ObjectNotFoundError({"item_id": [f"Menu item {item_id} not found"]}) from None

    def save(self, item: MenuItem) -> None:
        self._items[item.id] = item
        logger.info("Menu item saved", item_id=item.id, price=item.price)
        self._publish()

    def remove(self, item_id: str) -> None:
        if self._items.pop(item_id, None) is None:
            raise ObjectNotFoundError({"item_id": [f"Menu item {item_id} not found"]})
        logger.info("Menu item removed", item_id=item_id)
        self._publish()

    def subscribe(self, listener: MenuListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _publish(self) -> None:
        items = self.list_items()
        for listener in list(self._listeners):
            listener(items)


_current_catalogue: MenuCatalogue | None = None


def get_catalogue() -> MenuCatalogue:
    """Return the current catalogue. Defaults to the seeded in-memory menu."""
    global _current_catalogue
    if _current_catalogue is None:
        _current_catalogue = InMemoryMenuCatalogue()
    return _current_catalogue


def set_catalogue(catalogue: MenuCatalogue) -> None:
    global _current_catalogue
    _current_catalogue = catalogue


def reset_catalogue() -> None:
    global _current_catalogue
    _current_catalogue = None
