"""The menu a fresh till starts with."""

from catalogue.menu.menu_item import MenuCategory, MenuItem


def _item(item_id: str, name: str, price: float, category: MenuCategory, description: str = "") -> MenuItem:
    return MenuItem(id=item_id, name=name, price=price, category=category, description=description)


DEFAULT_MENU: tuple[MenuItem, ...] = (
    # Desserts
    _item("d1", "Cinnamon roll", 250, MenuCategory.DESSERTS),
    _item("d2", "Honey comb", 40, MenuCategory.DESSERTS, "Per piece"),
    _item("d3", "Basbusa", 150, MenuCategory.DESSERTS),
    _item("d4", "Chocolate cake", 400, MenuCategory.DESSERTS, "Per piece"),
    _item("d7", "Brownies", 500, MenuCategory.DESSERTS),
    _item("d10", "Tiramisu", 500, MenuCategory.DESSERTS),
    # Breakfast
    _item("b1", "Kahawa", 50, MenuCategory.BREAKFAST, "Per cup"),
    _item("b2", "Full Breakfast Package", 1300, MenuCategory.BREAKFAST),
    _item("b3", "Beans", 400, MenuCategory.BREAKFAST, "Served with 2 pieces of bread"),
    _item("b4", "Pancakes (Pair)", 100, MenuCategory.BREAKFAST, "2 pieces"),
    _item("b6", "Chicken Sandwich", 300, MenuCategory.BREAKFAST),
    _item("b8", "Water", 50, MenuCategory.BREAKFAST),
    # Lunch
    _item("l1", "Shawarma", 400, MenuCategory.LUNCH, "Medium size"),
    _item("l2", "Shawarma", 800, MenuCategory.LUNCH, "Large size"),
    _item("l4", "Chicken Meal", 1000, MenuCategory.LUNCH, "Chicken + Rice + Vegetables"),
    _item("l5", "Lamb Meal", 1200, MenuCategory.LUNCH, "Lamb + Rice + Vegetables"),
    _item("l9", "Chicken Curry", 1100, MenuCategory.LUNCH, "Served with Naan or Rice"),
)
