"""FastAPI endpoints for the Catalogue domain (read-only menu)."""

from fastapi import APIRouter

from catalogue.api.schemas import MenuItemSchema, MenuResponse
from catalogue.menu.menu_item import MenuCategory
from catalogue.menu.repository import get_catalogue

menu_router = APIRouter(prefix="/menu", tags=["menu"])


@menu_router.get("", response_model=MenuResponse)
async def list_menu(category: MenuCategory | None = None) -> MenuResponse:
    items = get_catalogue().list_items(category)
    return MenuResponse(items=[MenuItemSchema.model_validate(item.model_dump()) for item in items])


@menu_router.get("/{item_id}", response_model=MenuItemSchema)
async def get_menu_item(item_id: str) -> MenuItemSchema:
    return MenuItemSchema.model_validate(get_catalogue().get(item_id).model_dump())
