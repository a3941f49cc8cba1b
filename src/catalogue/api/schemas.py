"""Pydantic response schemas for the Catalogue API."""

from pydantic import BaseModel


class MenuItemSchema(BaseModel):
    id: str
    name: str
    price: float
    category: str
    description: str = ""


class MenuResponse(BaseModel):
    items: list[MenuItemSchema]
