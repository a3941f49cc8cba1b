"""MenuItem: something the till can sell."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class MenuCategory(Enum):
    BREAKFAST = "breakfast"
    LUNCH = "lunch"
    DESSERTS = "desserts"


class MenuItem(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True)

    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    price: float = Field(ge=0)
    category: MenuCategory
    description: str = ""
