"""Menu API schemas."""

from pydantic import BaseModel, ConfigDict, Field


class AddonCreate(BaseModel):
    restaurant_id: int
    name: str = Field(min_length=1)
    price_cents: int = Field(ge=0)
    menu_item_ids: list[int] = Field(default_factory=list)


class AddonRead(BaseModel):
    id: int
    name: str
    price_cents: int
    is_active: bool

    model_config = ConfigDict(from_attributes=True)


class MenuItemCreate(BaseModel):
    restaurant_id: int
    name: str = Field(min_length=1)
    description: str | None = None
    category: str | None = None
    price_cents: int = Field(ge=0)
    is_active: bool = True


class MenuItemRead(BaseModel):
    id: int
    restaurant_id: int
    name: str
    description: str | None
    category: str | None
    price_cents: int
    is_active: bool
    addons: list[AddonRead] = Field(default_factory=list)
