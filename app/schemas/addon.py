from pydantic import BaseModel
from typing import Optional


class AddOnCreate(BaseModel):
    name: str
    description: Optional[str] = None
    priceCents: int
    active: bool = True
    sortOrder: int = 0


class AddOnUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    priceCents: Optional[int] = None
    active: Optional[bool] = None
    sortOrder: Optional[int] = None


ADDON_COLUMNS = {
    "name": "name",
    "description": "description",
    "priceCents": "price_cents",
    "active": "active",
    "sortOrder": "sort_order",
}


def addon_changes(patch: AddOnUpdate) -> dict:
    return {ADDON_COLUMNS[k]: getattr(patch, k) for k in patch.model_fields_set if k in ADDON_COLUMNS}


def addon_to_dict(a) -> dict:
    return {
        "id": a.id,
        "name": a.name,
        "description": a.description,
        "priceCents": a.price_cents,
        "active": a.active,
        "sortOrder": a.sort_order,
    }
