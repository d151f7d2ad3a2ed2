"""
Inventory status API schemas.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class VariantInventoryResponse(BaseModel):
    title: Optional[str] = None
    inventory: int
    sku: str


class InventoryItemResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    name: Optional[str] = None
    type: str
    total_inventory: int = Field(..., alias="totalInventory")
    variants: List[VariantInventoryResponse]


class InventoryStatusResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    out_of_stock: List[InventoryItemResponse] = Field(default_factory=list, alias="outOfStock")
    low_stock: List[InventoryItemResponse] = Field(default_factory=list, alias="lowStock")
