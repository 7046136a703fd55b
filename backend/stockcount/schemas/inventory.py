from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from stockcount.schemas.item import ItemResponse

InventoryStatus = Literal["draft", "completed", "deleted"]


class InventoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    status: Literal["draft", "completed"] = "draft"
    settings: Optional[Dict[str, Any]] = None

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Inventory name is required")
        return v.strip()


class InventoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    status: Optional[InventoryStatus] = None
    settings: Optional[Dict[str, Any]] = None


class InventoryResponse(BaseModel):
    id: int
    user_id: int
    name: str
    status: str
    settings: Optional[Dict[str, Any]] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class InventoryItemCreate(BaseModel):
    item_id: int
    counted_units: float = Field(0, ge=0)


class InventoryItemUpdate(BaseModel):
    counted_units: Optional[float] = Field(None, ge=0)
    is_entered: Optional[bool] = None

    @model_validator(mode='after')
    def something_to_update(self):
        if self.counted_units is None and self.is_entered is None:
            raise ValueError("counted_units or is_entered is required")
        return self


class InventoryItemResponse(BaseModel):
    id: int
    inventory_id: int
    item_id: int
    counted_units: float
    calculated_weight: Optional[float] = None
    is_entered: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    item: ItemResponse

    class Config:
        from_attributes = True


class BulkAddResponse(BaseModel):
    message: str
    count_added: int


class MessageResponse(BaseModel):
    message: str
