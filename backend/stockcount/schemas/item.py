from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator

UnitType = Literal["quantity", "weight"]


def _blank_to_none(v):
    if isinstance(v, str):
        v = v.strip()
        return v or None
    return v


class ItemBase(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    upc_number: Optional[str] = Field(None, max_length=64)
    unit_type: UnitType
    average_weight_per_unit: Optional[float] = None
    item_type: Optional[str] = Field(None, max_length=128)
    brand: Optional[str] = Field(None, max_length=255)

    @field_validator('upc_number', 'item_type', 'brand', mode='before')
    @classmethod
    def empty_strings_are_null(cls, v):
        return _blank_to_none(v)

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ItemCreate(ItemBase):
    @model_validator(mode='after')
    def weight_matches_unit_type(self):
        if self.unit_type == "quantity":
            self.average_weight_per_unit = None
        elif self.average_weight_per_unit is None or self.average_weight_per_unit <= 0:
            raise ValueError("average_weight_per_unit must be a positive number for weight items")
        return self


class ItemUpdate(BaseModel):
    """Partial update. The unit type / weight pairing is checked against the stored row."""
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    upc_number: Optional[str] = Field(None, max_length=64)
    unit_type: Optional[UnitType] = None
    average_weight_per_unit: Optional[float] = None
    item_type: Optional[str] = Field(None, max_length=128)
    brand: Optional[str] = Field(None, max_length=255)

    @field_validator('upc_number', 'item_type', 'brand', mode='before')
    @classmethod
    def empty_strings_are_null(cls, v):
        return _blank_to_none(v)

    @field_validator('name')
    @classmethod
    def name_not_blank(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if not v.strip():
            raise ValueError("Name is required")
        return v.strip()


class ItemResponse(BaseModel):
    id: int
    user_id: int
    name: str
    upc_number: Optional[str] = None
    unit_type: str
    average_weight_per_unit: Optional[float] = None
    item_type: Optional[str] = None
    brand: Optional[str] = None
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TransferItemsRequest(BaseModel):
    source_user_id: int
    target_user_id: int


class TransferItemsResponse(BaseModel):
    message: str
    count: int
    skipped: int = 0
