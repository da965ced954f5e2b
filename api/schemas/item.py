from typing import Optional
from pydantic import BaseModel, Field


class ItemCreate(BaseModel):
    category_id: str
    name: str = Field(..., min_length=1, max_length=200)
    unit: str = Field(..., min_length=1, max_length=30)
    rate: float = Field(0, ge=0)
    default_vendor_id: Optional[str] = None


class ItemUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    unit: Optional[str] = Field(None, min_length=1, max_length=30)
    rate: Optional[float] = Field(None, ge=0)
    default_vendor_id: Optional[str] = None


class ItemResponse(BaseModel):
    id: str
    company_id: str
    category_id: str
    name: str
    unit: str
    rate: float
    default_vendor_id: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
