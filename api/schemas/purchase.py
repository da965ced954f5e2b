from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class PurchaseCreate(BaseModel):
    item_id: str
    category_id: str
    phase_id: str
    project_id: str
    vendor_id: Optional[str] = None
    quantity: float = Field(..., gt=0)
    price_per_unit: float = Field(..., ge=0)
    total_cost: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[datetime] = None
    invoice_url: Optional[str] = Field(None, max_length=2000)


class PurchaseUpdate(BaseModel):
    vendor_id: Optional[str] = None
    quantity: Optional[float] = Field(None, gt=0)
    price_per_unit: Optional[float] = Field(None, ge=0)
    total_cost: Optional[float] = Field(None, ge=0)
    purchase_date: Optional[datetime] = None
    invoice_url: Optional[str] = Field(None, max_length=2000)


class PurchaseResponse(BaseModel):
    id: str
    company_id: str
    item_id: str
    category_id: str
    phase_id: str
    project_id: str
    vendor_id: Optional[str] = None
    quantity: float
    price_per_unit: float
    total_cost: float
    purchase_date: str
    invoice_url: Optional[str] = None
    created_by: Optional[str] = None
    created_at: str

    model_config = {"from_attributes": True}
