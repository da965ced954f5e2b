from typing import Optional
from pydantic import BaseModel, EmailStr, Field


class VendorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^\+?[0-9][0-9\s\-]{1,20}$")
    address: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class VendorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    contact_person: Optional[str] = Field(None, max_length=200)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, pattern=r"^\+?[0-9][0-9\s\-]{1,20}$")
    address: Optional[str] = None
    rating: Optional[float] = Field(None, ge=0, le=5)


class VendorResponse(BaseModel):
    id: str
    company_id: str
    name: str
    contact_person: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    rating: Optional[float] = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
