from typing import Optional
from pydantic import BaseModel, Field


class PhaseCreate(BaseModel):
    project_id: str
    name: str = Field(..., min_length=1, max_length=200)
    budget: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None


class PhaseUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    budget: Optional[float] = Field(None, ge=0)
    description: Optional[str] = None


class PhaseResponse(BaseModel):
    id: str
    company_id: str
    project_id: str
    name: str
    budget: Optional[float] = None
    description: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}


class CategoryCreate(BaseModel):
    phase_id: str
    name: str = Field(..., min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    description: Optional[str] = None


class CategoryResponse(BaseModel):
    id: str
    company_id: str
    phase_id: str
    name: str
    description: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
