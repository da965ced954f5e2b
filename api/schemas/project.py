from datetime import date
from typing import Literal, Optional
from pydantic import BaseModel, Field

ProjectStatus = Literal["starting_soon", "ongoing", "paused", "completed"]


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    client: str = Field(..., min_length=1, max_length=200)
    location: Optional[str] = Field(None, max_length=300)
    budget: float = Field(0, ge=0)
    status: ProjectStatus = "starting_soon"
    start_date: date
    end_date: Optional[date] = None


class ProjectUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    client: Optional[str] = Field(None, min_length=1, max_length=200)
    location: Optional[str] = Field(None, max_length=300)
    budget: Optional[float] = Field(None, ge=0)
    status: Optional[ProjectStatus] = None
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class ProjectResponse(BaseModel):
    id: str
    company_id: str
    name: str
    client: str
    location: Optional[str] = None
    budget: float
    status: str
    start_date: str
    end_date: Optional[str] = None
    created_by: Optional[str] = None
    created_at: str
    updated_at: str

    model_config = {"from_attributes": True}
