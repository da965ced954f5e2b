from typing import Optional
from pydantic import BaseModel, Field, field_validator


class CompanySettingsUpdate(BaseModel):
    default_currency: Optional[str] = Field(None, min_length=3, max_length=3, pattern=r"^[A-Za-z]{3}$")

    @field_validator("default_currency")
    @classmethod
    def upper_case_code(cls, v: Optional[str]) -> Optional[str]:
        return v.upper() if v else v


class CompanySettingsResponse(BaseModel):
    id: str
    name: str
    default_currency: str
    currency_symbol: str
