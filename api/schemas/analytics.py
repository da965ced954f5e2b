from typing import List
from pydantic import BaseModel


class PhaseSummaryRow(BaseModel):
    phase_name: str
    total_cost: float
    purchase_count: int


class ItemBreakdownRow(BaseModel):
    item_name: str
    total_cost: float
    total_quantity: float
    purchase_count: int


class PhaseSummaryResponse(BaseModel):
    data: List[PhaseSummaryRow]


class ItemBreakdownResponse(BaseModel):
    data: List[ItemBreakdownRow]
