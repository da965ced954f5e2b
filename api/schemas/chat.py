from typing import Any, List, Optional
from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=2000)


class ChatResponse(BaseModel):
    message: str
    data: Optional[Any] = None
    intent: str
    timestamp: str


class SuggestionPrompt(BaseModel):
    text: str
    query: str


class SuggestionCategory(BaseModel):
    category: str
    icon: str
    prompts: List[SuggestionPrompt]


class SuggestionStats(BaseModel):
    project_count: int
    phase_count: int
    vendor_count: int
    item_count: int


class SuggestionsResponse(BaseModel):
    suggestions: List[SuggestionCategory]
    stats: SuggestionStats
