import uuid

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from sqlalchemy.ext.asyncio import AsyncSession

from api.database import get_db
from api.middleware.authorization import require_permission
from api.middleware.tenant import get_company_id
from api.schemas.chat import ChatRequest, ChatResponse, SuggestionsResponse
from api.services.ai_client import GeminiClient, get_ai_client
from api.services.chat_service import ChatService, build_suggestions

router = APIRouter()


@router.post("", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    _auth: None = Depends(require_permission("CHAT_USE")),
    company_id: uuid.UUID = Depends(get_company_id),
    ai_client: GeminiClient = Depends(get_ai_client),
    db: AsyncSession = Depends(get_db),
):
    """Answer a free-text cost question. Failures come back as a normal envelope."""
    envelope = await ChatService(ai_client).resolve_query(db, body.message, company_id)
    return ChatResponse(**jsonable_encoder(envelope))


@router.get("/suggestions", response_model=SuggestionsResponse)
async def chat_suggestions(
    _auth: None = Depends(require_permission("CHAT_USE")),
    company_id: uuid.UUID = Depends(get_company_id),
    db: AsyncSession = Depends(get_db),
):
    return await build_suggestions(db, company_id)
