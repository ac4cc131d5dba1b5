from typing import Optional

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..deps import StoreFactory, authenticate, get_authorization, get_completion_client, get_store_factory
from ..errors import InvalidRequest
from ..models import ChatRequest, ChatResponse, ErrorResponse
from ..services.chat_service import run_chat
from ..services.llm_client import CompletionClient

router = APIRouter()

ERROR_RESPONSES = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    500: {"model": ErrorResponse},
}


@router.post("/ai-chat", response_model=ChatResponse, responses=ERROR_RESPONSES)
@router.post("/chat", response_model=ChatResponse, responses=ERROR_RESPONSES, include_in_schema=False)
def ai_chat(
    body: ChatRequest,
    authorization: Optional[str] = Depends(get_authorization),
    store_factory: StoreFactory = Depends(get_store_factory),
    completion_client: CompletionClient = Depends(get_completion_client),
    settings: Settings = Depends(get_settings),
):
    # Validate before touching auth or the store
    if not body.message or not body.message.strip():
        raise InvalidRequest("Mensaje es requerido")

    store, user_id = authenticate(authorization, store_factory)
    return run_chat(
        store,
        user_id,
        body,
        completion_client,
        history_limit=settings.history_limit,
    )
