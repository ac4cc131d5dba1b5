import base64
import logging
from typing import Optional

from fastapi import APIRouter, Depends

from ..deps import StoreFactory, authenticate, get_authorization, get_completion_client, get_store_factory
from ..errors import InvalidRequest
from ..models import ErrorResponse, TextToSpeechRequest, TextToSpeechResponse
from ..services.llm_client import CompletionClient

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/text-to-speech",
    response_model=TextToSpeechResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def text_to_speech(
    body: TextToSpeechRequest,
    authorization: Optional[str] = Depends(get_authorization),
    store_factory: StoreFactory = Depends(get_store_factory),
    completion_client: CompletionClient = Depends(get_completion_client),
):
    if not body.text or not body.text.strip():
        raise InvalidRequest("Texto es requerido")

    _, user_id = authenticate(authorization, store_factory)
    audio = completion_client.synthesize(body.text, body.voice)
    logger.info(f"Synthesized {len(audio)} bytes of speech for user {user_id}")
    return TextToSpeechResponse(audio_content=base64.b64encode(audio).decode("ascii"), format="mp3")
