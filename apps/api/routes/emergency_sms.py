from typing import Optional

from fastapi import APIRouter, Depends

from ..config import Settings, get_settings
from ..deps import StoreFactory, authenticate, get_authorization, get_sms_sender, get_store_factory
from ..errors import InvalidRequest
from ..models import EmergencySmsRequest, EmergencySmsResponse, ErrorResponse
from ..services.emergency import send_emergency_sms
from ..services.sms import SmsSender

router = APIRouter()


@router.post(
    "/send-emergency-sms",
    response_model=EmergencySmsResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
)
def emergency_sms(
    body: EmergencySmsRequest,
    authorization: Optional[str] = Depends(get_authorization),
    store_factory: StoreFactory = Depends(get_store_factory),
    sender: SmsSender = Depends(get_sms_sender),
    settings: Settings = Depends(get_settings),
):
    if not body.phone_number or not body.phone_number.strip():
        raise InvalidRequest("Número de teléfono es requerido")

    store, user_id = authenticate(authorization, store_factory)
    return send_emergency_sms(store, user_id, body, sender, tz_name=settings.app_timezone)
