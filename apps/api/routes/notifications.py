from typing import Optional

from fastapi import APIRouter, Depends

from ..deps import (
    ServiceStoreFactory,
    StoreFactory,
    authenticate,
    get_authorization,
    get_service_store_factory,
    get_store_factory,
)
from ..errors import InvalidRequest
from ..models import ErrorResponse, NotificationRequest, NotificationResponse
from ..services.notifications import send_notifications

router = APIRouter()


@router.post(
    "/send-notification",
    response_model=NotificationResponse,
    responses={
        400: {"model": ErrorResponse},
        401: {"model": ErrorResponse},
        500: {"model": ErrorResponse},
        503: {"model": ErrorResponse},
    },
)
def send_notification(
    body: NotificationRequest,
    authorization: Optional[str] = Depends(get_authorization),
    store_factory: StoreFactory = Depends(get_store_factory),
    service_store_factory: ServiceStoreFactory = Depends(get_service_store_factory),
):
    if not body.user_ids:
        raise InvalidRequest("user_ids es requerido")
    missing = [name for name in ("tipo", "titulo", "mensaje") if not getattr(body, name)]
    if missing:
        raise InvalidRequest(f"Campos requeridos: {', '.join(missing)}")

    authenticate(authorization, store_factory)
    return send_notifications(service_store_factory(), body)
