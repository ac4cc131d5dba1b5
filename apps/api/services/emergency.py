"""
Emergency escalation: compose the SMS for a user's emergency contact,
deliver it, and flag the pending crisis alert as notified.
"""
import logging
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from ..models import EmergencyProfile, EmergencySmsRequest, EmergencySmsResponse
from .alerts import mark_contact_notified
from .sms import SmsSender
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)

CRISIS_TYPE = "crisis"

SPANISH_MONTHS = (
    "enero", "febrero", "marzo", "abril", "mayo", "junio",
    "julio", "agosto", "septiembre", "octubre", "noviembre", "diciembre",
)

CRISIS_HOTLINES = (
    "Teléfono de la Esperanza: 1800-532-835",
    "MSP Crisis: 171 (opción 6)",
    "Emergencias: 911",
)


def format_local_timestamp(moment: datetime, tz_name: str = "America/Guayaquil") -> str:
    """e.g. '19 de octubre de 2026, 14:05' in the application's home timezone."""
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    local = moment.astimezone(ZoneInfo(tz_name))
    return f"{local.day} de {SPANISH_MONTHS[local.month - 1]} de {local.year}, {local:%H:%M}"


def load_emergency_profile(store: SupabaseStore, user_id: str) -> EmergencyProfile:
    profile = EmergencyProfile()
    try:
        row = store.fetch_profile(user_id)
    except Exception as e:
        logger.error(f"Error loading profile for user {user_id}: {e}")
        return profile
    if not row:
        return profile
    return EmergencyProfile(
        user_name=row.get("full_name") or profile.user_name,
        contact_name=row.get("emergency_contact_name") or profile.contact_name,
    )


def compose_emergency_message(
    emergency_type: Optional[str],
    profile: EmergencyProfile,
    timestamp: str,
    user_message: Optional[str] = None,
) -> str:
    user_name = profile.user_name
    contact_name = profile.contact_name

    if emergency_type == CRISIS_TYPE:
        hotlines = "\n".join(f"• {line}" for line in CRISIS_HOTLINES)
        return (
            "🚨 ALERTA DE EMERGENCIA - EmocionalIA+\n\n"
            f"{contact_name}, {user_name} ha activado una alerta de crisis emocional.\n\n"
            f"Hora: {timestamp}\n"
            "Ubicación: Ecuador\n\n"
            f"Por favor, contacta inmediatamente a {user_name} para brindar apoyo.\n\n"
            "Recursos de emergencia en Ecuador:\n"
            f"{hotlines}\n\n"
            "Este mensaje es generado automáticamente por EmocionalIA+ para la protección del usuario."
        )

    note = f"Mensaje: {user_message}" if user_message else ""
    return (
        "🔔 Alerta EmocionalIA+\n\n"
        f"{contact_name}, {user_name} ha solicitado que te contacten.\n\n"
        f"Hora: {timestamp}\n"
        f"{note}\n\n"
        f"Por favor, verifica el estado de {user_name}.\n\n"
        "EmocionalIA+ - Cuidando tu bienestar"
    )


def send_emergency_sms(
    store: SupabaseStore,
    user_id: str,
    request: EmergencySmsRequest,
    sender: SmsSender,
    tz_name: str = "America/Guayaquil",
    now: Optional[datetime] = None,
) -> EmergencySmsResponse:
    """Deliver the emergency SMS. NotificationFailed from the sender propagates."""
    profile = load_emergency_profile(store, user_id)
    timestamp = format_local_timestamp(now or datetime.now(timezone.utc), tz_name)
    body = compose_emergency_message(request.emergency_type, profile, timestamp, request.user_message)

    receipt = sender.send(request.phone_number, body)
    logger.info(f"Emergency SMS ({request.emergency_type}) sent for user {user_id}, sid={receipt.sid}")

    if request.emergency_type == CRISIS_TYPE:
        mark_contact_notified(
            store,
            user_id,
            note=f"SMS enviado a {request.phone_number}. SID: {receipt.sid}",
            alert_id=request.alert_id,
        )

    if receipt.simulated:
        message = "SMS simulado enviado exitosamente (configuración de Twilio no disponible)"
    else:
        message = "SMS enviado exitosamente"
    return EmergencySmsResponse(success=True, message=message, sid=receipt.sid, simulated=receipt.simulated)
