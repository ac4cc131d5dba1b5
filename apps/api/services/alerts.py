import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..models import RiskAlert
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)


def record_alert(store: SupabaseStore, user_id: str, message: str, matches: List[str]) -> Optional[str]:
    """
    Persist a risk alert for a screened message.

    Best-effort: returns the new alert id, or None when the write failed.
    A failure here must never replace the assistant reply with an error.
    """
    if not matches:
        return None

    alert = RiskAlert(
        user_id=user_id,
        message=message,
        matches=list(matches),
        timestamp=datetime.now(timezone.utc),
    )
    try:
        alert_id = store.insert_alert({
            "user_id": alert.user_id,
            "mensaje_detectado": alert.message,
            "palabras_clave": alert.matches,
            "timestamp": alert.timestamp.isoformat(),
            "atendida": alert.resolved,
            "contacto_emergencia_notificado": alert.contact_notified,
        })
    except Exception as e:
        logger.error(f"Error recording crisis alert for user {user_id}: {e}")
        return None
    return alert_id


def mark_contact_notified(
    store: SupabaseStore,
    user_id: str,
    note: str,
    alert_id: Optional[str] = None,
) -> Optional[str]:
    """
    Flag one not-yet-notified alert of the user and attach a follow-up note.

    Targets `alert_id` when given, otherwise the most recent one. No matching
    alert is a no-op. Returns the updated alert id, or None.
    """
    try:
        target = store.find_unnotified_alert(user_id, alert_id)
        if target is None:
            logger.info(f"No pending alert to mark as notified for user {user_id}")
            return None
        store.update_alert(target, {
            "contacto_emergencia_notificado": True,
            "notas_seguimiento": note,
        })
    except Exception as e:
        logger.error(f"Error updating crisis alert for user {user_id}: {e}")
        return None
    return target
