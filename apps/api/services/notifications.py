"""
In-app notification fan-out honoring per-user notification preferences.
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from ..errors import NotificationFailed
from ..models import NotificationRequest, NotificationResponse
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)


def resolve_channels(preferences: List[Dict[str, Any]], grupo_id: Optional[str]) -> Tuple[bool, bool]:
    """
    Returns (in_app, email). A group-specific preference wins over the global
    one; with no preference rows the defaults are in-app only.
    """
    if not preferences:
        return True, False

    chosen = None
    if grupo_id:
        chosen = next((p for p in preferences if p.get("grupo_id") == grupo_id), None)
    if chosen is None:
        chosen = next((p for p in preferences if p.get("grupo_id") is None), preferences[0])
    return bool(chosen.get("in_app_enabled", True)), bool(chosen.get("email_enabled", False))


def send_notifications(store: SupabaseStore, request: NotificationRequest) -> NotificationResponse:
    logger.info(f"Sending '{request.tipo}' notification to {len(request.user_ids)} user(s)")

    rows = []
    for user_id in request.user_ids:
        try:
            preferences = store.fetch_notification_preferences(user_id, request.tipo, request.grupo_id)
        except Exception as e:
            logger.error(f"Error loading notification preferences for user {user_id}: {e}")
            preferences = []

        in_app, email = resolve_channels(preferences, request.grupo_id)

        if in_app:
            rows.append({
                "user_id": user_id,
                "grupo_id": request.grupo_id,
                "tipo": request.tipo,
                "titulo": request.titulo,
                "mensaje": request.mensaje,
                "metadata": request.metadata,
                "leida": False,
            })

        if email:
            try:
                profile = store.fetch_profile(user_id, columns="email, full_name")
            except Exception as e:
                logger.error(f"Error loading profile email for user {user_id}: {e}")
                profile = None
            if profile and profile.get("email"):
                # No email provider is integrated yet.
                logger.info(f"Would send email to {profile['email']} for notification: {request.titulo}")

    if rows:
        try:
            store.insert_notifications(rows)
        except Exception as e:
            logger.error(f"Error inserting notifications: {e}")
            raise NotificationFailed(f"No se pudieron registrar las notificaciones: {e}")

    logger.info(f"Successfully sent {len(rows)} notifications")
    return NotificationResponse(success=True, sent_count=len(rows), message="Notifications sent successfully")
