import logging
from typing import Any, Dict, List, Optional

from supabase import ClientOptions, create_client, Client

from ..config import Settings
from ..errors import ServiceUnavailable, Unauthenticated

logger = logging.getLogger(__name__)

CHAT_TABLE = "chat_messages"
ALERTS_TABLE = "alertas_riesgo"
PROFILES_TABLE = "profiles"
PREFERENCES_TABLE = "notification_preferences"
NOTIFICATIONS_TABLE = "notifications"

# Service-role client, shared across requests. Only used for cross-user
# writes (notification fan-out); Row Level Security does not apply to it.
_service_client: Optional[Client] = None


def get_service_client(settings: Settings) -> Optional[Client]:
    global _service_client
    if _service_client is None:
        if not settings.supabase_url or not settings.supabase_service_role_key:
            logger.warning("SUPABASE_URL or SUPABASE_SERVICE_ROLE_KEY not set; service-role access disabled.")
            return None
        _service_client = create_client(settings.supabase_url, settings.supabase_service_role_key)
    return _service_client


def create_user_client(settings: Settings, access_token: str) -> Client:
    """Anon-key client whose table queries run as the caller (RLS applies)."""
    options = ClientOptions(auto_refresh_token=False, persist_session=False)
    options.headers["Authorization"] = f"Bearer {access_token}"
    return create_client(settings.supabase_url, settings.supabase_anon_key, options)


class SupabaseStore:
    """
    Thin table gateway over a Supabase client.

    Methods raise whatever the client raises; the callers decide whether a
    failure is fatal or best-effort.
    """

    def __init__(self, client: Client, access_token: Optional[str] = None):
        self.client = client
        self.access_token = access_token

    @classmethod
    def for_access_token(cls, settings: Settings, access_token: str) -> "SupabaseStore":
        if not settings.supabase_configured:
            raise ServiceUnavailable("Servicio de datos no configurado")
        return cls(create_user_client(settings, access_token), access_token)

    def close(self) -> None:
        """Release the HTTP pools of a per-request client."""
        self.client.postgrest.aclose()
        self.client.auth.close()

    # ── Auth ──

    def get_user_id(self) -> str:
        if not self.access_token:
            raise Unauthenticated("Token de autorización requerido")
        try:
            res = self.client.auth.get_user(self.access_token)
        except Exception as e:
            logger.info(f"Token rejected by auth service: {e}")
            raise Unauthenticated("Usuario no autenticado")
        user = getattr(res, "user", None) if res is not None else None
        if user is None or not getattr(user, "id", None):
            raise Unauthenticated("Usuario no autenticado")
        return str(user.id)

    # ── Chat history ──

    def fetch_recent_turns(self, user_id: str, session_id: str, limit: int) -> List[Dict[str, Any]]:
        """Newest first; callers reverse to chronological order."""
        res = self.client.table(CHAT_TABLE)\
            .select("message, role, tone, timestamp")\
            .eq("user_id", user_id)\
            .eq("session_id", session_id)\
            .order("timestamp", desc=True)\
            .limit(limit)\
            .execute()
        return res.data or []

    def insert_turn(self, row: Dict[str, Any]) -> None:
        self.client.table(CHAT_TABLE).insert(row).execute()

    # ── Risk alerts ──

    def insert_alert(self, row: Dict[str, Any]) -> Optional[str]:
        res = self.client.table(ALERTS_TABLE).insert(row).execute()
        if res.data:
            return res.data[0].get("id")
        return None

    def find_unnotified_alert(self, user_id: str, alert_id: Optional[str] = None) -> Optional[str]:
        query = self.client.table(ALERTS_TABLE)\
            .select("id")\
            .eq("user_id", user_id)\
            .eq("contacto_emergencia_notificado", False)
        if alert_id:
            query = query.eq("id", alert_id)
        res = query.order("timestamp", desc=True).limit(1).execute()
        if res.data:
            return res.data[0]["id"]
        return None

    def update_alert(self, alert_id: str, values: Dict[str, Any]) -> None:
        self.client.table(ALERTS_TABLE).update(values).eq("id", alert_id).execute()

    # ── Profiles ──

    def fetch_profile(self, user_id: str, columns: str = "full_name, emergency_contact_name") -> Optional[Dict[str, Any]]:
        res = self.client.table(PROFILES_TABLE)\
            .select(columns)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if res.data:
            return res.data[0]
        return None

    # ── Notifications ──

    def fetch_notification_preferences(self, user_id: str, tipo: str, grupo_id: Optional[str]) -> List[Dict[str, Any]]:
        query = self.client.table(PREFERENCES_TABLE)\
            .select("*")\
            .eq("user_id", user_id)\
            .eq("tipo_notificacion", tipo)
        if grupo_id:
            query = query.or_(f"grupo_id.eq.{grupo_id},grupo_id.is.null")
        else:
            query = query.is_("grupo_id", "null")
        res = query.execute()
        return res.data or []

    def insert_notifications(self, rows: List[Dict[str, Any]]) -> None:
        self.client.table(NOTIFICATIONS_TABLE).insert(rows).execute()
