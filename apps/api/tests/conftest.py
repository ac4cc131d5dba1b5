"""
Shared fixtures. Collaborators are replaced through app.dependency_overrides
with in-memory fakes so no Supabase, OpenAI or Twilio access is needed.
"""
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from apps.api.config import Settings, get_settings
from apps.api.deps import get_completion_client, get_service_store_factory, get_sms_sender, get_store_factory
from apps.api.errors import GenerationFailed, Unauthenticated
from apps.api.main import app
from apps.api.services.sms import SmsReceipt


class StoreFault(Exception):
    pass


class FakeStore:
    """In-memory stand-in for SupabaseStore with switchable faults."""

    def __init__(self, user_id: str = "user-123"):
        self.user_id = user_id
        self.authenticated = True
        self.tokens: List[str] = []
        self.turns: List[Dict[str, Any]] = []
        self.alerts: List[Dict[str, Any]] = []
        self.profiles: Dict[str, Dict[str, Any]] = {}
        self.preferences: List[Dict[str, Any]] = []
        self.notifications: List[Dict[str, Any]] = []
        self.fail_history_read = False
        self.fail_turn_insert = False
        self.fail_alert_insert = False
        self.fail_alert_update = False
        self.fail_profile = False
        self.fail_notification_insert = False

    def get_user_id(self) -> str:
        if not self.authenticated:
            raise Unauthenticated("Usuario no autenticado")
        return self.user_id

    def fetch_recent_turns(self, user_id: str, session_id: str, limit: int) -> List[Dict[str, Any]]:
        if self.fail_history_read:
            raise StoreFault("history unavailable")
        rows = [t for t in self.turns if t["user_id"] == user_id and t["session_id"] == session_id]
        rows.sort(key=lambda t: t["timestamp"], reverse=True)
        return rows[:limit]

    def insert_turn(self, row: Dict[str, Any]) -> None:
        if self.fail_turn_insert:
            raise StoreFault("insert failed")
        self.turns.append(dict(row))

    def insert_alert(self, row: Dict[str, Any]) -> Optional[str]:
        if self.fail_alert_insert:
            raise StoreFault("alert insert failed")
        alert = dict(row, id=f"alert-{len(self.alerts) + 1}")
        self.alerts.append(alert)
        return alert["id"]

    def find_unnotified_alert(self, user_id: str, alert_id: Optional[str] = None) -> Optional[str]:
        candidates = [
            a for a in self.alerts
            if a["user_id"] == user_id
            and not a.get("contacto_emergencia_notificado")
            and (alert_id is None or a["id"] == alert_id)
        ]
        candidates.sort(key=lambda a: a["timestamp"], reverse=True)
        return candidates[0]["id"] if candidates else None

    def update_alert(self, alert_id: str, values: Dict[str, Any]) -> None:
        if self.fail_alert_update:
            raise StoreFault("alert update failed")
        for alert in self.alerts:
            if alert["id"] == alert_id:
                alert.update(values)

    def fetch_profile(self, user_id: str, columns: str = "full_name, emergency_contact_name") -> Optional[Dict[str, Any]]:
        if self.fail_profile:
            raise StoreFault("profile unavailable")
        return self.profiles.get(user_id)

    def fetch_notification_preferences(self, user_id: str, tipo: str, grupo_id: Optional[str]) -> List[Dict[str, Any]]:
        return [
            p for p in self.preferences
            if p["user_id"] == user_id
            and p["tipo_notificacion"] == tipo
            and p.get("grupo_id") in (grupo_id, None)
        ]

    def insert_notifications(self, rows: List[Dict[str, Any]]) -> None:
        if self.fail_notification_insert:
            raise StoreFault("notifications insert failed")
        self.notifications.extend(rows)


class FakeCompletionClient:
    def __init__(self, reply: str = "Estoy aquí para acompañarte."):
        self.reply = reply
        self.error: Optional[GenerationFailed] = None
        self.calls: List[Dict[str, Any]] = []
        self.audio = b"ID3fake-mp3"
        self.speech_calls: List[Dict[str, Any]] = []

    def complete(self, messages, temperature):
        self.calls.append({"messages": list(messages), "temperature": temperature})
        if self.error is not None:
            raise self.error
        return self.reply

    def synthesize(self, text, voice=None):
        self.speech_calls.append({"text": text, "voice": voice})
        if self.error is not None:
            raise self.error
        return self.audio


class FakeSmsSender:
    def __init__(self, sid: str = "SM123", simulated: bool = False):
        self.sid = sid
        self.simulated = simulated
        self.error: Optional[Exception] = None
        self.sent: List[Dict[str, str]] = []

    def send(self, to: str, body: str) -> SmsReceipt:
        if self.error is not None:
            raise self.error
        self.sent.append({"to": to, "body": body})
        return SmsReceipt(sid=self.sid, simulated=self.simulated)


@pytest.fixture
def auth_headers():
    return {"Authorization": "Bearer test-token"}


@pytest.fixture
def settings():
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_anon_key="anon-key",
        supabase_service_role_key="service-key",
        openai_api_key="sk-test",
        twilio_account_sid=None,
        twilio_auth_token=None,
        twilio_phone_number=None,
        _env_file=None,
    )


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def completion():
    return FakeCompletionClient()


@pytest.fixture
def sms_sender():
    return FakeSmsSender()


@pytest.fixture
def client(settings, store, completion, sms_sender):
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_store_factory] = lambda: (lambda token: store.tokens.append(token) or store)
    app.dependency_overrides[get_service_store_factory] = lambda: (lambda: store)
    app.dependency_overrides[get_completion_client] = lambda: completion
    app.dependency_overrides[get_sms_sender] = lambda: sms_sender
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
