from datetime import datetime, timezone

from apps.api.deps import get_sms_sender
from apps.api.errors import NotificationFailed
from apps.api.models import EmergencyProfile
from apps.api.services.emergency import compose_emergency_message, format_local_timestamp
from apps.api.services.sms import SIMULATED_SID_PREFIX, SimulatedSmsSender


def add_alert(store, alert_id, timestamp, user_id="user-123", notified=False):
    store.alerts.append({
        "id": alert_id,
        "user_id": user_id,
        "mensaje_detectado": "quiero morir",
        "palabras_clave": ["quiero morir"],
        "timestamp": timestamp,
        "atendida": False,
        "contacto_emergencia_notificado": notified,
    })


def test_format_local_timestamp_uses_home_timezone():
    moment = datetime(2026, 10, 19, 19, 5, tzinfo=timezone.utc)
    assert format_local_timestamp(moment) == "19 de octubre de 2026, 14:05"


def test_format_local_timestamp_treats_naive_as_utc():
    assert format_local_timestamp(datetime(2026, 1, 1, 3, 0)) == "31 de diciembre de 2025, 22:00"


def test_crisis_template_contains_names_and_hotlines():
    body = compose_emergency_message(
        "crisis",
        EmergencyProfile(user_name="Ana Pérez", contact_name="Luis"),
        "19 de octubre de 2026, 14:05",
    )
    assert body.startswith("🚨 ALERTA DE EMERGENCIA - EmocionalIA+")
    assert "Luis, Ana Pérez ha activado una alerta de crisis emocional." in body
    assert "Hora: 19 de octubre de 2026, 14:05" in body
    assert "• Teléfono de la Esperanza: 1800-532-835" in body
    assert "• MSP Crisis: 171 (opción 6)" in body
    assert "• Emergencias: 911" in body


def test_generic_template_includes_optional_user_message():
    profile = EmergencyProfile()
    with_note = compose_emergency_message("check_in", profile, "ahora", "Estoy en casa")
    without_note = compose_emergency_message("check_in", profile, "ahora")

    assert with_note.startswith("🔔 Alerta EmocionalIA+")
    assert "contacto de emergencia, Usuario de EmocionalIA+ ha solicitado que te contacten." in with_note
    assert "Mensaje: Estoy en casa" in with_note
    assert "Mensaje:" not in without_note
    assert "1800-532-835" not in with_note


def test_simulated_send_reports_simulated(client, store, auth_headers, monkeypatch):
    # Use the startup-selected sender instead of the fake
    client.app.dependency_overrides.pop(get_sms_sender)
    monkeypatch.setattr(client.app.state, "sms_sender", SimulatedSmsSender())

    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "emergencyType": "crisis"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is True
    assert data["simulated"] is True
    assert data["sid"].startswith(SIMULATED_SID_PREFIX)
    assert data["message"] == "SMS simulado enviado exitosamente (configuración de Twilio no disponible)"


def test_real_send_reports_provider_sid(client, sms_sender, store, auth_headers):
    store.profiles["user-123"] = {"full_name": "Ana Pérez", "emergency_contact_name": "Luis"}

    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "message": "SMS enviado exitosamente",
        "sid": "SM123",
        "simulated": False,
    }
    sent = sms_sender.sent[0]
    assert sent["to"] == "+593999999999"
    assert "Luis, Ana Pérez ha activado una alerta de crisis emocional." in sent["body"]


def test_crisis_marks_most_recent_unnotified_alert(client, store, auth_headers):
    add_alert(store, "old", "2026-10-01T10:00:00+00:00")
    add_alert(store, "new", "2026-10-02T10:00:00+00:00")
    add_alert(store, "newest-notified", "2026-10-03T10:00:00+00:00", notified=True)
    add_alert(store, "other-user", "2026-10-04T10:00:00+00:00", user_id="someone-else")

    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "emergencyType": "crisis"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    by_id = {a["id"]: a for a in store.alerts}
    assert by_id["new"]["contacto_emergencia_notificado"] is True
    assert by_id["new"]["notas_seguimiento"] == "SMS enviado a +593999999999. SID: SM123"
    assert by_id["old"]["contacto_emergencia_notificado"] is False
    assert by_id["other-user"]["contacto_emergencia_notificado"] is False
    assert "notas_seguimiento" not in by_id["other-user"]


def test_crisis_with_alert_id_targets_that_alert(client, store, auth_headers):
    add_alert(store, "old", "2026-10-01T10:00:00+00:00")
    add_alert(store, "new", "2026-10-02T10:00:00+00:00")

    client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "alertId": "old"},
        headers=auth_headers,
    )

    by_id = {a["id"]: a for a in store.alerts}
    assert by_id["old"]["contacto_emergencia_notificado"] is True
    assert by_id["new"]["contacto_emergencia_notificado"] is False


def test_crisis_without_alerts_is_a_noop(client, store, auth_headers):
    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "emergencyType": "crisis"},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["success"] is True
    assert store.alerts == []


def test_non_crisis_does_not_touch_alerts(client, store, sms_sender, auth_headers):
    add_alert(store, "a1", "2026-10-01T10:00:00+00:00")

    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "emergencyType": "check_in", "userMessage": "Llámame"},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert store.alerts[0]["contacto_emergencia_notificado"] is False
    assert "Mensaje: Llámame" in sms_sender.sent[0]["body"]


def test_profile_failure_falls_back_to_placeholders(client, store, sms_sender, auth_headers):
    store.fail_profile = True

    resp = client.post("/send-emergency-sms", json={"phoneNumber": "+593999999999"}, headers=auth_headers)

    assert resp.status_code == 200
    assert "contacto de emergencia, Usuario de EmocionalIA+" in sms_sender.sent[0]["body"]


def test_alert_update_failure_does_not_fail_request(client, store, auth_headers):
    add_alert(store, "a1", "2026-10-01T10:00:00+00:00")
    store.fail_alert_update = True

    resp = client.post("/send-emergency-sms", json={"phoneNumber": "+593999999999"}, headers=auth_headers)

    assert resp.status_code == 200
    assert store.alerts[0]["contacto_emergencia_notificado"] is False


def test_provider_failure_returns_500_and_leaves_alerts(client, store, sms_sender, auth_headers):
    add_alert(store, "a1", "2026-10-01T10:00:00+00:00")
    sms_sender.error = NotificationFailed("No se pudo enviar SMS: Error de Twilio: 500 - down")

    resp = client.post("/send-emergency-sms", json={"phoneNumber": "+593999999999"}, headers=auth_headers)

    assert resp.status_code == 500
    assert resp.json() == {"error": "No se pudo enviar SMS: Error de Twilio: 500 - down"}
    assert store.alerts[0]["contacto_emergencia_notificado"] is False


def test_missing_phone_number_is_rejected(client, sms_sender, auth_headers):
    resp = client.post("/send-emergency-sms", json={"emergencyType": "crisis"}, headers=auth_headers)

    assert resp.status_code == 400
    assert resp.json() == {"error": "Número de teléfono es requerido"}
    assert sms_sender.sent == []


def test_escalation_requires_token(client, sms_sender):
    resp = client.post("/send-emergency-sms", json={"phoneNumber": "+593999999999"})

    assert resp.status_code == 401
    assert sms_sender.sent == []


def test_null_emergency_type_sends_generic_message(client, store, sms_sender, auth_headers):
    add_alert(store, "a1", "2026-10-01T10:00:00+00:00")

    resp = client.post(
        "/send-emergency-sms",
        json={"phoneNumber": "+593999999999", "emergencyType": None},
        headers=auth_headers,
    )

    assert resp.status_code == 200
    assert sms_sender.sent[0]["body"].startswith("🔔 Alerta EmocionalIA+")
    assert store.alerts[0]["contacto_emergencia_notificado"] is False
