"""
Chat request pipeline.

    Authenticating -> ScreeningRisk -> LoadingHistory -> Generating
        -> Persisting -> Responding

Only Authenticating (in the route) and Generating can fail the request.
Alert recording, history reads and history writes degrade to a log line.
"""
import logging
from datetime import datetime, timezone

from ..models import DEFAULT_SESSION_ID, ChatRequest, ChatResponse
from .alerts import record_alert
from .chat_history import append_turns, load_history
from .crisis import detect_crisis
from .llm_client import CompletionClient
from .supabase_client import SupabaseStore
from .tones import build_messages, resolve_tone

logger = logging.getLogger(__name__)


def run_chat(
    store: SupabaseStore,
    user_id: str,
    request: ChatRequest,
    completion_client: CompletionClient,
    history_limit: int = 10,
) -> ChatResponse:
    received_at = datetime.now(timezone.utc)
    message = request.message
    session_id = request.session_id or DEFAULT_SESSION_ID

    # ScreeningRisk
    detection = detect_crisis(message)
    alert_id = None
    if detection.is_crisis:
        logger.warning(f"Crisis detected for user {user_id} ({len(detection.matches)} phrase(s))")
        alert_id = record_alert(store, user_id, message, detection.matches)

    # LoadingHistory
    profile = resolve_tone(request.tone)
    history = load_history(store, user_id, session_id, history_limit)

    # Generating
    messages = build_messages(profile, history, message)
    reply = completion_client.complete(messages, profile.temperature)

    # Persisting
    append_turns(
        store,
        user_id=user_id,
        session_id=session_id,
        tone=profile.label,
        user_text=message,
        assistant_text=reply,
        user_timestamp=received_at,
    )

    return ChatResponse(
        response=reply,
        crisis_detected=detection.is_crisis,
        detected_keywords=detection.matches,
        tone=profile.label,
        alert_id=alert_id,
    )
