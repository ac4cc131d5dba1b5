"""
Conversation history: bounded reads and append-only writes.

Both directions are best-effort. A read fault yields an empty history and a
write fault is logged; neither may fail the chat request.
"""
import logging
from datetime import datetime, timezone
from typing import List, Optional

from ..models import ChatTurn
from .supabase_client import SupabaseStore

logger = logging.getLogger(__name__)


def load_history(store: SupabaseStore, user_id: str, session_id: str, limit: int = 10) -> List[ChatTurn]:
    """The `limit` most recent turns for (user, session), oldest first."""
    if limit <= 0:
        return []
    try:
        rows = store.fetch_recent_turns(user_id, session_id, limit)
    except Exception as e:
        logger.error(f"Error loading chat history for user {user_id}: {e}")
        return []

    turns = []
    for row in reversed(rows):
        role = row.get("role")
        if role not in ("user", "assistant"):
            continue
        turns.append(ChatTurn(
            user_id=user_id,
            session_id=session_id,
            role=role,
            content=row.get("message") or "",
            tone=row.get("tone"),
            timestamp=row.get("timestamp"),
        ))
    return turns


def _save_turn(store: SupabaseStore, turn: ChatTurn) -> bool:
    try:
        store.insert_turn({
            "user_id": turn.user_id,
            "message": turn.content,
            "role": turn.role,
            "tone": turn.tone,
            "session_id": turn.session_id,
            "timestamp": (turn.timestamp or datetime.now(timezone.utc)).isoformat(),
        })
        return True
    except Exception as e:
        logger.error(f"Error saving {turn.role} message for user {turn.user_id}: {e}")
        return False


def append_turns(
    store: SupabaseStore,
    user_id: str,
    session_id: str,
    tone: str,
    user_text: str,
    assistant_text: str,
    user_timestamp: Optional[datetime] = None,
) -> int:
    """Write the user turn, then the assistant turn. Returns how many were saved."""
    user_turn = ChatTurn(
        user_id=user_id,
        session_id=session_id,
        role="user",
        content=user_text,
        tone=tone,
        timestamp=user_timestamp or datetime.now(timezone.utc),
    )
    assistant_turn = ChatTurn(
        user_id=user_id,
        session_id=session_id,
        role="assistant",
        content=assistant_text,
        tone=tone,
        timestamp=datetime.now(timezone.utc),
    )
    saved = 0
    for turn in (user_turn, assistant_turn):
        if _save_turn(store, turn):
            saved += 1
    return saved
