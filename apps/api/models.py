from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_SESSION_ID = "default"


class ChatMessage(BaseModel):
    """One message of the sequence sent to the completion provider."""
    model_config = ConfigDict(frozen=True)

    role: Literal["system", "user", "assistant"]
    content: str


class ChatTurn(BaseModel):
    """A stored conversation turn. Turns are written once and never updated."""
    model_config = ConfigDict(frozen=True)

    user_id: str
    session_id: str = DEFAULT_SESSION_ID
    role: Literal["user", "assistant"]
    content: str
    tone: Optional[str] = None
    timestamp: Optional[datetime] = None


class RiskAlert(BaseModel):
    user_id: str
    message: str
    matches: List[str]
    timestamp: datetime
    resolved: bool = False
    follow_up_note: Optional[str] = None
    contact_notified: bool = False
    id: Optional[str] = None


class EmergencyProfile(BaseModel):
    """Display data used to address an emergency SMS."""
    user_name: str = "Usuario de EmocionalIA+"
    contact_name: str = "contacto de emergencia"


# ── Request / response bodies ──
# Field names follow the JSON contract consumed by the web client.

class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True)


class ChatRequest(_CamelModel):
    message: Optional[str] = None
    tone: Optional[str] = None
    session_id: Optional[str] = Field(default=None, alias="sessionId")


class ChatResponse(_CamelModel):
    response: str
    crisis_detected: bool = Field(alias="crisisDetected")
    detected_keywords: List[str] = Field(alias="detectedKeywords")
    tone: str
    alert_id: Optional[str] = Field(default=None, alias="alertId")


class EmergencySmsRequest(_CamelModel):
    phone_number: Optional[str] = Field(default=None, alias="phoneNumber")
    # Omitted means crisis; an explicit null selects the generic template
    emergency_type: Optional[str] = Field(default="crisis", alias="emergencyType")
    user_message: Optional[str] = Field(default=None, alias="userMessage")
    alert_id: Optional[str] = Field(default=None, alias="alertId")


class EmergencySmsResponse(BaseModel):
    success: bool = True
    message: str
    sid: str
    simulated: bool


class TextToSpeechRequest(BaseModel):
    text: Optional[str] = None
    voice: Optional[str] = None


class TextToSpeechResponse(_CamelModel):
    audio_content: str = Field(alias="audioContent")
    format: str = "mp3"


class NotificationRequest(BaseModel):
    user_ids: List[str] = []
    tipo: Optional[str] = None
    titulo: Optional[str] = None
    mensaje: Optional[str] = None
    grupo_id: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None


class NotificationResponse(BaseModel):
    success: bool = True
    sent_count: int
    message: str


class ErrorResponse(BaseModel):
    error: str
