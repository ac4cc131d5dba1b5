"""
Conversational tones and prompt assembly.
"""
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from ..models import ChatMessage, ChatTurn


class Tone(str, Enum):
    PROFESIONAL = "profesional"
    MOTIVADOR = "motivador"
    RELAJADO = "relajado"


DEFAULT_TONE = Tone.PROFESIONAL


@dataclass(frozen=True)
class ToneProfile:
    tone: Tone
    system_prompt: str
    temperature: float

    @property
    def label(self) -> str:
        return self.tone.value


TONE_PROFILES = {
    Tone.PROFESIONAL: ToneProfile(
        tone=Tone.PROFESIONAL,
        system_prompt=(
            "Eres un asistente de salud mental profesional y empático. Mantienes un tono serio pero "
            "comprensivo, utilizas terminología clínica apropiada cuando es necesario, y siempre ofreces "
            "respuestas basadas en evidencia científica. Respondes en español de Ecuador y mantienes "
            "límites profesionales apropiados."
        ),
        temperature=0.7,
    ),
    Tone.MOTIVADOR: ToneProfile(
        tone=Tone.MOTIVADOR,
        system_prompt=(
            "Eres un coach motivacional especializado en bienestar emocional. Tu estilo es entusiasta, "
            "alentador y positivo. Utilizas frases inspiradoras, reconoces los logros del usuario y siempre "
            "enfocas hacia las fortalezas y posibilidades. Respondes en español de Ecuador con un tono "
            "cálido y optimista."
        ),
        temperature=0.8,
    ),
    Tone.RELAJADO: ToneProfile(
        tone=Tone.RELAJADO,
        system_prompt=(
            "Eres un compañero de bienestar con un enfoque tranquilo y relajante. Hablas de manera suave, "
            "pausada y reconfortante. Usas metáforas relacionadas con la naturaleza, técnicas de "
            "mindfulness y generas un ambiente de calma. Respondes en español de Ecuador con un tono "
            "sereno y pacífico."
        ),
        temperature=0.6,
    ),
}


def resolve_tone(label: Optional[str]) -> ToneProfile:
    """Map a requested tone label to its profile, falling back to the default."""
    try:
        tone = Tone((label or "").strip().lower())
    except ValueError:
        tone = DEFAULT_TONE
    return TONE_PROFILES[tone]


def build_messages(profile: ToneProfile, history: Sequence[ChatTurn], user_message: str) -> List[ChatMessage]:
    """System instruction first, history in stored order, new user message last."""
    messages = [ChatMessage(role="system", content=profile.system_prompt)]
    messages.extend(ChatMessage(role=turn.role, content=turn.content) for turn in history)
    messages.append(ChatMessage(role="user", content=user_message))
    return messages
