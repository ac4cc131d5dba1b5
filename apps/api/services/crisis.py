"""
Risk lexicon screening for chat messages.

Plain substring containment over a fixed list of self-harm phrases. Recall
is preferred over precision: "no quiero morir" still matches "quiero morir".
"""
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable, List, Tuple

CRISIS_KEYWORDS: Tuple[str, ...] = (
    "suicidio",
    "suicidarme",
    "matarme",
    "quitarme la vida",
    "no quiero vivir",
    "quiero morir",
    "acabar con todo",
    "no vale la pena vivir",
    "fin de todo",
    "terminar con mi vida",
    "terminar con todo",
    "no soporto más",
    "mejor estar muerto",
    "desaparecer para siempre",
    "no hay salida",
    "es demasiado dolor",
)


@dataclass(frozen=True)
class CrisisDetection:
    is_crisis: bool
    matches: List[str] = field(default_factory=list)


def normalize_text(text: str) -> str:
    """Casefold and drop accents so "Más" and "mas" compare equal."""
    decomposed = unicodedata.normalize("NFKD", text.casefold())
    return "".join(ch for ch in decomposed if not unicodedata.combining(ch))


def detect_crisis(message: str, lexicon: Iterable[str] = CRISIS_KEYWORDS) -> CrisisDetection:
    if not message:
        return CrisisDetection(is_crisis=False, matches=[])

    haystack = normalize_text(message)
    matches = [
        phrase
        for phrase in dict.fromkeys(lexicon)
        if phrase and normalize_text(phrase) in haystack
    ]
    return CrisisDetection(is_crisis=bool(matches), matches=matches)
