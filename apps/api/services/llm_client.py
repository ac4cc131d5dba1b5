import logging
from typing import Optional, Sequence

import requests

from ..config import Settings
from ..errors import GenerationFailed
from ..models import ChatMessage

logger = logging.getLogger(__name__)


class CompletionClient:
    """
    Chat Completions and speech client for the LLM provider.

    Single-shot: no retries. Any non-2xx status, transport error or empty
    result raises GenerationFailed with the provider body attached.
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4",
        base_url: str = "https://api.openai.com/v1",
        max_tokens: int = 500,
        timeout: float = 30.0,
        tts_model: str = "tts-1",
        tts_voice: str = "nova",
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.url = f"{self.base_url}/chat/completions"
        self.speech_url = f"{self.base_url}/audio/speech"
        self.tts_model = tts_model
        self.tts_voice = tts_voice
        self.max_tokens = max_tokens
        self.timeout = timeout
        self.session = session or requests.Session()

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionClient":
        return cls(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url,
            max_tokens=settings.openai_max_tokens,
            timeout=settings.http_timeout_seconds,
            tts_model=settings.openai_tts_model,
            tts_voice=settings.openai_tts_voice,
        )

    def build_payload(self, messages: Sequence[ChatMessage], temperature: float) -> dict:
        return {
            "model": self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
            "max_tokens": self.max_tokens,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
        }

    def complete(self, messages: Sequence[ChatMessage], temperature: float) -> str:
        if not self.api_key:
            raise GenerationFailed("Error de OpenAI: OPENAI_API_KEY no configurada")

        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.post(
                self.url,
                json=self.build_payload(messages, temperature),
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Completion request failed: {e}")
            raise GenerationFailed(f"Error de OpenAI: {e}", provider_body=str(e))

        if not resp.ok:
            body = resp.text
            logger.error(f"Completion provider returned {resp.status_code}: {body[:500]}")
            raise GenerationFailed(f"Error de OpenAI: {body}", provider_body=body)

        try:
            data = resp.json()
        except ValueError:
            raise GenerationFailed("No se recibió respuesta del asistente", provider_body=resp.text)

        content = None
        choices = (data.get("choices") if isinstance(data, dict) else None) or []
        if choices:
            content = (choices[0].get("message") or {}).get("content")
        if not content:
            raise GenerationFailed("No se recibió respuesta del asistente", provider_body=resp.text)
        return content

    def synthesize(self, text: str, voice: Optional[str] = None) -> bytes:
        """Render text as mp3 audio with the provider's speech endpoint."""
        if not self.api_key:
            raise GenerationFailed("Error de OpenAI TTS: OPENAI_API_KEY no configurada")

        payload = {
            "model": self.tts_model,
            "input": text,
            "voice": voice or self.tts_voice,
            "response_format": "mp3",
            "speed": 1.0,
        }
        headers = {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }
        try:
            resp = self.session.post(self.speech_url, json=payload, headers=headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.error(f"Speech request failed: {e}")
            raise GenerationFailed(f"Error de OpenAI TTS: {e}", provider_body=str(e))

        if not resp.ok:
            body = resp.text
            logger.error(f"Speech provider returned {resp.status_code}: {body[:500]}")
            raise GenerationFailed(f"Error de OpenAI TTS: {body}", provider_body=body)

        if not resp.content:
            raise GenerationFailed("Error de OpenAI TTS: respuesta de audio vacía")
        return resp.content
