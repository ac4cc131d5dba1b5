"""
EmocionalIA+ API.

Run: uvicorn apps.api.main:app --reload
"""
import logging
from typing import Optional

from fastapi import Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse

from .config import Settings, configure_logging, get_settings
from .errors import CORS_HEADERS, register_error_handlers
from .routes import chat, emergency_sms, notifications, text_to_speech
from .services.llm_client import CompletionClient
from .services.sms import SimulatedSmsSender, build_sms_sender

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(title="EmocionalIA+ API", version="1.0.0")
    app.state.completion_client = CompletionClient.from_settings(settings)
    app.state.sms_sender = build_sms_sender(settings)

    @app.middleware("http")
    async def cors(request: Request, call_next):
        # Preflight is answered here for every path
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)
        response = await call_next(request)
        response.headers.update(CORS_HEADERS)
        return response

    register_error_handlers(app)

    app.include_router(chat.router)
    app.include_router(emergency_sms.router)
    app.include_router(notifications.router)
    app.include_router(text_to_speech.router)

    @app.get("/health")
    def health(request: Request, settings: Settings = Depends(get_settings)):
        sender = getattr(request.app.state, "sms_sender", None)
        return {
            "status": "ok",
            "service": "api",
            "supabase_configured": settings.supabase_configured,
            "llm_configured": settings.llm_configured,
            "sms_mode": "simulated" if isinstance(sender, SimulatedSmsSender) else "twilio",
        }

    @app.get("/ready")
    def ready(settings: Settings = Depends(get_settings)):
        checks = {
            "supabase": settings.supabase_configured,
            "llm": settings.llm_configured,
        }
        is_ready = all(checks.values())
        return JSONResponse(
            status_code=200 if is_ready else 503,
            content={"status": "ready" if is_ready else "not_ready", "checks": checks},
        )

    logger.info(
        f"API ready (supabase={settings.supabase_configured}, llm={settings.llm_configured}, "
        f"twilio={settings.twilio_configured})"
    )
    return app


app = create_app()
