"""
FastAPI dependencies shared by the routes.

Outbound clients (LLM, SMS) are built once at startup and kept on
app.state; tests swap any of these through app.dependency_overrides.
"""
from functools import partial
from typing import Callable, Iterator, List, Optional, Tuple

from fastapi import Depends, Header, Request

from .config import Settings, get_settings
from .errors import ServiceUnavailable, Unauthenticated
from .services.llm_client import CompletionClient
from .services.sms import SmsSender
from .services.supabase_client import SupabaseStore, get_service_client

StoreFactory = Callable[[str], SupabaseStore]
ServiceStoreFactory = Callable[[], SupabaseStore]


def get_store_factory(settings: Settings = Depends(get_settings)) -> Iterator[StoreFactory]:
    """Yields a per-request factory; every store it built is closed when the request ends."""
    stores: List[SupabaseStore] = []

    def factory(access_token: str) -> SupabaseStore:
        store = SupabaseStore.for_access_token(settings, access_token)
        stores.append(store)
        return store

    try:
        yield factory
    finally:
        for store in stores:
            store.close()


def build_service_store(settings: Settings) -> SupabaseStore:
    client = get_service_client(settings)
    if client is None:
        raise ServiceUnavailable("Servicio de notificaciones no configurado")
    return SupabaseStore(client)


def get_service_store_factory(settings: Settings = Depends(get_settings)) -> ServiceStoreFactory:
    # Resolved by the handler after authentication, not by FastAPI up front
    return partial(build_service_store, settings)


def get_completion_client(request: Request) -> CompletionClient:
    return request.app.state.completion_client


def get_sms_sender(request: Request) -> SmsSender:
    return request.app.state.sms_sender


def get_authorization(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    return authorization


def parse_bearer_token(authorization: Optional[str]) -> str:
    if not authorization:
        raise Unauthenticated("Token de autorización requerido")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise Unauthenticated("Token de autorización requerido")
    return token.strip()


def authenticate(authorization: Optional[str], store_factory: StoreFactory) -> Tuple[SupabaseStore, str]:
    """Resolve the caller. Returns a store scoped to the caller and their user id."""
    token = parse_bearer_token(authorization)
    store = store_factory(token)
    return store, store.get_user_id()
