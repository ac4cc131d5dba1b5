"""
SMS delivery adapters.

The sender is chosen once from configuration: Twilio when all three
credentials are present, otherwise a simulated sender whose message ids
start with SIMULATED_SID_PREFIX.
"""
import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import requests

from ..config import Settings
from ..errors import NotificationFailed

logger = logging.getLogger(__name__)

SIMULATED_SID_PREFIX = "sim_"
TWILIO_API_BASE = "https://api.twilio.com/2010-04-01"


@dataclass(frozen=True)
class SmsReceipt:
    sid: str
    simulated: bool


class SmsSender(ABC):

    @abstractmethod
    def send(self, to: str, body: str) -> SmsReceipt:
        """Deliver `body` to `to`. Raises NotificationFailed on provider errors."""


class TwilioSmsSender(SmsSender):

    def __init__(
        self,
        account_sid: str,
        auth_token: str,
        from_number: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self.account_sid = account_sid
        self.auth_token = auth_token
        self.from_number = from_number
        self.timeout = timeout
        self.session = session or requests.Session()
        self.url = f"{TWILIO_API_BASE}/Accounts/{account_sid}/Messages.json"

    def send(self, to: str, body: str) -> SmsReceipt:
        try:
            resp = self.session.post(
                self.url,
                data={"To": to, "From": self.from_number, "Body": body},
                auth=(self.account_sid, self.auth_token),
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error(f"Error sending SMS: {e}")
            raise NotificationFailed(f"No se pudo enviar SMS: {e}")

        if not resp.ok:
            logger.error(f"Twilio returned {resp.status_code}: {resp.text[:500]}")
            raise NotificationFailed(
                f"No se pudo enviar SMS: Error de Twilio: {resp.status_code} - {resp.text}"
            )

        try:
            sid = resp.json().get("sid")
        except (ValueError, AttributeError):
            sid = None
        if not sid:
            raise NotificationFailed("No se pudo enviar SMS: respuesta de Twilio sin SID")
        return SmsReceipt(sid=sid, simulated=False)


class SimulatedSmsSender(SmsSender):
    """Sandbox sender used when Twilio is not configured. Never fails."""

    def send(self, to: str, body: str) -> SmsReceipt:
        sid = f"{SIMULATED_SID_PREFIX}{int(time.time() * 1000)}_{uuid.uuid4().hex[:9]}"
        logger.info(f"SMS SIMULATION (Twilio not configured) to={to} sid={sid}\n{body}")
        return SmsReceipt(sid=sid, simulated=True)


def is_simulated_sid(sid: Optional[str]) -> bool:
    return bool(sid) and sid.startswith(SIMULATED_SID_PREFIX)


def build_sms_sender(settings: Settings) -> SmsSender:
    if settings.twilio_configured:
        logger.info("SMS delivery via Twilio")
        return TwilioSmsSender(
            account_sid=settings.twilio_account_sid,
            auth_token=settings.twilio_auth_token,
            from_number=settings.twilio_phone_number,
            timeout=settings.http_timeout_seconds,
        )
    logger.warning("Twilio credentials missing; SMS delivery is simulated.")
    return SimulatedSmsSender()
