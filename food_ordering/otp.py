"""One-time codes for phone verification."""

import logging
import secrets
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

import httpx

from .errors import UpstreamFailure, ValidationError

logger = logging.getLogger("food-ordering.otp")

MIN_PHONE_LENGTH = 10
OTP_LENGTH = 6


@dataclass
class OtpResult:
    success: bool
    code: Optional[str] = None
    error: Optional[str] = None


class OtpStore:
    """In-memory codes keyed by phone, with per-entry expiry.

    ``ttl_seconds`` of 0 keeps codes until they are used.
    """

    def __init__(self, ttl_seconds: float = 600, clock: Callable[[], float] = time.monotonic):
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[str, Optional[float]]] = {}
        self._lock = threading.Lock()

    def put(self, phone: str, code: str) -> None:
        expires_at = self._clock() + self.ttl_seconds if self.ttl_seconds else None
        with self._lock:
            self._entries[phone] = (code, expires_at)

    def discard(self, phone: str) -> None:
        with self._lock:
            self._entries.pop(phone, None)

    def check_and_consume(self, phone: str, code: str) -> Optional[bool]:
        """Return None when no live code exists, else whether ``code`` matched.

        A matching code is removed; a mismatch leaves it for another attempt.
        """
        with self._lock:
            entry = self._entries.get(phone)
            if entry is None:
                return None
            saved, expires_at = entry
            if expires_at is not None and self._clock() >= expires_at:
                del self._entries[phone]
                return None
            if not secrets.compare_digest(saved, code):
                return False
            del self._entries[phone]
            return True


class SmsSender:
    """Delivers codes through the notification service, or logs them when none is set."""

    def __init__(self, base_url: str = "", client_factory=None):
        self.base_url = base_url
        self._client_factory = client_factory or (lambda: httpx.Client(timeout=5.0))

    def send(self, phone: str, message: str) -> None:
        if not self.base_url:
            logger.info(f"SMS to {phone}: {message}")
            return
        try:
            with self._client_factory() as client:
                r = client.post(
                    f"{self.base_url}/v1/notifications/sms",
                    json={"event_type": "OTP", "recipient": phone, "message": message},
                )
                r.raise_for_status()
        except httpx.HTTPError as e:
            raise UpstreamFailure("notification-service", str(e))


class OtpService:
    def __init__(self, store: OtpStore, sender: SmsSender):
        self.store = store
        self.sender = sender

    def send_otp(self, phone: str) -> OtpResult:
        _check_phone(phone)
        code = str(secrets.randbelow(900000) + 100000)
        self.store.put(phone, code)
        try:
            self.sender.send(phone, f"Your verification code is {code}")
        except UpstreamFailure as e:
            self.store.discard(phone)
            logger.warning(f"Failed to deliver OTP to {phone}: {e}")
            return OtpResult(success=False, error=str(e))
        logger.info(f"OTP sent to {phone}")
        return OtpResult(success=True, code=code)

    def verify_otp(self, phone: str, code: str) -> OtpResult:
        _check_phone(phone)
        if not code or len(code) != OTP_LENGTH or not code.isdigit():
            raise ValidationError("Invalid OTP format. Must be a 6-digit code.")

        matched = self.store.check_and_consume(phone, code)
        if matched is None:
            logger.info(f"No OTP on record for {phone}")
            return OtpResult(success=False, error="OTP not found or expired")
        if not matched:
            logger.info(f"OTP mismatch for {phone}")
            return OtpResult(success=False, error="Invalid OTP")
        return OtpResult(success=True)


def _check_phone(phone: str):
    if not phone or len(phone) < MIN_PHONE_LENGTH:
        raise ValidationError(
            f"Invalid phone number format. Must be at least {MIN_PHONE_LENGTH} characters."
        )
