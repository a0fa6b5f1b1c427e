"""Webhook signature verification (HMAC-SHA256 with a replay window)."""

import hashlib
import hmac
import math
import time
from typing import Callable

from src.api.core.exceptions.base import ConfigurationError
from src.utils.logger import get_logger

logger = get_logger(__name__)

SIGNATURE_VERSION = "v1"
DEFAULT_TOLERANCE_SECONDS = 300

# Provider timestamps are epoch milliseconds; anything below this is seconds
_MILLISECONDS_THRESHOLD = 10**11


def compute_signature(secret: str, timestamp: str, raw_body: str) -> str:
    """``v1=`` + hex HMAC-SHA256 of ``v1.{timestamp}.{raw_body}``."""
    message = f"{SIGNATURE_VERSION}.{timestamp}.{raw_body}"
    digest = hmac.new(
        secret.encode("utf-8"), message.encode("utf-8"), hashlib.sha256
    ).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def _timestamp_seconds(timestamp: str) -> float | None:
    try:
        value = float(timestamp.strip())
    except ValueError:
        return None
    if not math.isfinite(value):
        return None
    if value >= _MILLISECONDS_THRESHOLD:
        return value / 1000
    return value


class WebhookSignatureVerifier:
    def __init__(
        self,
        secret: str | None,
        tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
        clock: Callable[[], float] = time.time,
    ):
        if not secret:
            raise ConfigurationError("Webhook signing secret is not configured")
        self._secret = secret
        self.tolerance_seconds = tolerance_seconds
        self._clock = clock

    def verify(
        self,
        raw_body: bytes | str | None,
        signature_header: str | None,
        timestamp_header: str | None,
    ) -> bool:
        """True when any candidate in the header signs this body and timestamp."""
        if not raw_body or not signature_header or not timestamp_header:
            return False

        sent_at = _timestamp_seconds(timestamp_header)
        if sent_at is None:
            logger.warning("webhook_timestamp_invalid", timestamp=timestamp_header)
            return False
        if abs(self._clock() - sent_at) > self.tolerance_seconds:
            logger.warning("webhook_timestamp_outside_window", timestamp=timestamp_header)
            return False

        if isinstance(raw_body, bytes):
            try:
                raw_body = raw_body.decode("utf-8")
            except UnicodeDecodeError:
                return False

        expected = compute_signature(self._secret, timestamp_header.strip(), raw_body)
        candidates = [c.strip() for c in signature_header.split(",") if c.strip()]

        matched = False
        # Compare every candidate so timing does not reveal which one matched
        for candidate in candidates:
            if hmac.compare_digest(candidate.encode(), expected.encode()):
                matched = True
        return matched
