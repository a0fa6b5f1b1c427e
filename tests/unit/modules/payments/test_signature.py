"""Tests for webhook signature verification."""

import hashlib
import hmac

import pytest

from src.api.core.exceptions.base import ConfigurationError
from src.modules.payments.signature import WebhookSignatureVerifier, compute_signature

SECRET = "wsk_test_secret"
NOW = 1_760_000_000.0
BODY = b'{"event":"ORDER_COMPLETED","order_id":"ord-1"}'


def _verifier(**kwargs) -> WebhookSignatureVerifier:
    return WebhookSignatureVerifier(SECRET, clock=lambda: NOW, **kwargs)


def _signature(timestamp: str, body: bytes = BODY) -> str:
    return compute_signature(SECRET, timestamp, body.decode())


def test_signature_format():
    timestamp = str(int(NOW * 1000))
    expected = hmac.new(
        SECRET.encode(),
        f"v1.{timestamp}.{BODY.decode()}".encode(),
        hashlib.sha256,
    ).hexdigest()

    assert _signature(timestamp) == f"v1={expected}"


def test_valid_signature_with_millisecond_timestamp():
    timestamp = str(int(NOW * 1000))

    assert _verifier().verify(BODY, _signature(timestamp), timestamp) is True


def test_valid_signature_with_second_timestamp():
    timestamp = str(int(NOW))

    assert _verifier().verify(BODY, _signature(timestamp), timestamp) is True


def test_any_matching_candidate_is_accepted():
    timestamp = str(int(NOW * 1000))
    header = f"v1=deadbeef, {_signature(timestamp)}"

    assert _verifier().verify(BODY, header, timestamp) is True


@pytest.mark.parametrize("skew_seconds, accepted", [(299, True), (-299, True), (301, False), (-301, False)])
def test_replay_window(skew_seconds, accepted):
    timestamp = str(int((NOW + skew_seconds) * 1000))

    assert _verifier().verify(BODY, _signature(timestamp), timestamp) is accepted


def test_tampered_body_is_rejected():
    timestamp = str(int(NOW * 1000))
    signature = _signature(timestamp)

    assert _verifier().verify(BODY.replace(b"ord-1", b"ord-2"), signature, timestamp) is False


def test_signature_for_other_timestamp_is_rejected():
    timestamp = str(int(NOW * 1000))
    other = str(int(NOW * 1000) + 1)

    assert _verifier().verify(BODY, _signature(other), timestamp) is False


def test_wrong_secret_is_rejected():
    timestamp = str(int(NOW * 1000))
    signature = compute_signature("other-secret", timestamp, BODY.decode())

    assert _verifier().verify(BODY, signature, timestamp) is False


@pytest.mark.parametrize(
    "body, signature, timestamp",
    [
        (b"", "v1=abc", "1"),
        (BODY, None, "1"),
        (BODY, "", "1"),
        (BODY, "v1=abc", None),
        (BODY, "v1=abc", "not-a-number"),
        (BODY, "v1=abc", "nan"),
        (BODY, "v1=abc", "inf"),
    ],
)
def test_missing_or_malformed_inputs(body, signature, timestamp):
    assert _verifier().verify(body, signature, timestamp) is False


def test_custom_tolerance():
    timestamp = str(int((NOW - 30) * 1000))

    assert _verifier(tolerance_seconds=10).verify(
        BODY, _signature(timestamp), timestamp
    ) is False


@pytest.mark.parametrize("secret", ["", None])
def test_missing_secret_is_a_configuration_error(secret):
    with pytest.raises(ConfigurationError):
        WebhookSignatureVerifier(secret)


@pytest.mark.parametrize("timestamp", ["nan", "NaN", "inf", "-inf", "Infinity"])
def test_non_finite_timestamp_is_rejected_even_when_signed(timestamp):
    assert _verifier().verify(BODY, _signature(timestamp), timestamp) is False
