"""Tests for parsing provider webhook payloads into typed events."""

import pytest
from pydantic import ValidationError

from src.modules.payments.events import (
    DisputeEvent,
    OrderAuthorisedEvent,
    OrderCancelledEvent,
    OrderCompletedEvent,
    OrderFailedEvent,
    UnknownEvent,
    classify_event,
    parse_webhook_event,
)


@pytest.mark.parametrize(
    "name, kind",
    [
        ("ORDER_COMPLETED", "order_completed"),
        ("order.completed", "order_completed"),
        ("ORDER_AUTHORISED", "order_authorised"),
        ("ORDER_AUTHORIZED", "order_authorised"),
        ("ORDER_CANCELLED", "order_cancelled"),
        ("ORDER_PAYMENT_FAILED", "order_failed"),
        ("ORDER_PAYMENT_DECLINED", "order_failed"),
        ("DISPUTE_ACTION_REQUIRED", "dispute"),
        ("PAYOUT_INITIATED", "unknown"),
    ],
)
def test_classify_event(name, kind):
    assert classify_event(name) == kind


def test_completed_event_carries_card_details():
    payload = {
        "event": "ORDER_COMPLETED",
        "order_id": "ord-1",
        "timestamp": "2026-10-19T09:00:00Z",
        "payment_method": {
            "type": "card",
            "brand": "visa",
            "last4": "4242",
            "exp_month": 12,
            "exp_year": 2030,
        },
    }

    event = parse_webhook_event(payload)

    assert isinstance(event, OrderCompletedEvent)
    assert event.order_id == "ord-1"
    assert event.payment_method.last4 == "4242"
    assert event.payment_method.is_card is True
    assert event.payload == payload


@pytest.mark.parametrize(
    "name, event_class",
    [
        ("ORDER_AUTHORISED", OrderAuthorisedEvent),
        ("ORDER_CANCELLED", OrderCancelledEvent),
        ("ORDER_PAYMENT_FAILED", OrderFailedEvent),
        ("DISPUTE_ACTION_REQUIRED", DisputeEvent),
        ("SOMETHING_NEW", UnknownEvent),
    ],
)
def test_other_events(name, event_class):
    event = parse_webhook_event({"event": name, "order_id": "ord-2"})

    assert isinstance(event, event_class)
    assert event.provider_event == name


def test_nested_order_data_is_accepted():
    event = parse_webhook_event(
        {"event": "ORDER_COMPLETED", "data": {"id": "ord-3", "state": "completed"}}
    )

    assert isinstance(event, OrderCompletedEvent)
    assert event.order_id == "ord-3"
    assert event.state == "completed"


@pytest.mark.parametrize(
    "payload",
    [
        {"order_id": "ord-1"},
        {"event": "ORDER_COMPLETED"},
        {"event": "", "order_id": "ord-1"},
        {"event": "ORDER_COMPLETED", "order_id": ""},
        {"event": 7, "order_id": "ord-1"},
    ],
)
def test_invalid_payloads_raise(payload):
    with pytest.raises(ValidationError):
        parse_webhook_event(payload)


@pytest.mark.parametrize(
    "extra",
    [
        {"timestamp": "yesterday"},
        {"amount": 9.5},
        {"state": ["completed"]},
        {"payment_method": "card"},
        {"payment_method": ["visa", "4242"]},
    ],
)
def test_malformed_informational_fields_are_dropped(extra):
    payload = {"event": "ORDER_COMPLETED", "order_id": "ord-4", **extra}

    event = parse_webhook_event(payload)

    assert isinstance(event, OrderCompletedEvent)
    assert event.order_id == "ord-4"
    assert event.payload == payload
    for field in extra:
        assert getattr(event, field, None) is None


@pytest.mark.parametrize(
    "card, expected",
    [
        ({"type": "card", "last4": "1234", "exp_month": ""}, ("1234", None, 2030)),
        ({"type": "card", "last4": "1234", "exp_month": "12/27"}, ("1234", None, 2030)),
        ({"type": "card", "last4": "1234", "exp_month": "7"}, ("1234", 7, 2030)),
        ({"type": "card", "last4": "123456"}, (None, 7, 2030)),
    ],
)
def test_malformed_card_fields_are_dropped(card, expected):
    card = {"exp_month": 7, "exp_year": 2030, **card}

    event = parse_webhook_event(
        {"event": "ORDER_COMPLETED", "order_id": "ord-5", "payment_method": card}
    )

    method = event.payment_method
    assert (method.last4, method.exp_month, method.exp_year) == expected
    assert method.is_card is (expected[0] is not None)
