"""Tests for raw event classification"""

import pytest

from stillness.events import Intent, classify, extract_event_type


@pytest.mark.parametrize("payload,intent", [
    ({"textEvent": {"eventType": 0}}, Intent.TAP),
    ({"listEvent": {"eventType": 0}}, Intent.TAP),
    ({"listEvent": {"eventType": 13}}, Intent.TAP),
    ({"textEvent": {"eventType": 2}}, Intent.SWIPE_UP),
    ({"textEvent": {"eventType": 1}}, Intent.SWIPE_DOWN),
    ({"sysEvent": {"eventType": 5}}, Intent.FOREGROUND_EXIT),
    ({"sysEvent": {"eventType": 4}}, Intent.FOREGROUND_ENTER),
    ({"jsonData": {"sysEvent": {"eventType": "5"}}}, Intent.FOREGROUND_EXIT),
    ({"jsonData": {"eventType": " 0 "}}, Intent.TAP),
    (2, Intent.SWIPE_UP),
])
def test_classifies_known_shapes(payload, intent):
    assert classify(payload).intent is intent


@pytest.mark.parametrize("payload", [
    None,
    {},
    {"textEvent": {"eventType": "tap"}},
    {"jsonData": {"eventType": "1.5"}},
    {"jsonData": "garbage"},
    "nan",
    True,
])
def test_malformed_payload_is_no_event(payload):
    assert classify(payload) is None


def test_foreground_codes_only_from_system_events():
    event = classify({"textEvent": {"eventType": 5}})
    assert event.intent is Intent.OTHER
    assert event.code == 5


def test_custom_tap_codes():
    assert classify({"textEvent": {"eventType": 13}}, frozenset({0})).intent is Intent.OTHER
    assert classify({"textEvent": {"eventType": 7}}, frozenset({0, 7})).intent is Intent.TAP


def test_gesture_flag():
    assert classify(0).is_gesture
    assert not classify({"sysEvent": {"eventType": 4}}).is_gesture


def test_extracts_numeric_strings():
    assert extract_event_type({"listEvent": {"eventType": "2"}}) == 2


@pytest.mark.parametrize("payload", [
    {"listEvent": {"currentSelectItemIndex": 0}},
    {"textEvent": {"containerID": 4}},
    {"textEvent": {"eventType": ""}},
    {"textEvent": {}},
])
def test_missing_event_type_is_a_click(payload):
    event = classify(payload)
    assert event.intent is Intent.TAP
    assert event.code == 0


def test_system_event_without_type_is_not_foreground():
    assert classify({"sysEvent": {}}).intent is Intent.TAP
    assert classify({"jsonData": {"sysEvent": {}}}).code == 0
