"""
Stillness - Event classifier

Maps raw device events onto the handful of intents the overlay reacts to.

Raw events arrive as dicts in the shape the display host reports them:

    {"textEvent": {"eventType": 0}}      # tap on a text region
    {"listEvent": {"eventType": 2}}      # swipe up on the list region
    {"sysEvent": {"eventType": 5}}       # plugin left the foreground
    {"jsonData": {"eventType": "1"}}     # older hosts, stringly typed

A bare int (or numeric string) is accepted as an event code as well.
"""

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, FrozenSet, Optional

from .config import (
    EVT_CLICK,
    EVT_CLICK_ALT,
    EVT_FOREGROUND_ENTER,
    EVT_FOREGROUND_EXIT,
    EVT_SCROLL_BOTTOM,
    EVT_SCROLL_TOP,
)

DEFAULT_TAP_CODES = frozenset({EVT_CLICK, EVT_CLICK_ALT})


class Intent(str, Enum):
    TAP = "tap"
    SWIPE_UP = "swipe-up"
    SWIPE_DOWN = "swipe-down"
    FOREGROUND_ENTER = "foreground-enter"
    FOREGROUND_EXIT = "foreground-exit"
    OTHER = "other"  # well-formed code with no meaning to the overlay


@dataclass(frozen=True)
class Event:
    intent: Intent
    code: int

    @property
    def is_gesture(self) -> bool:
        return self.intent in (Intent.TAP, Intent.SWIPE_UP, Intent.SWIPE_DOWN)


def parse_code(value: Any) -> Optional[int]:
    """Numeric event code, or None when the field is missing or garbled"""
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if math.isfinite(value) and value.is_integer() else None
    try:
        number = float(str(value).strip())
    except ValueError:
        return None
    if not math.isfinite(number) or not number.is_integer():
        return None
    return int(number)


def _field(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, dict) else None


def _sub_event_code(event: dict) -> Optional[int]:
    # hosts leave eventType out for the zero code (click)
    value = event.get("eventType")
    if value is None or (isinstance(value, str) and not value.strip()):
        return EVT_CLICK
    return parse_code(value)


def extract_event_type(payload: Any) -> Optional[int]:
    """Event code from any of the known payload shapes"""
    if not isinstance(payload, dict):
        return parse_code(payload)
    for key in ("textEvent", "listEvent", "sysEvent"):
        if isinstance(payload.get(key), dict):
            return _sub_event_code(payload[key])
    json_data = payload.get("jsonData")
    if isinstance(_field(json_data, "sysEvent"), dict):
        return _sub_event_code(json_data["sysEvent"])
    return parse_code(_field(json_data, "eventType"))


def _is_system(payload: Any) -> bool:
    if not isinstance(payload, dict):
        return True
    return bool(payload.get("sysEvent")) or bool(_field(payload.get("jsonData"), "sysEvent"))


def classify(payload: Any, tap_codes: FrozenSet[int] = DEFAULT_TAP_CODES) -> Optional[Event]:
    """
    Classify one raw event

    Args:
        payload: Raw event as delivered by the device
        tap_codes: Codes treated as a tap (firmware revisions differ)

    Returns:
        Event, or None when the payload carries no readable code
    """
    code = extract_event_type(payload)
    if code is None:
        return None

    if _is_system(payload):
        if code == EVT_FOREGROUND_EXIT:
            return Event(Intent.FOREGROUND_EXIT, code)
        if code == EVT_FOREGROUND_ENTER:
            return Event(Intent.FOREGROUND_ENTER, code)

    if code == EVT_SCROLL_TOP:
        return Event(Intent.SWIPE_UP, code)
    if code == EVT_SCROLL_BOTTOM:
        return Event(Intent.SWIPE_DOWN, code)
    if code in tap_codes:
        return Event(Intent.TAP, code)
    return Event(Intent.OTHER, code)
