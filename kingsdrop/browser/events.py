"""Synthetic DOM event records and the fixed sequences built from them.

An :class:`InteractionEvent` is an immutable description of one event to
dispatch (``type`` plus its ``init`` dictionary) together with its offset
from the start of the sequence it belongs to.  Sequences are plain tuples
so they can be shared as templates and applied to any live element.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping, Tuple

# Mouse events dispatched by a click, in order.  Focus follows the last one.
CLICK_SEQUENCE: Tuple[str, ...] = ("mouseover", "mousedown", "mouseup", "click")

KEY_DOWN = "keydown"
KEY_UP = "keyup"
INPUT = "input"
CHANGE = "change"

_BASE_INIT: Mapping[str, Any] = MappingProxyType({"bubbles": True, "cancelable": True})


@dataclass(frozen=True)
class InteractionEvent:
    """One step of a synthetic interaction sequence."""

    type: str
    init: Mapping[str, Any] = field(default_factory=lambda: dict(_BASE_INIT))
    offset_ms: float = 0.0

    def __post_init__(self) -> None:
        if not self.type:
            raise ValueError("event type must be a non-empty string.")
        # Freeze the payload so templates cannot be mutated once shared.
        object.__setattr__(self, "init", MappingProxyType(dict(self.init)))

    def at(self, offset_ms: float) -> "InteractionEvent":
        """Return a copy of this event scheduled at ``offset_ms``."""
        return InteractionEvent(self.type, self.init, offset_ms)

    def as_init(self) -> dict[str, Any]:
        """Return a mutable copy of the init payload for dispatching."""
        return dict(self.init)


@dataclass(frozen=True)
class BoundingBox:
    """Viewport-relative rectangle of an element."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> Tuple[float, float]:
        return (self.x + self.width / 2, self.y + self.height / 2)


def key_code(char: str) -> str:
    """Return the ``KeyboardEvent.code`` for a single printable character."""
    if len(char) != 1:
        raise ValueError("key_code expects a single character.")
    if char.isascii() and char.isalpha():
        return f"Key{char.upper()}"
    if char.isascii() and char.isdigit():
        return f"Digit{char}"
    if char == " ":
        return "Space"
    return ""


def mouse_sequence(box: BoundingBox) -> Tuple[InteractionEvent, ...]:
    """Build the click template aimed at the centre of ``box``."""
    client_x, client_y = box.center
    init = {
        **_BASE_INIT,
        "clientX": client_x,
        "clientY": client_y,
        "button": 0,
    }
    events = []
    for event_type in CLICK_SEQUENCE:
        # ``buttons`` reports the primary button held only while pressed.
        buttons = 1 if event_type == "mousedown" else 0
        events.append(InteractionEvent(event_type, {**init, "buttons": buttons}))
    return tuple(events)


def key_sequence(char: str, offset_ms: float = 0.0) -> Tuple[InteractionEvent, InteractionEvent, InteractionEvent]:
    """Return the ``keydown``/``input``/``keyup`` triplet for ``char``."""
    key_init = {**_BASE_INIT, "key": char, "code": key_code(char)}
    return (
        InteractionEvent(KEY_DOWN, key_init, offset_ms),
        InteractionEvent(INPUT, {"bubbles": True, "inputType": "insertText", "data": char}, offset_ms),
        InteractionEvent(KEY_UP, key_init, offset_ms),
    )


def notification(event_type: str, offset_ms: float = 0.0) -> InteractionEvent:
    """Return a plain bubbling notification such as ``input`` or ``change``."""
    return InteractionEvent(event_type, {"bubbles": True}, offset_ms)


__all__ = [
    "BoundingBox",
    "CHANGE",
    "CLICK_SEQUENCE",
    "INPUT",
    "InteractionEvent",
    "KEY_DOWN",
    "KEY_UP",
    "key_code",
    "key_sequence",
    "mouse_sequence",
    "notification",
]
