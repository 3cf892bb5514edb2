"""Replay human-like pointer and keyboard sequences against page elements.

Every operation takes an element handle that may be ``None`` (a locator
that came back empty).  That is checked once on entry and reported as
``False``; no events are dispatched in that case.
"""

from __future__ import annotations

import logging
import random
from typing import Optional

from .dom import ElementHandle
from .events import CHANGE, INPUT, BoundingBox, key_sequence, mouse_sequence, notification
from .timing import DEFAULT_MAX_DELAY_MS, DEFAULT_MIN_DELAY_MS, human_delay

logger = logging.getLogger(__name__)

_EMPTY_BOX = BoundingBox(0.0, 0.0, 0.0, 0.0)


class Simulator:
    """Dispatch synthetic input the way a page script would observe a user.

    ``rng`` drives the per-keystroke jitter; pass a seeded
    :class:`random.Random` for reproducible cadences.
    """

    def __init__(
        self,
        *,
        rng: Optional[random.Random] = None,
        min_delay_ms: int = DEFAULT_MIN_DELAY_MS,
        max_delay_ms: int = DEFAULT_MAX_DELAY_MS,
    ) -> None:
        self._rng = rng or random.Random()
        self._min_delay_ms = min_delay_ms
        self._max_delay_ms = max_delay_ms

    async def simulate_click(self, element: Optional[ElementHandle]) -> bool:
        """Hover, press, release and click at the element centre, then focus it."""
        if element is None:
            logger.debug("simulate_click: no element")
            return False
        box = await element.bounding_box() or _EMPTY_BOX
        for event in mouse_sequence(box):
            await element.dispatch(event)
        await element.focus()
        logger.debug("simulate_click: clicked at %s", box.center)
        return True

    async def simulate_type(
        self,
        element: Optional[ElementHandle],
        text: str,
        min_delay_ms: Optional[int] = None,
        max_delay_ms: Optional[int] = None,
    ) -> bool:
        """Type ``text`` one character at a time with jittered pauses.

        The field is emptied first, so on return its content equals ``text``
        unless the page changed it in between.  A single ``change`` event is
        fired after the last character.
        """
        if element is None:
            logger.debug("simulate_type: no element")
            return False
        low = self._min_delay_ms if min_delay_ms is None else min_delay_ms
        high = self._max_delay_ms if max_delay_ms is None else max_delay_ms

        await element.focus()
        await element.set_content_via_trusted_path("")
        offset_ms = 0.0
        for char in text:
            key_down, input_event, key_up = key_sequence(char, offset_ms)
            await element.dispatch(key_down)
            current = await element.content()
            await element.set_content_via_trusted_path(current + char)
            await element.dispatch(input_event)
            await element.dispatch(key_up)
            offset_ms += await human_delay(low, high, self._rng)
        await element.dispatch(notification(CHANGE, offset_ms))
        logger.debug("simulate_type: typed %d characters over %.0fms", len(text), offset_ms)
        return True

    async def simulate_input(self, element: Optional[ElementHandle], value: str) -> bool:
        """Set ``value`` in one step (no keystrokes) and commit it."""
        if element is None:
            logger.debug("simulate_input: no element")
            return False
        await element.focus()
        await element.set_content_via_trusted_path(value)
        await element.dispatch(notification(INPUT))
        await element.dispatch(notification(CHANGE))
        await element.blur()
        return True

    async def clear(self, element: Optional[ElementHandle]) -> bool:
        """Empty the field and let listeners know through ``input``."""
        if element is None:
            return False
        await element.set_content_via_trusted_path("")
        await element.dispatch(notification(INPUT))
        return True


__all__ = ["Simulator"]
