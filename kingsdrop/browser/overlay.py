"""Transient on-page feedback: status overlays, highlights and warnings.

Page handlers report through the :class:`Notifier` protocol.
:class:`PageOverlay` renders into the Playwright page; anything else that
implements the protocol (e.g. a recorder in tests) can stand in for it.
"""

from __future__ import annotations

import logging
from typing import Mapping, Optional, Protocol

from playwright.async_api import Page

from .dom import ElementHandle, PlaywrightElement

logger = logging.getLogger(__name__)

OVERLAY_ID = "kings-drop-overlay"
GLITCH_WARNING_ID = "kinguin-glitch-warning"

COLORS: Mapping[str, str] = {
    "success": "rgba(76, 175, 80, 0.9)",
    "error": "rgba(244, 67, 54, 0.9)",
    "info": "rgba(33, 150, 243, 0.9)",
    "warning": "rgba(255, 152, 0, 0.9)",
    "glitch": "rgba(244, 67, 54, 0.95)",
    "neutral": "rgba(0, 0, 0, 0.85)",
}

POSITIONS = ("bottom-right", "bottom-left", "top-right", "top-left")

DEFAULT_ANIMATIONS = """
  @keyframes kings-drop-pulse {
    0% { box-shadow: 0 0 0 0 rgba(255, 193, 7, 0.7); }
    70% { box-shadow: 0 0 0 10px rgba(255, 193, 7, 0); }
    100% { box-shadow: 0 0 0 0 rgba(255, 193, 7, 0); }
  }
  @keyframes kings-drop-glow-success {
    0% { box-shadow: 0 0 5px #4CAF50; }
    50% { box-shadow: 0 0 20px #4CAF50; }
    100% { box-shadow: 0 0 5px #4CAF50; }
  }
  @keyframes kings-drop-glow-warning {
    0% { box-shadow: 0 0 5px #FF9800; }
    50% { box-shadow: 0 0 20px #FF9800; }
    100% { box-shadow: 0 0 5px #FF9800; }
  }
  @keyframes kings-drop-glow-error {
    0% { box-shadow: 0 0 5px #f44336; }
    50% { box-shadow: 0 0 20px #f44336; }
    100% { box-shadow: 0 0 5px #f44336; }
  }
"""

HIGHLIGHT_STYLES: Mapping[str, Mapping[str, str]] = {
    "success": {"border": "3px solid #4CAF50", "animation": "kings-drop-glow-success 1.5s infinite"},
    "warning": {"border": "3px solid #FF9800", "animation": "kings-drop-glow-warning 1.5s infinite"},
    "error": {"border": "3px solid #f44336", "animation": "kings-drop-glow-error 1.5s infinite"},
    "attention": {"border": "3px solid #FFC107", "animation": "kings-drop-pulse 1.5s infinite"},
}

GLITCH_WARNING_CSS = """
  @keyframes kinguin-glitch-blink {
    0%, 50% { opacity: 1; }
    51%, 100% { opacity: 0.5; }
  }
"""

_INJECT_STYLES_SCRIPT = """
({ css, id }) => {
    const existing = document.getElementById(id);
    if (existing) {
        existing.textContent = css;
        return;
    }
    const style = document.createElement('style');
    style.id = id;
    style.textContent = css;
    (document.head || document.documentElement).appendChild(style);
}
"""

_OVERLAY_SCRIPT = """
({ id, text, position, backgroundColor, autoRemove }) => {
    const existing = document.getElementById(id);
    if (existing) existing.remove();
    const overlay = document.createElement('div');
    overlay.id = id;
    overlay.textContent = text;
    const positions = {
        'bottom-right': { bottom: '20px', right: '20px' },
        'bottom-left': { bottom: '20px', left: '20px' },
        'top-right': { top: '20px', right: '20px' },
        'top-left': { top: '20px', left: '20px' },
    };
    Object.assign(overlay.style, {
        position: 'fixed',
        padding: '12px 18px',
        borderRadius: '8px',
        backgroundColor,
        color: '#fff',
        fontFamily: 'Arial, sans-serif',
        fontSize: '14px',
        fontWeight: 'bold',
        zIndex: '999999',
        boxShadow: '0 4px 12px rgba(0,0,0,0.3)',
        ...positions[position],
    });
    (document.body || document.documentElement).appendChild(overlay);
    if (autoRemove > 0) {
        setTimeout(() => overlay.remove(), autoRemove);
    }
}
"""

_HIGHLIGHT_SCRIPT = """
(element, { styles, duration }) => {
    const original = {};
    for (const key of Object.keys(styles)) {
        original[key] = element.style[key];
    }
    Object.assign(element.style, styles);
    if (duration > 0) {
        setTimeout(() => Object.assign(element.style, original), duration);
    }
}
"""

_GLITCH_SCRIPT = """
(element, { id, text }) => {
    Object.assign(element.style, {
        border: '3px solid red',
        backgroundColor: 'rgba(255, 0, 0, 0.3)',
        boxShadow: '0 0 10px red',
    });
    const warning = document.createElement('div');
    warning.id = id;
    warning.textContent = text;
    Object.assign(warning.style, {
        color: 'red',
        fontWeight: 'bold',
        fontSize: '16px',
        padding: '10px',
        marginTop: '10px',
        backgroundColor: '#ffeeee',
        border: '2px solid red',
        borderRadius: '4px',
        textAlign: 'center',
        animation: 'kinguin-glitch-blink 1s infinite',
    });
    const anchor = element.closest('div') || element.parentElement || element;
    anchor.insertAdjacentElement('afterend', warning);
}
"""


class Notifier(Protocol):
    """Where page handlers send user-visible progress."""

    async def notify(
        self,
        text: str,
        *,
        level: str = "info",
        position: str = "bottom-right",
        auto_remove_ms: int = 3000,
    ) -> None: ...

    async def highlight(
        self,
        element: ElementHandle,
        styles: Mapping[str, str],
        *,
        css: Optional[str] = None,
        css_id: Optional[str] = None,
        duration_ms: int = 0,
    ) -> None: ...

    async def warn_glitch(self, element: ElementHandle, text: str = "refresh the page!!!") -> None: ...


class PageOverlay:
    """:class:`Notifier` that draws into a Playwright page."""

    def __init__(self, page: Page) -> None:
        self._page = page

    async def notify(
        self,
        text: str,
        *,
        level: str = "info",
        position: str = "bottom-right",
        auto_remove_ms: int = 3000,
    ) -> None:
        if level not in COLORS:
            raise ValueError(f"level must be one of {sorted(COLORS)}.")
        if position not in POSITIONS:
            raise ValueError(f"position must be one of {POSITIONS}.")
        logger.info("overlay [%s] %s", level, text)
        await self._page.evaluate(
            _OVERLAY_SCRIPT,
            {
                "id": OVERLAY_ID,
                "text": text,
                "position": position,
                "backgroundColor": COLORS[level],
                "autoRemove": max(0, int(auto_remove_ms)),
            },
        )

    async def remove(self) -> None:
        await self._page.evaluate(
            "(id) => { const el = document.getElementById(id); if (el) el.remove(); }",
            OVERLAY_ID,
        )

    async def inject_styles(self, css: str, css_id: str = "kings-drop-styles") -> None:
        await self._page.evaluate(_INJECT_STYLES_SCRIPT, {"css": css, "id": css_id})

    async def highlight(
        self,
        element: ElementHandle,
        styles: Mapping[str, str],
        *,
        css: Optional[str] = None,
        css_id: Optional[str] = None,
        duration_ms: int = 0,
    ) -> None:
        await self.inject_styles(css or DEFAULT_ANIMATIONS, css_id or "kings-drop-animations")
        await _playwright_element(element).handle.evaluate(
            _HIGHLIGHT_SCRIPT,
            {"styles": dict(styles), "duration": max(0, int(duration_ms))},
        )

    async def warn_glitch(self, element: ElementHandle, text: str = "refresh the page!!!") -> None:
        await self.inject_styles(GLITCH_WARNING_CSS, "kinguin-glitch-style")
        await _playwright_element(element).handle.evaluate(
            _GLITCH_SCRIPT,
            {"id": GLITCH_WARNING_ID, "text": text},
        )


def _playwright_element(element: ElementHandle) -> PlaywrightElement:
    if not isinstance(element, PlaywrightElement):
        raise TypeError("PageOverlay can only decorate PlaywrightElement handles.")
    return element


__all__ = [
    "COLORS",
    "DEFAULT_ANIMATIONS",
    "GLITCH_WARNING_ID",
    "HIGHLIGHT_STYLES",
    "Notifier",
    "OVERLAY_ID",
    "PageOverlay",
]
