"""Opaque element handles and their Playwright binding.

The locator and simulator only ever talk to the two protocols defined here:
:class:`ElementHandle` for a node in the page and :class:`Document` for the
page root.  :class:`PlaywrightDocument` and :class:`PlaywrightElement`
implement them over ``playwright.async_api``; tests implement them over an
in-memory tree.

Value mutation goes through :meth:`ElementHandle.set_content_via_trusted_path`,
which calls the native ``value`` setter of the element's prototype.  Pages
built on React/Vue replace the instance setter to track input, so a plain
``el.value = ...`` is invisible to them.  This relies on the page binding to
the standard ``HTMLInputElement``/``HTMLTextAreaElement`` prototypes; it is an
assumption about the host page, not a guarantee.
"""

from __future__ import annotations

import itertools
import logging
from typing import Callable, Dict, List, Optional, Protocol, Union, runtime_checkable

from playwright.async_api import ElementHandle as PWElementHandle
from playwright.async_api import Error, JSHandle, Page

from .events import BoundingBox, InteractionEvent

logger = logging.getLogger(__name__)

MutationCallback = Callable[[], None]

_NOTIFY_BINDING = "__kingsdropNotifyMutation"

_QUERY_PATH_SCRIPT = """
(node, expression) => {
    const doc = node.ownerDocument || node;
    const result = doc.evaluate(
        expression, node, null, XPathResult.FIRST_ORDERED_NODE_TYPE, null
    );
    return result.singleNodeValue;
}
"""

_QUERY_ALL_PATH_SCRIPT = """
(node, expression) => {
    const doc = node.ownerDocument || node;
    const result = doc.evaluate(
        expression, node, null, XPathResult.ORDERED_NODE_SNAPSHOT_TYPE, null
    );
    const nodes = [];
    for (let i = 0; i < result.snapshotLength; i++) {
        nodes.push(result.snapshotItem(i));
    }
    return nodes;
}
"""

_SET_VALUE_SCRIPT = """
(element, value) => {
    const view = element.ownerDocument.defaultView || window;
    const prototypes = [
        view.HTMLInputElement && view.HTMLInputElement.prototype,
        view.HTMLTextAreaElement && view.HTMLTextAreaElement.prototype,
        view.HTMLSelectElement && view.HTMLSelectElement.prototype,
    ].filter((proto) => proto && proto.isPrototypeOf(element));
    const descriptor = prototypes.length
        ? Object.getOwnPropertyDescriptor(prototypes[0], 'value')
        : null;
    if (descriptor && descriptor.set) {
        descriptor.set.call(element, value);
    } else if ('value' in element) {
        element.value = value;
    } else {
        element.textContent = value;
    }
}
"""

_OBSERVE_SCRIPT = """
(node, { token, attributes, binding }) => {
    const target = node.nodeType === Node.DOCUMENT_NODE
        ? (node.body || node.documentElement)
        : node;
    const registry = window.__kingsdropObservers || (window.__kingsdropObservers = {});
    const observer = new MutationObserver(() => {
        const notify = window[binding];
        if (notify) {
            notify(token);
        }
    });
    observer.observe(target, { childList: true, subtree: true, attributes });
    registry[token] = observer;
}
"""

_DISCONNECT_SCRIPT = """
(token) => {
    const registry = window.__kingsdropObservers || {};
    const observer = registry[token];
    if (observer) {
        observer.disconnect();
        delete registry[token];
    }
}
"""

_ENABLED_SCRIPT = """
(element) => !element.disabled && !(element.classList && element.classList.contains('disabled'))
"""


@runtime_checkable
class Subscription(Protocol):
    """Handle for a mutation subscription; release it with :meth:`close`."""

    async def close(self) -> None: ...


@runtime_checkable
class ElementHandle(Protocol):
    """Capabilities the core needs from a node in the page."""

    async def query(self, selector: str) -> Optional["ElementHandle"]: ...

    async def query_all(self, selector: str) -> List["ElementHandle"]: ...

    async def query_by_path(self, expression: str) -> Optional["ElementHandle"]: ...

    async def query_all_by_path(self, expression: str) -> List["ElementHandle"]: ...

    async def is_attached(self) -> bool: ...

    async def is_visible(self) -> bool: ...

    async def is_enabled(self) -> bool: ...

    async def bounding_box(self) -> Optional[BoundingBox]: ...

    async def dispatch(self, event: InteractionEvent) -> None: ...

    async def set_content_via_trusted_path(self, value: str) -> None: ...

    async def content(self) -> str: ...

    async def text(self) -> str: ...

    async def focus(self) -> None: ...

    async def blur(self) -> None: ...

    async def scroll_into_view(self, behavior: str = "smooth", block: str = "center") -> None: ...


@runtime_checkable
class Document(Protocol):
    """The page root: a query scope that can also report mutations."""

    @property
    def url(self) -> str: ...

    async def query(self, selector: str) -> Optional[ElementHandle]: ...

    async def query_all(self, selector: str) -> List[ElementHandle]: ...

    async def query_by_path(self, expression: str) -> Optional[ElementHandle]: ...

    async def query_all_by_path(self, expression: str) -> List[ElementHandle]: ...

    async def is_attached(self) -> bool: ...

    async def observe(
        self,
        scope: "Scope",
        callback: MutationCallback,
        *,
        attributes: bool = True,
    ) -> Subscription: ...


Scope = Union[Document, ElementHandle]


class PlaywrightElement:
    """:class:`ElementHandle` over a Playwright ``ElementHandle``."""

    def __init__(self, handle: PWElementHandle) -> None:
        self._handle = handle

    @property
    def handle(self) -> PWElementHandle:
        return self._handle

    async def query(self, selector: str) -> Optional["PlaywrightElement"]:
        return _wrap(await self._handle.query_selector(selector))

    async def query_all(self, selector: str) -> List["PlaywrightElement"]:
        return [PlaywrightElement(item) for item in await self._handle.query_selector_all(selector)]

    async def query_by_path(self, expression: str) -> Optional["PlaywrightElement"]:
        result = await self._handle.evaluate_handle(_QUERY_PATH_SCRIPT, expression)
        return _wrap(result.as_element())

    async def query_all_by_path(self, expression: str) -> List["PlaywrightElement"]:
        result = await self._handle.evaluate_handle(_QUERY_ALL_PATH_SCRIPT, expression)
        return await _unpack(result)

    async def is_attached(self) -> bool:
        try:
            return bool(await self._handle.evaluate("element => element.isConnected"))
        except Error as exc:
            # Disposed handles and closed pages both mean the node is gone.
            logger.debug("is_attached: handle unusable: %s", exc)
            return False

    async def is_visible(self) -> bool:
        try:
            return await self._handle.is_visible()
        except Error as exc:
            logger.debug("is_visible: handle unusable: %s", exc)
            return False

    async def is_enabled(self) -> bool:
        return bool(await self._handle.evaluate(_ENABLED_SCRIPT))

    async def bounding_box(self) -> Optional[BoundingBox]:
        box = await self._handle.bounding_box()
        if box is None:
            return None
        return BoundingBox(box["x"], box["y"], box["width"], box["height"])

    async def dispatch(self, event: InteractionEvent) -> None:
        await self._handle.dispatch_event(event.type, event.as_init())

    async def set_content_via_trusted_path(self, value: str) -> None:
        await self._handle.evaluate(_SET_VALUE_SCRIPT, value)

    async def content(self) -> str:
        value = await self._handle.evaluate(
            "element => ('value' in element) ? element.value : element.textContent"
        )
        return "" if value is None else str(value)

    async def text(self) -> str:
        return (await self._handle.text_content()) or ""

    async def focus(self) -> None:
        await self._handle.focus()

    async def blur(self) -> None:
        await self._handle.evaluate("element => element.blur && element.blur()")

    async def scroll_into_view(self, behavior: str = "smooth", block: str = "center") -> None:
        await self._handle.evaluate(
            "(element, options) => element.scrollIntoView(options)",
            {"behavior": behavior, "block": block},
        )

    def __repr__(self) -> str:
        return f"PlaywrightElement({self._handle!r})"


class _PlaywrightSubscription:
    def __init__(self, document: "PlaywrightDocument", token: str) -> None:
        self._document = document
        self._token = token
        self._closed = False

    async def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        await self._document._release(self._token)


class PlaywrightDocument:
    """:class:`Document` over a Playwright ``Page``.

    Mutation notifications reach Python through a function exposed on the
    page once; each subscription registers its own ``MutationObserver``
    under a token and is disconnected again by :meth:`Subscription.close`.
    """

    def __init__(self, page: Page) -> None:
        self._page = page
        self._listeners: Dict[str, MutationCallback] = {}
        self._tokens = itertools.count(1)
        self._binding_ready = False

    @property
    def page(self) -> Page:
        return self._page

    @property
    def url(self) -> str:
        return self._page.url

    async def query(self, selector: str) -> Optional[PlaywrightElement]:
        return _wrap(await self._page.query_selector(selector))

    async def query_all(self, selector: str) -> List[PlaywrightElement]:
        return [PlaywrightElement(item) for item in await self._page.query_selector_all(selector)]

    async def query_by_path(self, expression: str) -> Optional[PlaywrightElement]:
        result = await self._page.evaluate_handle(
            "(expression) => (" + _QUERY_PATH_SCRIPT + ")(document, expression)",
            expression,
        )
        return _wrap(result.as_element())

    async def query_all_by_path(self, expression: str) -> List[PlaywrightElement]:
        result = await self._page.evaluate_handle(
            "(expression) => (" + _QUERY_ALL_PATH_SCRIPT + ")(document, expression)",
            expression,
        )
        return await _unpack(result)

    async def is_attached(self) -> bool:
        return not self._page.is_closed()

    async def observe(
        self,
        scope: Scope,
        callback: MutationCallback,
        *,
        attributes: bool = True,
    ) -> _PlaywrightSubscription:
        await self._ensure_binding()
        token = f"kd-{next(self._tokens)}"
        self._listeners[token] = callback
        payload = {"token": token, "attributes": attributes, "binding": _NOTIFY_BINDING}
        try:
            if isinstance(scope, PlaywrightElement):
                await scope.handle.evaluate(_OBSERVE_SCRIPT, payload)
            else:
                await self._page.evaluate(
                    "(payload) => (" + _OBSERVE_SCRIPT + ")(document, payload)",
                    payload,
                )
        except Exception:
            self._listeners.pop(token, None)
            raise
        logger.debug("observe: subscribed %s", token)
        return _PlaywrightSubscription(self, token)

    async def _ensure_binding(self) -> None:
        if self._binding_ready:
            return
        await self._page.expose_function(_NOTIFY_BINDING, self._notify)
        self._binding_ready = True

    def _notify(self, token: str) -> None:
        callback = self._listeners.get(token)
        if callback is not None:
            callback()

    async def _release(self, token: str) -> None:
        self._listeners.pop(token, None)
        if self._page.is_closed():
            return
        try:
            await self._page.evaluate(_DISCONNECT_SCRIPT, token)
        except Error as exc:
            # The observer died with the document on navigation.
            logger.debug("observe: release of %s skipped: %s", token, exc)
        logger.debug("observe: released %s", token)


def _wrap(handle: Optional[PWElementHandle]) -> Optional[PlaywrightElement]:
    return PlaywrightElement(handle) if handle is not None else None


async def _unpack(array: JSHandle) -> List[PlaywrightElement]:
    properties = await array.get_properties()
    await array.dispose()
    # Array indices come back as string keys.
    indices = sorted(int(key) for key in properties if key.isdigit())
    elements = [properties[str(index)].as_element() for index in indices]
    return [PlaywrightElement(element) for element in elements if element is not None]


__all__ = [
    "Document",
    "ElementHandle",
    "MutationCallback",
    "PlaywrightDocument",
    "PlaywrightElement",
    "Scope",
    "Subscription",
]
