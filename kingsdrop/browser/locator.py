"""Find elements in a page that may not have rendered yet.

:class:`Locator.locate` evaluates a :class:`Query` immediately and returns
without suspending when it already matches.  Otherwise it waits, bounded by
the request timeout, using one :class:`WaitStrategy`:

* :class:`MutationStrategy` re-evaluates whenever the DOM under the scope
  changes.
* :class:`PollingStrategy` re-evaluates every ``poll_interval_ms``.

Whichever strategy is used, one last evaluation happens at the timeout
boundary before the locator gives up.  Giving up is a normal
:class:`LocateResult`, not an exception.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Dict, List, Optional, Protocol, Type

from .dom import Document, ElementHandle, Scope
from .timing import now_ms, sleep

DEFAULT_TIMEOUT_MS = 10_000
DEFAULT_POLL_INTERVAL_MS = 200

logger = logging.getLogger(__name__)

Attempt = Callable[[], Awaitable[Optional[ElementHandle]]]


class QueryKind(str, Enum):
    SELECTOR = "selector"
    PATH = "path"


@dataclass(frozen=True)
class Query:
    """A CSS selector or XPath expression, re-evaluated on every attempt."""

    kind: QueryKind
    expression: str

    def __post_init__(self) -> None:
        if not isinstance(self.expression, str) or not self.expression.strip():
            raise ValueError("query expression must be a non-empty string.")
        object.__setattr__(self, "kind", QueryKind(self.kind))

    @classmethod
    def css(cls, selector: str) -> "Query":
        return cls(QueryKind.SELECTOR, selector)

    @classmethod
    def xpath(cls, expression: str) -> "Query":
        return cls(QueryKind.PATH, expression)

    async def evaluate(self, scope: Scope) -> Optional[ElementHandle]:
        """Return the first node under ``scope`` matching this query."""
        if self.kind is QueryKind.SELECTOR:
            return await scope.query(self.expression)
        return await scope.query_by_path(self.expression)

    def __str__(self) -> str:
        return f"{self.kind.value}:{self.expression}"


@dataclass(frozen=True)
class LocateRequest:
    """What to look for, where, and for how long."""

    query: Query
    timeout_ms: float = DEFAULT_TIMEOUT_MS
    poll_interval_ms: float = DEFAULT_POLL_INTERVAL_MS
    visibility_required: bool = True
    enabled_required: bool = False
    scope: Optional[Scope] = field(default=None, compare=False)

    def __post_init__(self) -> None:
        if self.timeout_ms < 0:
            raise ValueError("timeout_ms must be non-negative.")
        if self.poll_interval_ms <= 0:
            raise ValueError("poll_interval_ms must be positive.")


@dataclass(frozen=True)
class LocateResult:
    """Either the first matching element or an explicit not-found."""

    query: Query
    element: Optional[ElementHandle] = None
    attempts: int = 0
    elapsed_ms: float = 0.0

    @property
    def found(self) -> bool:
        return self.element is not None

    def __bool__(self) -> bool:
        return self.found


class WaitStrategy(Protocol):
    """Decide when to re-evaluate a query until ``deadline_ms``.

    Implementations return the element as soon as ``attempt`` yields one,
    or ``None`` once the deadline is reached.  They never perform the
    boundary evaluation themselves; :class:`Locator` does.
    """

    name: str

    async def wait(
        self,
        document: Document,
        scope: Scope,
        request: LocateRequest,
        attempt: Attempt,
        deadline_ms: float,
    ) -> Optional[ElementHandle]: ...


class PollingStrategy:
    """Re-evaluate on a fixed ``poll_interval_ms`` cadence."""

    name = "polling"

    async def wait(
        self,
        document: Document,
        scope: Scope,
        request: LocateRequest,
        attempt: Attempt,
        deadline_ms: float,
    ) -> Optional[ElementHandle]:
        while True:
            remaining = deadline_ms - now_ms()
            if remaining <= 0:
                return None
            await sleep(min(request.poll_interval_ms, remaining))
            if deadline_ms - now_ms() <= 0:
                return None
            element = await attempt()
            if element is not None:
                return element


class MutationStrategy:
    """Re-evaluate whenever the subtree under the scope is mutated.

    The subscription lives only for the duration of :meth:`wait` and is
    released on every exit path, including cancellation.
    """

    name = "mutation"

    async def wait(
        self,
        document: Document,
        scope: Scope,
        request: LocateRequest,
        attempt: Attempt,
        deadline_ms: float,
    ) -> Optional[ElementHandle]:
        changed = asyncio.Event()
        watch_attributes = request.visibility_required or request.enabled_required
        subscription = await document.observe(scope, changed.set, attributes=watch_attributes)
        try:
            # Mutations between the first evaluation and the subscription
            # would otherwise go unnoticed.
            element = await attempt()
            if element is not None:
                return element
            while True:
                remaining = deadline_ms - now_ms()
                if remaining <= 0:
                    return None
                try:
                    await asyncio.wait_for(changed.wait(), remaining / 1000)
                except asyncio.TimeoutError:
                    return None
                changed.clear()
                element = await attempt()
                if element is not None:
                    return element
        finally:
            await subscription.close()


STRATEGIES: Dict[str, Type[WaitStrategy]] = {
    MutationStrategy.name: MutationStrategy,
    PollingStrategy.name: PollingStrategy,
}


def create_strategy(name: str) -> WaitStrategy:
    """Return a fresh strategy instance for ``name`` (``mutation``/``polling``)."""
    try:
        return STRATEGIES[name.strip().lower()]()
    except KeyError:
        allowed = ", ".join(sorted(STRATEGIES))
        raise ValueError(f"locate strategy must be one of {{{allowed}}}.") from None


class Locator:
    """Resolve queries against one document."""

    def __init__(
        self,
        document: Document,
        *,
        strategy: Optional[WaitStrategy] = None,
        default_timeout_ms: float = DEFAULT_TIMEOUT_MS,
        default_poll_interval_ms: float = DEFAULT_POLL_INTERVAL_MS,
    ) -> None:
        self._document = document
        self._strategy = strategy or MutationStrategy()
        self._default_timeout_ms = default_timeout_ms
        self._default_poll_interval_ms = default_poll_interval_ms

    @property
    def document(self) -> Document:
        return self._document

    @property
    def strategy(self) -> WaitStrategy:
        return self._strategy

    async def locate(self, request: LocateRequest) -> LocateResult:
        """Return the first element matching ``request`` within its timeout."""
        scope: Scope = request.scope if request.scope is not None else self._document
        started = now_ms()
        attempts = 0

        async def attempt() -> Optional[ElementHandle]:
            nonlocal attempts
            attempts += 1
            return await self._evaluate(request, scope)

        element = await attempt()
        if element is None and request.timeout_ms > 0:
            if await scope.is_attached():
                deadline = started + request.timeout_ms
                element = await self._strategy.wait(
                    self._document, scope, request, attempt, deadline
                )
                if element is None:
                    remaining = deadline - now_ms()
                    if remaining > 0:
                        await sleep(remaining)
                    element = await attempt()
            else:
                logger.debug("locate: scope detached, not waiting for %s", request.query)

        result = LocateResult(
            query=request.query,
            element=element,
            attempts=attempts,
            elapsed_ms=now_ms() - started,
        )
        logger.debug(
            "locate %s: found=%s attempts=%s elapsed=%.1fms strategy=%s",
            request.query,
            result.found,
            result.attempts,
            result.elapsed_ms,
            self._strategy.name,
        )
        return result

    async def wait_for_selector(
        self,
        selector: str,
        *,
        timeout_ms: Optional[float] = None,
        visible: bool = True,
        scope: Optional[Scope] = None,
        poll_interval_ms: Optional[float] = None,
    ) -> Optional[ElementHandle]:
        """Wait for a CSS selector; returns the element or ``None``."""
        return await self._wait(
            Query.css(selector),
            timeout_ms=timeout_ms,
            poll_interval_ms=poll_interval_ms,
            visible=visible,
            scope=scope,
        )

    async def wait_for_xpath(
        self,
        expression: str,
        *,
        timeout_ms: Optional[float] = None,
        visible: bool = True,
        scope: Optional[Scope] = None,
        poll_interval_ms: Optional[float] = None,
    ) -> Optional[ElementHandle]:
        """Wait for an XPath expression; returns the element or ``None``."""
        return await self._wait(
            Query.xpath(expression),
            timeout_ms=timeout_ms,
            poll_interval_ms=poll_interval_ms,
            visible=visible,
            scope=scope,
        )

    async def wait_for_enabled(
        self,
        query: Query,
        *,
        timeout_ms: Optional[float] = None,
        poll_interval_ms: Optional[float] = None,
    ) -> Optional[ElementHandle]:
        """Wait until ``query`` matches a visible element that is not disabled."""
        return await self._wait(
            query,
            timeout_ms=timeout_ms,
            poll_interval_ms=poll_interval_ms,
            visible=True,
            enabled=True,
        )

    async def find(self, query: Query, scope: Optional[Scope] = None) -> Optional[ElementHandle]:
        """Evaluate ``query`` once, ignoring visibility."""
        result = await self.locate(
            LocateRequest(query, timeout_ms=0, visibility_required=False, scope=scope)
        )
        return result.element

    async def find_all(self, selector: str, scope: Optional[Scope] = None) -> List[ElementHandle]:
        """Return every element under ``scope`` matching ``selector``."""
        target: Scope = scope if scope is not None else self._document
        if not await target.is_attached():
            return []
        return list(await target.query_all(selector))

    async def find_all_by_path(self, expression: str, scope: Optional[Scope] = None) -> List[ElementHandle]:
        """Return every element under ``scope`` matching the XPath ``expression``."""
        target: Scope = scope if scope is not None else self._document
        if not await target.is_attached():
            return []
        return list(await target.query_all_by_path(expression))

    async def _wait(
        self,
        query: Query,
        *,
        timeout_ms: Optional[float],
        poll_interval_ms: Optional[float],
        visible: bool,
        enabled: bool = False,
        scope: Optional[Scope] = None,
    ) -> Optional[ElementHandle]:
        request = LocateRequest(
            query,
            timeout_ms=self._default_timeout_ms if timeout_ms is None else timeout_ms,
            poll_interval_ms=poll_interval_ms or self._default_poll_interval_ms,
            visibility_required=visible,
            enabled_required=enabled,
            scope=scope,
        )
        return (await self.locate(request)).element

    async def _evaluate(self, request: LocateRequest, scope: Scope) -> Optional[ElementHandle]:
        if not await scope.is_attached():
            return None
        element = await request.query.evaluate(scope)
        if element is None:
            return None
        if request.visibility_required and not await element.is_visible():
            return None
        if request.enabled_required and not await element.is_enabled():
            return None
        return element


__all__ = [
    "DEFAULT_POLL_INTERVAL_MS",
    "DEFAULT_TIMEOUT_MS",
    "LocateRequest",
    "LocateResult",
    "Locator",
    "MutationStrategy",
    "PollingStrategy",
    "Query",
    "QueryKind",
    "STRATEGIES",
    "WaitStrategy",
    "create_strategy",
]
