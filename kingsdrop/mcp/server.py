"""FastMCP server that exposes the page automation agent as tools."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fastmcp import Context, FastMCP
from playwright.async_api import Error, TimeoutError

from kingsdrop.browser.core import AutomationSession, create_session
from kingsdrop.config import AgentConfig, load_config
from kingsdrop.pages.routes import detect_page_type, get_route_description
from kingsdrop.settings import JsonFileStore, PreferenceStore

mcp = FastMCP(name="kingsdrop")
logger = logging.getLogger(__name__)


@dataclass
class _SessionBundle:
    session: AutomationSession
    lock: asyncio.Lock


_SESSION_KEY_DEFAULT = "__default__"
_config: Optional[AgentConfig] = None
_preferences: Optional[PreferenceStore] = None
_sessions: Dict[str, _SessionBundle] = {}
_registry_lock = asyncio.Lock()


def _get_config() -> AgentConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def _get_preferences() -> PreferenceStore:
    global _preferences
    if _preferences is None:
        _preferences = PreferenceStore(JsonFileStore(_get_config().settings_path))
    return _preferences


async def configure_agent(
    *,
    headless: Optional[bool] = None,
    locate_strategy: Optional[str] = None,
    preferences: Optional[PreferenceStore] = None,
) -> AgentConfig:
    """Update the session configuration and drop existing sessions."""
    global _config, _preferences
    _config = _get_config().with_overrides(headless=headless, locate_strategy=locate_strategy)
    if preferences is not None:
        _preferences = preferences
    await _reset_sessions()
    return _config


def classify(url: str) -> Dict[str, Any]:
    """Return the page type and route description for ``url``."""
    if not url or not url.strip():
        raise ValueError("url must be a non-empty string.")
    return {
        "url": url,
        "page_type": detect_page_type(url).value,
        "description": get_route_description(url),
    }


def preferences_snapshot() -> Dict[str, Any]:
    return _get_preferences().load().model_dump()


def toggle_preference(name: str = "auto_click_pay") -> Dict[str, Any]:
    """Flip a boolean preference, mirroring the userscript's menu command."""
    value = _get_preferences().toggle(name)
    return {"name": name, "value": value}


async def _run_session(
    method: str,
    client_id: Optional[str],
    *args: Any,
    **kwargs: Any,
) -> Dict[str, Any]:
    try:
        bundle = await _get_session_bundle(client_id)
        async with bundle.lock:
            return await getattr(bundle.session, method)(*args, **kwargs)
    except TimeoutError as exc:
        return {"error": "timeout", "operation": method, "message": str(exc)}
    except Error as exc:
        return {"error": "playwright", "operation": method, "message": str(exc)}
    except Exception as exc:
        return {"error": "unexpected", "operation": method, "message": str(exc)}


def _call_with_errors(operation: str, func, *args: Any, **kwargs: Any) -> Dict[str, Any]:
    try:
        return func(*args, **kwargs)
    except Exception as exc:
        return {"error": "unexpected", "operation": operation, "message": str(exc)}


async def _reset_sessions() -> None:
    """Shutdown and clear all active automation sessions."""
    async with _registry_lock:
        bundles = list(_sessions.values())
        _sessions.clear()
    for bundle in bundles:
        try:
            await bundle.session.shutdown()
        except Exception as exc:
            logger.warning("Ignoring error while shutting down session: %s", exc)


async def _get_session_bundle(client_id: Optional[str]) -> _SessionBundle:
    """Return the session bundle for the given client, creating it if needed."""
    key = client_id or _SESSION_KEY_DEFAULT
    async with _registry_lock:
        bundle = _sessions.get(key)
        if bundle is None:
            session = create_session(config=_get_config(), preferences=_get_preferences())
            bundle = _SessionBundle(session=session, lock=asyncio.Lock())
            _sessions[key] = bundle
    return bundle


def _client_id_from_context(ctx: Optional[Context]) -> Optional[str]:
    return getattr(ctx, "client_id", None) if ctx is not None else None


@mcp.tool
async def classify_url(url: str) -> Dict[str, Any]:
    """Classify ``url`` into checkout, game-page, dashboard or unknown."""
    return _call_with_errors("classify_url", classify, url)


@mcp.tool
async def run_page(
    url: str,
    *,
    wait_until: str = "domcontentloaded",
    ctx: Optional[Context] = None,
) -> Dict[str, Any]:
    """Open ``url`` and run its page handler once."""
    return await _run_session(
        "run",
        _client_id_from_context(ctx),
        url,
        wait_until=wait_until,
    )


@mcp.tool
async def get_preferences() -> Dict[str, Any]:
    """Return the persisted preferences merged with defaults."""
    return _call_with_errors("get_preferences", preferences_snapshot)


@mcp.tool
async def toggle_auto_click_pay() -> Dict[str, Any]:
    """Switch between clicking and only highlighting the pay button."""
    return _call_with_errors("toggle_auto_click_pay", toggle_preference, "auto_click_pay")


@mcp.tool
async def configure(
    headless: Optional[bool] = None,
    locate_strategy: Optional[str] = None,
) -> Dict[str, Any]:
    """Change headless mode or the locate strategy for new sessions."""
    try:
        config = await configure_agent(headless=headless, locate_strategy=locate_strategy)
    except ValueError as exc:
        return {"error": "invalid", "operation": "configure", "message": str(exc)}
    return {"headless": config.headless, "locate_strategy": config.locate_strategy}


def main() -> None:
    """Run the kingsdrop MCP server using the default configuration."""
    mcp.run()


__all__ = [
    "classify",
    "classify_url",
    "configure",
    "configure_agent",
    "get_preferences",
    "main",
    "mcp",
    "preferences_snapshot",
    "run_page",
    "toggle_auto_click_pay",
    "toggle_preference",
]
