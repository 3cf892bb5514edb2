import pytest

from kingsdrop.browser.core import DEFAULT_LAUNCH_ARGS, AutomationSession, create_session
from kingsdrop.browser.dom import PlaywrightDocument
from kingsdrop.browser.locator import PollingStrategy
from kingsdrop.browser.overlay import PageOverlay
from kingsdrop.config import AgentConfig
from kingsdrop.pages.dispatch import PageDispatcher
from kingsdrop.pages.routes import PageType
from kingsdrop.settings import MemoryStore, PreferenceStore


class StubPage:
    def __init__(self, url: str) -> None:
        self.url = url

    async def title(self) -> str:
        return "Kinguin"


def _session(**kwargs) -> AutomationSession:
    return AutomationSession(
        config=AgentConfig(locate_strategy="polling", stabilize_ms=0),
        preferences=PreferenceStore(MemoryStore()),
        **kwargs,
    )


@pytest.mark.asyncio
async def test_run_rejects_blank_urls_before_launching():
    session = _session()
    with pytest.raises(ValueError):
        await session.run("   ")


@pytest.mark.asyncio
async def test_run_rejects_unknown_wait_states():
    session = _session()
    with pytest.raises(ValueError, match="wait_until"):
        await session.run("https://www.kinguin.net/", wait_until="forever")


def test_build_context_wires_the_configured_engine():
    session = _session()
    session.preferences.set("auto_click_pay", True)

    ctx = session.build_context(StubPage("https://www.kinguin.net/"))

    assert isinstance(ctx.document, PlaywrightDocument)
    assert isinstance(ctx.locator.strategy, PollingStrategy)
    assert isinstance(ctx.notifier, PageOverlay)
    assert ctx.preferences.auto_click_pay is True
    assert ctx.stabilize_ms == 0


@pytest.mark.asyncio
async def test_run_on_page_reports_the_dispatch_outcome():
    seen = []

    async def checkout(ctx):
        seen.append(ctx.document.url)
        return True

    session = _session(dispatcher=PageDispatcher({PageType.CHECKOUT: checkout}))
    url = "https://www.kinguin.net/new-checkout/review"

    result = await session.run_on_page(StubPage(url))

    assert seen == [url]
    assert result["final_url"] == url
    assert result["title"] == "Kinguin"
    assert result["page_type"] == "checkout"
    assert result["success"] is True


def test_urls_differ_ignores_trailing_slashes():
    session = _session()
    assert session._urls_differ("https://a.test/x/", "https://a.test/x") is False
    assert session._urls_differ("about:blank", "https://a.test/") is True
    assert session._urls_differ("", "https://a.test/") is True


def test_create_session_defaults():
    session = create_session(config=AgentConfig(), preferences=PreferenceStore(MemoryStore()))
    assert session.config.headless is True
    assert session._launch_args == DEFAULT_LAUNCH_ARGS
