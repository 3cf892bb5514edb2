import logging

import pytest

from fakes import RecordingNotifier
from kingsdrop.pages.dispatch import PAGE_HANDLERS, DispatchOutcome, PageDispatcher
from kingsdrop.pages.routes import PageType

CHECKOUT_URL = "https://www.kinguin.net/new-checkout/review"
GAME_URL = "https://www.kinguin.net/category/42/game"


def test_every_known_page_has_a_handler():
    assert set(PAGE_HANDLERS) == {PageType.CHECKOUT, PageType.GAME_PAGE, PageType.DASHBOARD}


@pytest.mark.asyncio
async def test_unknown_pages_are_left_alone(make_context, notifier):
    outcome = await PageDispatcher().dispatch("https://www.kinguin.net/", make_context())

    assert outcome == DispatchOutcome("https://www.kinguin.net/", PageType.UNKNOWN, "Unknown page")
    assert notifier.notifications == []


@pytest.mark.asyncio
async def test_only_the_matching_handler_runs(make_context):
    calls = []

    async def checkout(ctx):
        calls.append("checkout")
        return True

    async def game(ctx):
        calls.append("game")
        return True

    dispatcher = PageDispatcher({PageType.CHECKOUT: checkout, PageType.GAME_PAGE: game})
    outcome = await dispatcher.dispatch(GAME_URL, make_context())

    assert calls == ["game"]
    assert outcome.handled is True
    assert outcome.success is True
    assert outcome.as_dict()["page_type"] == "game-page"


@pytest.mark.asyncio
async def test_known_page_without_handler_shows_a_notice(make_context, notifier):
    outcome = await PageDispatcher({}).dispatch(CHECKOUT_URL, make_context())

    assert outcome.handled is False
    assert notifier.notifications == [
        {
            "text": "KingsDrop: Checkout review page (handler pending)",
            "level": "info",
            "position": "bottom-right",
            "auto_remove_ms": 3000,
        }
    ]


@pytest.mark.asyncio
async def test_handler_errors_are_contained_and_shown(make_context, notifier, caplog):
    async def broken(ctx):
        raise RuntimeError("boom")

    with caplog.at_level(logging.ERROR, logger="kingsdrop.pages.dispatch"):
        outcome = await PageDispatcher({PageType.CHECKOUT: broken}).dispatch(CHECKOUT_URL, make_context())

    assert outcome.handled is True
    assert outcome.success is False
    assert outcome.error == "boom"
    assert notifier.notifications[-1]["text"] == "Error: boom"
    assert notifier.notifications[-1]["level"] == "error"
    assert notifier.notifications[-1]["auto_remove_ms"] == 5000
    assert "Error in checkout handler" in caplog.text


@pytest.mark.asyncio
async def test_failing_overlay_does_not_escape(make_context, caplog):
    async def broken(ctx):
        raise RuntimeError("boom")

    ctx = make_context()
    ctx.notifier = RecordingNotifier(fail=True)

    with caplog.at_level(logging.WARNING, logger="kingsdrop.pages.dispatch"):
        outcome = await PageDispatcher({PageType.CHECKOUT: broken}).dispatch(CHECKOUT_URL, ctx)

    assert outcome.error == "boom"
    assert "Could not display error overlay" in caplog.text


@pytest.mark.asyncio
async def test_false_handler_result_is_reported(make_context):
    async def gives_up(ctx):
        return False

    outcome = await PageDispatcher({PageType.CHECKOUT: gives_up}).dispatch(CHECKOUT_URL, make_context())
    assert outcome.success is False
    assert outcome.error is None


def test_classify_uses_the_dispatcher_routes():
    assert PageDispatcher().classify(CHECKOUT_URL) is PageType.CHECKOUT
    assert PageDispatcher(routes=()).classify(CHECKOUT_URL) is PageType.UNKNOWN
