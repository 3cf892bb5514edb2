import asyncio

import pytest

from fakes import FakeElement
from kingsdrop.browser.locator import (
    LocateRequest,
    Locator,
    MutationStrategy,
    PollingStrategy,
    Query,
    create_strategy,
)
from kingsdrop.browser.timing import now_ms

STRATEGIES = [MutationStrategy, PollingStrategy]


def _locator(document, strategy_cls):
    return Locator(document, strategy=strategy_cls(), default_timeout_ms=300, default_poll_interval_ms=20)


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_existing_element_is_returned_without_waiting(document, strategy_cls):
    target = document.add(FakeElement("input", id="balance"))
    locator = _locator(document, strategy_cls)

    result = await locator.locate(LocateRequest(Query.css("#balance"), timeout_ms=5000))

    assert result.element is target
    assert result.attempts == 1
    assert document.observe_calls == 0
    assert result.elapsed_ms < 50


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_missing_element_gives_up_after_the_timeout(document, strategy_cls):
    locator = _locator(document, strategy_cls)

    started = now_ms()
    result = await locator.locate(
        LocateRequest(Query.css("#never"), timeout_ms=100, poll_interval_ms=30)
    )
    elapsed = now_ms() - started

    assert not result
    assert result.element is None
    assert elapsed >= 99
    assert elapsed < 100 + 30 + 100


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_element_appearing_later_is_found_promptly(document, strategy_cls):
    locator = _locator(document, strategy_cls)
    late = FakeElement("button", id="pay")
    asyncio.get_running_loop().call_later(0.2, document.add, late)

    started = now_ms()
    element = await locator.wait_for_selector("#pay", timeout_ms=5000, poll_interval_ms=20)
    elapsed = now_ms() - started

    assert element is late
    assert 190 <= elapsed < 230


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_hidden_element_is_not_returned_until_visible(document, strategy_cls):
    hidden = document.add(FakeElement("button", id="pay", visible=False))
    locator = _locator(document, strategy_cls)
    asyncio.get_running_loop().call_later(0.1, hidden.set_visible, True)

    started = now_ms()
    element = await locator.wait_for_selector("#pay", timeout_ms=2000, poll_interval_ms=20)

    assert element is hidden
    assert now_ms() - started >= 90


@pytest.mark.asyncio
async def test_visibility_can_be_waived(document):
    hidden = document.add(FakeElement("button", id="pay", visible=False))
    locator = _locator(document, PollingStrategy)

    assert await locator.wait_for_selector("#pay", timeout_ms=0, visible=False) is hidden
    assert await locator.wait_for_selector("#pay", timeout_ms=0) is None


@pytest.mark.asyncio
async def test_zero_timeout_evaluates_exactly_once(document):
    locator = _locator(document, MutationStrategy)

    result = await locator.locate(LocateRequest(Query.css("#nothing"), timeout_ms=0))

    assert result.attempts == 1
    assert document.observe_calls == 0


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_xpath_queries_are_resolved(document, strategy_cls):
    path = '//*[@id="main-offer-wrapper"]/div[1]/button'
    option = FakeElement("button", paths=[path])
    asyncio.get_running_loop().call_later(0.05, document.add, option)
    locator = _locator(document, strategy_cls)

    assert await locator.wait_for_xpath(path, timeout_ms=1000) is option


@pytest.mark.asyncio
async def test_query_is_scoped_to_the_given_element(document):
    outside = document.add(FakeElement("button", text="Get Now"))
    section = document.add(FakeElement("section"))
    inside = FakeElement("button", text="Get Now")
    section.append(inside)
    locator = _locator(document, PollingStrategy)

    assert await locator.find(Query.css("button")) is outside
    assert await locator.find(Query.css("button"), scope=section) is inside
    assert await locator.find_all("button", scope=section) == [inside]


@pytest.mark.asyncio
@pytest.mark.parametrize("strategy_cls", STRATEGIES)
async def test_detached_scope_returns_not_found_without_waiting(document, strategy_cls):
    section = FakeElement("section")
    section.append(FakeElement("button"))
    locator = _locator(document, strategy_cls)

    started = now_ms()
    result = await locator.locate(
        LocateRequest(Query.css("button"), timeout_ms=2000, scope=section)
    )

    assert not result.found
    assert now_ms() - started < 100
    assert await locator.find_all("button", scope=section) == []


@pytest.mark.asyncio
async def test_mutation_subscription_is_released_on_success(document):
    locator = _locator(document, MutationStrategy)
    asyncio.get_running_loop().call_later(0.05, document.add, FakeElement("div", id="late"))

    assert await locator.wait_for_selector("#late", timeout_ms=1000) is not None
    assert document.observers == []


@pytest.mark.asyncio
async def test_mutation_subscription_is_released_on_timeout(document):
    locator = _locator(document, MutationStrategy)

    assert await locator.wait_for_selector("#never", timeout_ms=60) is None
    assert document.observe_calls == 1
    assert document.observers == []


@pytest.mark.asyncio
async def test_mutation_subscription_is_released_on_cancellation(document):
    locator = _locator(document, MutationStrategy)
    task = asyncio.create_task(locator.wait_for_selector("#never", timeout_ms=5000))
    await asyncio.sleep(0.05)
    assert len(document.observers) == 1

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert document.observers == []


@pytest.mark.asyncio
async def test_wait_for_enabled_waits_for_the_disabled_flag_to_clear(document):
    button = document.add(FakeElement("button", id="opt", disabled=True))
    locator = _locator(document, MutationStrategy)
    asyncio.get_running_loop().call_later(0.05, button.set_disabled, False)

    assert await locator.wait_for_enabled(Query.css("#opt"), timeout_ms=1000) is button


@pytest.mark.asyncio
async def test_wait_for_enabled_gives_up_on_a_disabled_element(document):
    document.add(FakeElement("button", id="opt", disabled=True))
    locator = _locator(document, PollingStrategy)

    assert await locator.wait_for_enabled(Query.css("#opt"), timeout_ms=60, poll_interval_ms=10) is None


def test_request_validation():
    with pytest.raises(ValueError):
        LocateRequest(Query.css("a"), timeout_ms=-1)
    with pytest.raises(ValueError):
        LocateRequest(Query.css("a"), poll_interval_ms=0)
    with pytest.raises(ValueError):
        Query.css("   ")


def test_create_strategy_by_name():
    assert isinstance(create_strategy("mutation"), MutationStrategy)
    assert isinstance(create_strategy(" Polling "), PollingStrategy)
    with pytest.raises(ValueError):
        create_strategy("sleepy")


def test_query_str_names_kind_and_expression():
    assert str(Query.css("#pay")) == "selector:#pay"
    assert str(Query.xpath("//button")) == "path://button"


@pytest.mark.asyncio
async def test_find_all_by_path_returns_every_match_in_order(document):
    path = "//section//button"
    section = document.add(FakeElement("section"))
    first = FakeElement("button", paths=[path])
    second = FakeElement("button", paths=[path])
    section.append(first, FakeElement("button"), second)
    locator = _locator(document, PollingStrategy)

    assert await locator.find_all_by_path(path) == [first, second]
    assert await locator.find_all_by_path(path, scope=section) == [first, second]
    assert await locator.find_all_by_path("//nothing") == []


@pytest.mark.asyncio
async def test_find_all_by_path_on_a_detached_scope_is_empty(document):
    section = FakeElement("section")
    section.append(FakeElement("button", paths=["//button"]))
    locator = _locator(document, PollingStrategy)

    assert await locator.find_all_by_path("//button", scope=section) == []
