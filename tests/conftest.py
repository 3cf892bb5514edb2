"""Shared fixtures for the kingsdrop test suite."""

from __future__ import annotations

import random

import pytest

from fakes import FakeDocument, RecordingNotifier
from kingsdrop.browser.locator import Locator, PollingStrategy
from kingsdrop.browser.simulation import Simulator
from kingsdrop.pages.base import PageContext
from kingsdrop.settings import Preferences


async def _no_sleep(*args, **kwargs) -> None:
    return None


async def _no_delay(*args, **kwargs) -> int:
    return 0


@pytest.fixture
def document() -> FakeDocument:
    return FakeDocument()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def no_delays(monkeypatch):
    """Remove the human pauses from handlers and typing (locator timing stays real)."""
    for module in ("checkout", "game_page", "dashboard"):
        monkeypatch.setattr(f"kingsdrop.pages.{module}.sleep", _no_sleep)
        monkeypatch.setattr(f"kingsdrop.pages.{module}.human_delay", _no_delay)
    monkeypatch.setattr("kingsdrop.browser.simulation.human_delay", _no_delay)


@pytest.fixture
def make_context(document, notifier):
    def factory(*, auto_click_pay: bool = False, strategy=None) -> PageContext:
        locator = Locator(
            document,
            strategy=strategy or PollingStrategy(),
            default_timeout_ms=200,
            default_poll_interval_ms=20,
        )
        return PageContext(
            document=document,
            locator=locator,
            simulator=Simulator(rng=random.Random(7), min_delay_ms=0, max_delay_ms=0),
            notifier=notifier,
            preferences=Preferences(auto_click_pay=auto_click_pay),
            stabilize_ms=0,
        )

    return factory
