"""Dashboard subscription page: scroll to the offer and press "Get Now"."""

from __future__ import annotations

import logging
from typing import Optional

from ..browser.dom import ElementHandle
from ..browser.timing import human_delay, sleep
from .base import PageContext

logger = logging.getLogger(__name__)

SUBSCRIPTION_SECTION_XPATH = '//*[@id="c-page__content"]/div/div[2]/div/div/div/div[1]/section'
GET_NOW_LABEL = "Get Now"

SECTION_TIMEOUT_MS = 10_000
SECTION_POLL_INTERVAL_MS = 200


async def scroll_to_subscription_section(ctx: PageContext) -> Optional[ElementHandle]:
    logger.info("scroll_to_subscription_section: waiting for %s", SUBSCRIPTION_SECTION_XPATH)
    section = await ctx.locator.wait_for_xpath(
        SUBSCRIPTION_SECTION_XPATH,
        timeout_ms=SECTION_TIMEOUT_MS,
        poll_interval_ms=SECTION_POLL_INTERVAL_MS,
    )
    if section is None:
        logger.info("scroll_to_subscription_section: not found after %sms", SECTION_TIMEOUT_MS)
        return None
    await section.scroll_into_view(behavior="auto", block="center")
    return section


async def click_get_now_button(ctx: PageContext, section: Optional[ElementHandle]) -> bool:
    if section is None or not await section.is_attached():
        logger.info("click_get_now_button: subscription section is gone")
        return False

    for button in await ctx.locator.find_all("button", scope=section):
        if GET_NOW_LABEL in await button.text():
            await ctx.simulator.simulate_click(button)
            logger.info("click_get_now_button: clicked %r", GET_NOW_LABEL)
            return True

    logger.info("click_get_now_button: %r button not found in section", GET_NOW_LABEL)
    return False


async def scroll_and_click_get_now(ctx: PageContext) -> bool:
    section = await scroll_to_subscription_section(ctx)
    if section is None:
        return False

    await human_delay(200, 400)

    if not await click_get_now_button(ctx, section):
        return False
    logger.info("scroll_and_click_get_now: completed")
    return True


async def init_dashboard_page(ctx: PageContext) -> bool:
    logger.info("Initializing dashboard page handler")
    await ctx.notifier.notify(
        "KinguinClicker: Dashboard - Automating...",
        level="success",
        position="top-left",
        auto_remove_ms=2000,
    )
    await sleep(ctx.stabilize_ms)

    success = await scroll_and_click_get_now(ctx)
    if success:
        await ctx.notifier.notify(
            "KinguinClicker: Subscription Activated!",
            level="success",
            position="top-left",
            auto_remove_ms=3000,
        )
    else:
        await ctx.notifier.notify(
            "KinguinClicker: Could not find subscription elements",
            level="error",
            position="top-left",
            auto_remove_ms=5000,
        )
    return success


__all__ = [
    "GET_NOW_LABEL",
    "SUBSCRIPTION_SECTION_XPATH",
    "click_get_now_button",
    "init_dashboard_page",
    "scroll_and_click_get_now",
    "scroll_to_subscription_section",
]
