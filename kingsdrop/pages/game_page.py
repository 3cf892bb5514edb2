"""Game product page: pick the KinguinPass price and add it to the cart.

Before clicking Add to Cart the button label is checked.  When the page is
in its "glitched" state the button reads ``SUBSCRIBE AND ADD TO CART``;
clicking it then would start a subscription, so the handler stops and asks
the operator to refresh instead.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Optional, Tuple

from ..browser.dom import ElementHandle
from ..browser.locator import Query
from ..browser.timing import human_delay, sleep
from .base import PageContext

logger = logging.getLogger(__name__)

KINGUIN_PASS_PRICE_XPATH = '//*[@id="main-offer-wrapper"]/div[1]/button'
ADD_TO_CART_XPATH = '//*[@id="main-offer-wrapper"]/div[2]/div/div/div/button'
ADD_TO_CART_CSS = 'button[data-cy="standardCheckout"]'

GLITCH_LABEL = "SUBSCRIBE AND ADD TO CART"

ENABLED_TIMEOUT_MS = 2000
ENABLED_POLL_INTERVAL_MS = 50
BETWEEN_CLICKS_DELAY_MS: Tuple[int, int] = (100, 400)


class AddToCartOutcome(str, Enum):
    CLICKED = "clicked"
    NOT_FOUND = "not-found"
    GLITCH = "glitch"


def is_glitched(label: str) -> bool:
    return GLITCH_LABEL in (label or "").upper()


async def click_kinguin_pass_price(ctx: PageContext) -> bool:
    option = await ctx.locator.find(Query.xpath(KINGUIN_PASS_PRICE_XPATH))
    if option is None:
        logger.info("click_kinguin_pass_price: option not found %s", KINGUIN_PASS_PRICE_XPATH)
        return False
    await ctx.simulator.simulate_click(option)
    logger.info("click_kinguin_pass_price: clicked KinguinPass price option")
    return True


async def find_add_to_cart(ctx: PageContext) -> Optional[ElementHandle]:
    button = await ctx.locator.find(Query.css(ADD_TO_CART_CSS))
    if button is None:
        button = await ctx.locator.find(Query.xpath(ADD_TO_CART_XPATH))
    return button


async def click_add_to_cart(ctx: PageContext) -> AddToCartOutcome:
    button = await find_add_to_cart(ctx)
    if button is None:
        logger.info(
            "click_add_to_cart: button not found (css=%s, xpath=%s)",
            ADD_TO_CART_CSS,
            ADD_TO_CART_XPATH,
        )
        return AddToCartOutcome.NOT_FOUND

    if is_glitched(await button.text()):
        logger.warning("click_add_to_cart: GLITCH DETECTED - button reads %r", GLITCH_LABEL)
        await ctx.notifier.warn_glitch(button)
        await ctx.notifier.notify(
            "GLITCH DETECTED - Refresh the page!", level="glitch", auto_remove_ms=0
        )
        return AddToCartOutcome.GLITCH

    await ctx.simulator.simulate_click(button)
    logger.info("click_add_to_cart: clicked Add to Cart")
    return AddToCartOutcome.CLICKED


async def select_kinguin_pass_and_add_to_cart(
    ctx: PageContext,
    *,
    wait_timeout_ms: int = ENABLED_TIMEOUT_MS,
    poll_interval_ms: int = ENABLED_POLL_INTERVAL_MS,
    between_clicks_delay_ms: Tuple[int, int] = BETWEEN_CLICKS_DELAY_MS,
) -> AddToCartOutcome:
    if not await click_kinguin_pass_price(ctx):
        return AddToCartOutcome.NOT_FOUND

    enabled = await ctx.locator.wait_for_enabled(
        Query.xpath(KINGUIN_PASS_PRICE_XPATH),
        timeout_ms=wait_timeout_ms,
        poll_interval_ms=poll_interval_ms,
    )
    if enabled is None:
        # Not fatal: the option may already have been processed.
        logger.info(
            "select_kinguin_pass_and_add_to_cart: price option not enabled after %sms",
            wait_timeout_ms,
        )

    await human_delay(*between_clicks_delay_ms)

    outcome = await click_add_to_cart(ctx)
    logger.info("select_kinguin_pass_and_add_to_cart: %s", outcome.value)
    return outcome


async def init_game_page(ctx: PageContext) -> bool:
    logger.info("Initializing game page handler")
    await ctx.notifier.notify(
        "KinguinClicker: Game Page - Automating...", level="success", auto_remove_ms=2000
    )
    await sleep(ctx.stabilize_ms)

    outcome = await select_kinguin_pass_and_add_to_cart(ctx)
    if outcome is AddToCartOutcome.CLICKED:
        await ctx.notifier.notify("KinguinClicker: Added to Cart!", level="success", auto_remove_ms=3000)
    elif outcome is AddToCartOutcome.NOT_FOUND:
        await ctx.notifier.notify(
            "KinguinClicker: Could not complete game page automation",
            level="error",
            auto_remove_ms=5000,
        )
    return outcome is AddToCartOutcome.CLICKED


__all__ = [
    "ADD_TO_CART_CSS",
    "ADD_TO_CART_XPATH",
    "AddToCartOutcome",
    "GLITCH_LABEL",
    "KINGUIN_PASS_PRICE_XPATH",
    "click_add_to_cart",
    "click_kinguin_pass_price",
    "find_add_to_cart",
    "init_game_page",
    "is_glitched",
    "select_kinguin_pass_and_add_to_cart",
]
