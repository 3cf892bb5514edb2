"""Checkout page: fill the Kinguin balance field and surface the pay button."""

from __future__ import annotations

import logging
from typing import Mapping

from ..browser.timing import human_delay, sleep
from .base import PageContext

logger = logging.getLogger(__name__)

BALANCE_INPUT = "#kinguin-balance-value"
PAY_BUTTON = "#kps__pay-btn"

MAX_BALANCE = "999"
LOOKUP_TIMEOUT_MS = 5000
PRE_DELAY_MS = 1000

PAY_BUTTON_PULSE_CSS = """
  @keyframes kinguin-pay-pulse {
    0%, 100% {
      box-shadow: 0 0 15px 5px rgba(255, 0, 0, 0.7),
                  0 0 30px 10px rgba(255, 255, 0, 0.5),
                  inset 0 0 10px rgba(255, 255, 0, 0.3);
      transform: scale(1);
    }
    50% {
      box-shadow: 0 0 25px 10px rgba(255, 0, 0, 0.9),
                  0 0 50px 20px rgba(255, 255, 0, 0.7),
                  inset 0 0 20px rgba(255, 255, 0, 0.5);
      transform: scale(1.02);
    }
  }
"""

PAY_BUTTON_STYLES: Mapping[str, str] = {
    "transition": "all 0.3s ease",
    "backgroundColor": "#ff3333",
    "background": "linear-gradient(135deg, #ff4444 0%, #cc0000 50%, #ff4444 100%)",
    "border": "4px solid #ffff00",
    "borderRadius": "8px",
    "outline": "3px solid #ff0000",
    "outlineOffset": "2px",
    "color": "white",
    "fontWeight": "bold",
    "textShadow": "0 0 5px #000, 0 0 10px #ff0",
    "animation": "kinguin-pay-pulse 1s ease-in-out infinite",
    "position": "relative",
    "zIndex": "9999",
}


async def set_max_balance(ctx: PageContext, value: str = MAX_BALANCE) -> bool:
    """Type ``value`` into the balance field the way a user would."""
    field = await ctx.locator.wait_for_selector(BALANCE_INPUT, timeout_ms=LOOKUP_TIMEOUT_MS)
    if field is None:
        logger.info("set_max_balance: input not found %s", BALANCE_INPUT)
        return False

    await ctx.simulator.simulate_click(field)
    await human_delay(50, 100)
    await ctx.simulator.clear(field)
    await human_delay(50, 100)

    typed = await ctx.simulator.simulate_type(field, value, 25, 75)
    await field.blur()
    logger.info("set_max_balance: set value to %s", value)
    return typed


async def click_pay_button(ctx: PageContext) -> bool:
    button = await ctx.locator.wait_for_selector(PAY_BUTTON, timeout_ms=LOOKUP_TIMEOUT_MS)
    if button is None:
        logger.info("click_pay_button: pay button not found %s", PAY_BUTTON)
        return False
    await ctx.simulator.simulate_click(button)
    logger.info("click_pay_button: clicked pay button")
    return True


async def highlight_pay_button(ctx: PageContext) -> bool:
    button = await ctx.locator.wait_for_selector(PAY_BUTTON, timeout_ms=LOOKUP_TIMEOUT_MS)
    if button is None:
        logger.info("highlight_pay_button: pay button not found %s", PAY_BUTTON)
        return False
    await ctx.notifier.highlight(
        button,
        PAY_BUTTON_STYLES,
        css=PAY_BUTTON_PULSE_CSS,
        css_id="kinguin-pay-pulse-animation",
    )
    logger.info("highlight_pay_button: pay button highlighted")
    return True


async def set_and_pay(
    ctx: PageContext,
    value: str = MAX_BALANCE,
    *,
    pre_delay_ms: int = PRE_DELAY_MS,
    timeout_ms: int = LOOKUP_TIMEOUT_MS,
    should_click: bool = False,
) -> bool:
    """Set the balance, wait for the pay button, then click or highlight it."""
    if not await set_max_balance(ctx, str(value)):
        logger.info("set_and_pay: failed to set balance value")
        return False

    await sleep(pre_delay_ms)

    button = await ctx.locator.wait_for_selector(PAY_BUTTON, timeout_ms=timeout_ms)
    if button is None:
        logger.info("set_and_pay: pay button did not appear within %sms", timeout_ms)
        return False

    # The button is looked up again by the action itself; the page may
    # have re-rendered it during the wait.
    if should_click:
        return await click_pay_button(ctx)
    return await highlight_pay_button(ctx)


async def init_checkout_page(ctx: PageContext) -> bool:
    logger.info("Initializing checkout page handler")
    await ctx.notifier.notify(
        "KinguinClicker: Checkout - Automating...", level="success", auto_remove_ms=2000
    )
    await sleep(ctx.stabilize_ms)

    success = await set_and_pay(
        ctx, MAX_BALANCE, should_click=ctx.preferences.auto_click_pay
    )
    if success:
        await ctx.notifier.notify("KinguinClicker: Ready to Pay!", level="success", auto_remove_ms=3000)
    else:
        await ctx.notifier.notify(
            "KinguinClicker: Could not find checkout elements", level="error", auto_remove_ms=5000
        )
    return success


__all__ = [
    "BALANCE_INPUT",
    "PAY_BUTTON",
    "click_pay_button",
    "highlight_pay_button",
    "init_checkout_page",
    "set_and_pay",
    "set_max_balance",
]
