"""Runs against a real Chromium; skipped when Playwright has no browser installed."""

import pytest
import pytest_asyncio
from playwright.async_api import Error, async_playwright

from kingsdrop.browser.dom import PlaywrightDocument
from kingsdrop.browser.locator import Locator, MutationStrategy
from kingsdrop.browser.simulation import Simulator

pytestmark = [pytest.mark.playwright, pytest.mark.asyncio]

# The input gets an instance-level ``value`` setter that swallows writes,
# the way framework-controlled inputs intercept plain assignments.
CONTROLLED_INPUT = """
<input id="kinguin-balance-value" value="0">
<script>
  const input = document.getElementById('kinguin-balance-value');
  const native = Object.getOwnPropertyDescriptor(HTMLInputElement.prototype, 'value');
  window.__intercepted = [];
  window.__inputs = [];
  window.__changes = 0;
  Object.defineProperty(input, 'value', {
    configurable: true,
    get() { return native.get.call(this); },
    set(value) { window.__intercepted.push(value); },
  });
  input.addEventListener('input', () => window.__inputs.push(native.get.call(input)));
  input.addEventListener('change', () => { window.__changes += 1; });
</script>
"""


@pytest_asyncio.fixture
async def page():
    async with async_playwright() as playwright:
        try:
            browser = await playwright.chromium.launch(headless=True)
        except Error as exc:
            pytest.skip(f"Chromium unavailable: {exc}")
        try:
            yield await browser.new_page()
        finally:
            await browser.close()


async def test_typing_reaches_a_framework_controlled_input(page):
    await page.set_content(CONTROLLED_INPUT)
    locator = Locator(PlaywrightDocument(page), strategy=MutationStrategy())
    field = await locator.wait_for_selector("#kinguin-balance-value", timeout_ms=1000)

    assert await Simulator(min_delay_ms=0, max_delay_ms=0).simulate_type(field, "999") is True

    assert await field.content() == "999"
    assert await page.evaluate("() => window.__changes") == 1
    assert await page.evaluate("() => window.__inputs") == ["9", "99", "999"]
    assert await page.evaluate("() => window.__intercepted") == []


async def test_mutation_wait_sees_late_elements(page):
    await page.set_content("<div id='root'></div>")
    locator = Locator(PlaywrightDocument(page), strategy=MutationStrategy())
    await page.evaluate(
        """() => setTimeout(() => {
            const button = document.createElement('button');
            button.id = 'kps__pay-btn';
            button.textContent = 'Pay';
            document.getElementById('root').appendChild(button);
        }, 100)"""
    )

    button = await locator.wait_for_selector("#kps__pay-btn", timeout_ms=3000)

    assert button is not None
    assert await button.text() == "Pay"
    assert await page.evaluate("() => Object.keys(window.__kingsdropObservers)") == []
