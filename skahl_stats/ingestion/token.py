"""Extract the SportNinja session token from the league site with headless Chromium."""

from __future__ import annotations

import logging
import time
from contextlib import contextmanager
from typing import Iterator

from playwright.sync_api import Error as PlaywrightError
from playwright.sync_api import Page, sync_playwright

from skahl_stats.settings import SourceConfig

logger = logging.getLogger(__name__)
BROWSER_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]


class TokenNotFound(RuntimeError):
    pass


@contextmanager
def browser_page(navigation_timeout_ms: int) -> Iterator[Page]:
    """Yield a fresh page; the browser is closed on every exit path."""

    with sync_playwright() as playwright:
        browser = playwright.chromium.launch(headless=True, args=BROWSER_ARGS)
        try:
            page = browser.new_page()
            page.set_default_navigation_timeout(navigation_timeout_ms)
            yield page
        finally:
            browser.close()
            logger.debug("Browser closed")


def poll_local_storage(page: Page, key: str, attempts: int, delay_seconds: float) -> str | None:
    for attempt in range(attempts):
        token = page.evaluate("(key) => window.localStorage.getItem(key)", key)
        if token:
            logger.debug("Token found on attempt %s/%s", attempt + 1, attempts)
            return token
        if attempt < attempts - 1:
            time.sleep(delay_seconds)
    return None


def acquire_token(source: SourceConfig) -> str:
    """Return the bearer token the embedded widget writes to localStorage.

    The widget populates storage asynchronously, so the key is polled a
    bounded number of times instead of read once.
    """

    logger.info("Launching headless browser to extract token from %s", source.site_url)
    try:
        with browser_page(source.navigation_timeout_ms) as page:
            page.goto(source.site_url, wait_until="networkidle")
            token = poll_local_storage(
                page,
                source.token_storage_key,
                source.token_poll_attempts,
                source.token_poll_delay_seconds,
            )
    except PlaywrightError as exc:
        raise TokenNotFound(f"Browser session failed: {exc}") from exc

    if not token:
        raise TokenNotFound(
            f"Token '{source.token_storage_key}' not found after "
            f"{source.token_poll_attempts} attempts"
        )
    logger.info("Token acquired.")
    return token
