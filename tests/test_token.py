from __future__ import annotations

import unittest
from unittest.mock import MagicMock, patch

from playwright.sync_api import Error as PlaywrightError

from skahl_stats.ingestion.token import TokenNotFound, acquire_token
from skahl_stats.settings import SourceConfig


def _source(attempts: int = 3) -> SourceConfig:
    return SourceConfig(
        site_url="https://league.example",
        api_base="https://api.example/v1",
        org_id="org",
        token_storage_key="session_token_iframe",
        token_poll_attempts=attempts,
        token_poll_delay_seconds=1.0,
        navigation_timeout_ms=30000,
    )


class AcquireTokenTests(unittest.TestCase):
    def setUp(self) -> None:
        playwright_patch = patch("skahl_stats.ingestion.token.sync_playwright")
        sleep_patch = patch("skahl_stats.ingestion.token.time.sleep")
        self.sync_playwright = playwright_patch.start()
        self.sleep = sleep_patch.start()
        self.addCleanup(playwright_patch.stop)
        self.addCleanup(sleep_patch.stop)

        playwright = self.sync_playwright.return_value.__enter__.return_value
        self.browser = playwright.chromium.launch.return_value
        self.page = self.browser.new_page.return_value

    def test_token_found_after_polling(self) -> None:
        self.page.evaluate.side_effect = [None, "", "tok-123"]

        token = acquire_token(_source())

        self.assertEqual("tok-123", token)
        self.assertEqual(2, self.sleep.call_count)
        self.page.goto.assert_called_once_with("https://league.example", wait_until="networkidle")
        self.assertEqual("session_token_iframe", self.page.evaluate.call_args.args[1])
        self.browser.close.assert_called_once()

    def test_token_missing_after_all_attempts(self) -> None:
        self.page.evaluate.return_value = None

        with self.assertRaises(TokenNotFound):
            acquire_token(_source(attempts=4))

        self.assertEqual(4, self.page.evaluate.call_count)
        self.assertEqual(3, self.sleep.call_count)
        self.browser.close.assert_called_once()

    def test_navigation_failure_closes_browser(self) -> None:
        self.page.goto.side_effect = PlaywrightError("Timeout 30000ms exceeded")

        with self.assertRaises(TokenNotFound):
            acquire_token(_source())

        self.browser.close.assert_called_once()

    def test_unexpected_exception_still_closes_browser(self) -> None:
        self.page.evaluate.side_effect = RuntimeError("page crashed")

        with self.assertRaises(RuntimeError):
            acquire_token(_source())

        self.browser.close.assert_called_once()

    def test_browser_launched_headless(self) -> None:
        self.page.evaluate.return_value = "tok"

        acquire_token(_source())

        playwright = self.sync_playwright.return_value.__enter__.return_value
        self.assertTrue(playwright.chromium.launch.call_args.kwargs["headless"])
        self.page.set_default_navigation_timeout.assert_called_once_with(30000)


if __name__ == "__main__":
    unittest.main()
