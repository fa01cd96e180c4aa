"""
Live API traffic capture through a headless Chromium session.
Every request is intercepted and continued untouched; those aimed at the monitored
API are recorded with their full header set.
"""

import asyncio
from typing import List, Optional
from urllib.parse import urljoin, urlparse

from playwright.async_api import Page, Route, async_playwright

from jsmonitor.collectors.base import BaseCapturer
from jsmonitor.core.config import Config
from jsmonitor.core.logger import logger
from jsmonitor.models import CapturedRequest

STORE_SESSION_SCRIPT = "([key, session]) => localStorage.setItem(key, JSON.stringify(session))"


def build_session(token: str) -> dict:
    return {
        "id": "",
        "accountId": "",
        "deviceId": None,
        "token": token,
        "metadata": None,
    }


class BrowserTrafficCapturer(BaseCapturer):

    name = "browser"

    def __init__(self, config: Config, silent_mode: bool = False):
        super().__init__(config, silent_mode)
        self.browser_config = config.browser

    def is_enabled(self) -> bool:
        return self.browser_config.enabled

    def is_api_request(self, url: str) -> bool:
        parsed = urlparse(url)
        return (
            parsed.hostname == self.config.api_host
            and parsed.path.startswith(self.config.api_path_prefix)
        )

    async def _capture(self, token: Optional[str]) -> List[CapturedRequest]:
        captured: List[CapturedRequest] = []

        async def handle_route(route: Route):
            request = route.request
            try:
                if self.is_api_request(request.url):
                    headers = await request.all_headers()
                    captured.append(CapturedRequest(
                        url=request.url,
                        method=request.method,
                        headers=headers
                    ))
            except Exception as e:
                logger.debug(f"Failed to record request {request.url}: {e}")
            await route.continue_()

        async with async_playwright() as p:
            browser = await p.chromium.launch(
                headless=self.browser_config.headless,
                args=self.browser_config.launch_args
            )
            try:
                context = await browser.new_context(user_agent=self.config.user_agent)
                page = await context.new_page()
                page.set_default_navigation_timeout(self.browser_config.navigation_timeout_ms)
                await page.route("**/*", handle_route)

                await page.goto(self.config.base_url, wait_until="networkidle")

                if token:
                    await self._browse_authenticated(page, token)
            finally:
                await browser.close()

        return captured

    async def _browse_authenticated(self, page: Page, token: str):
        if not self.silent_mode:
            logger.info("Injecting authentication token...")

        await page.evaluate(
            STORE_SESSION_SCRIPT,
            [self.browser_config.session_storage_key, build_session(token)]
        )
        await page.reload(wait_until="networkidle")

        for path in self.browser_config.authenticated_pages:
            url = urljoin(self.config.base_url, path)
            logger.debug(f"Navigating to {url}")
            await page.goto(url, wait_until="networkidle")
            await asyncio.sleep(self.browser_config.settle_delay)
