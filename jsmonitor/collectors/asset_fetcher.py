"""
Retrieval of the hosting page and the main script it references.
Any failure here is fatal for the run.
"""

import re
import asyncio
from typing import Optional

import aiohttp

from jsmonitor.core.config import Config, get_default_config
from jsmonitor.core.errors import AssetNotFoundError, FetchError
from jsmonitor.core.logger import logger
from jsmonitor.models import FetchedAsset


class AssetFetcher:

    def __init__(self, config: Optional[Config] = None, silent_mode: bool = False):
        self.config = config or get_default_config()
        self.silent_mode = silent_mode
        self.asset_re = re.compile(self.config.asset_pattern)

    def _default_headers(self) -> dict:
        return {
            'User-Agent': self.config.user_agent,
            'Accept': 'text/html,application/javascript,*/*;q=0.8',
            'Accept-Language': 'en-US,en;q=0.9',
        }

    def find_asset_filename(self, html: str) -> str:
        match = self.asset_re.search(html)
        if not match or not match.group(1):
            raise AssetNotFoundError(self.config.base_url)
        return match.group(1)

    def asset_url(self, filename: str) -> str:
        return f"{self.config.base_url.rstrip('/')}/{filename.lstrip('/')}"

    async def _get(self, session: aiohttp.ClientSession, url: str) -> bytes:
        try:
            async with session.get(url) as response:
                if response.status != 200:
                    raise FetchError(url, f"HTTP {response.status}")
                return await response.read()
        except asyncio.TimeoutError:
            raise FetchError(url, "Timeout")
        except aiohttp.ClientError as e:
            raise FetchError(url, f"Client error: {str(e)[:80]}")

    async def fetch(self) -> FetchedAsset:
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)

        async with aiohttp.ClientSession(headers=self._default_headers(), timeout=timeout) as session:
            if not self.silent_mode:
                logger.info(f"Fetching {self.config.base_url} to find main JS file...")
            page = await self._get(session, self.config.base_url)
            filename = self.find_asset_filename(page.decode('utf-8', errors='replace'))

            if not self.silent_mode:
                logger.info(f"Found main JS file: {filename}")

            url = self.asset_url(filename)
            content = await self._get(session, url)

        return FetchedAsset(filename=filename, content=content, url=url)
