"""
HTTP fetcher for player scripts. Wraps aiohttp with common defaults,
headers, timeout, and optional proxy support.
"""
from __future__ import annotations
import asyncio
from typing import Optional
from urllib.parse import urljoin

import aiohttp

from .errors import NetworkError

DEFAULT_UA = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/120.0.0.0 Safari/537.36"
)


class Fetcher:
    def __init__(self, *, timeout: int = 10, proxy: str | None = None):
        self.timeout = aiohttp.ClientTimeout(total=timeout, connect=4)
        self.proxy = proxy
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                timeout=self.timeout,
                headers={"User-Agent": DEFAULT_UA},
            )
        return self._session

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()

    async def get(
        self,
        url: str,
        *,
        base_url: str | None = None,
        headers: dict | None = None,
    ) -> str:
        """GET `url` as text. Raises NetworkError on transport failure or non-2xx status."""
        full = urljoin(base_url, url) if base_url else url
        session = await self._get_session()
        try:
            async with session.get(
                full,
                headers=headers or {},
                proxy=self.proxy,
            ) as resp:
                if resp.status >= 400:
                    raise NetworkError(f"GET {full} returned HTTP {resp.status}")
                return await resp.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise NetworkError(f"GET {full} failed: {type(e).__name__}: {e}") from e
