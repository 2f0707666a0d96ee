# contact_scout/crawler/fetcher.py
"""
Fetcher module: single HTTP requests with rotating User-Agent, hard timeout and optional retry/backoff.
"""
from __future__ import annotations

import asyncio
import logging
import random
from typing import Mapping, Optional

from aiohttp import ClientError, ClientSession, ClientTimeout

from contact_scout.config import ScoutConfig
from contact_scout.crawler.models import FetchResult
from contact_scout.logger import LOGGER_NAME

__all__ = ("Fetcher", "BASE_HEADERS")

BASE_HEADERS: Mapping[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Cache-Control": "no-cache",
    "Pragma": "no-cache",
}


class Fetcher:
    """Handles HTTP fetching with per-call timeout, retries/backoff and UA rotation."""

    def __init__(self, session: ClientSession, config: Optional[ScoutConfig] = None) -> None:
        self.session = session
        self.config = config or ScoutConfig()
        self.logger = logging.getLogger(LOGGER_NAME)

    def build_headers(self, extra: Optional[Mapping[str, str]] = None) -> dict[str, str]:
        headers = {"User-Agent": random.choice(self.config.user_agents), **BASE_HEADERS}
        if extra:
            headers.update(extra)
        return headers

    async def fetch_with_timeout(
        self,
        url: str,
        timeout: float,
        *,
        method: str = "GET",
        allow_redirects: bool = True,
        headers: Optional[Mapping[str, str]] = None,
        read_timeout: Optional[float] = None,
    ) -> FetchResult | None:
        """
        Issue one request bounded by *timeout* seconds, body read included.

        Returns FetchResult for any HTTP response (``ok`` only for 2xx),
        or None on transport failure, timeout or undecodable body.
        """
        attempts = 0
        while True:
            try:
                return await self._request(url, timeout, method, allow_redirects, headers, read_timeout)
            except asyncio.TimeoutError:
                self.logger.warning("Timeout after %.1f s: %s", timeout, url)
                return None
            except (LookupError, UnicodeDecodeError) as exc:
                self.logger.warning("Could not decode body of %s: %s", url, exc)
                return None
            except ValueError as exc:
                self.logger.warning("Invalid URL %s: %s", url, exc)
                return None
            except ClientError as exc:
                attempts += 1
                if attempts > self.config.retry_times:
                    self.logger.warning("Fetch failed %s: %s", url, exc)
                    return None
                # exponential backoff, cap at 60s
                backoff = min(60, 2**attempts + random.random())
                self.logger.debug("Retry %d/%d for %s after %.2f s", attempts, self.config.retry_times, url, backoff)
                await asyncio.sleep(backoff)

    async def _request(
        self,
        url: str,
        timeout: float,
        method: str,
        allow_redirects: bool,
        headers: Optional[Mapping[str, str]],
        read_timeout: Optional[float],
    ) -> FetchResult:
        async with self.session.request(
            method,
            url,
            headers=self.build_headers(headers),
            allow_redirects=allow_redirects,
            timeout=ClientTimeout(total=timeout),
        ) as resp:
            body = ""
            if method.upper() != "HEAD":
                reader = resp.text(errors="replace")
                body = await (asyncio.wait_for(reader, read_timeout) if read_timeout else reader)
            return FetchResult(
                ok=200 <= resp.status < 300,
                status=resp.status,
                final_url=str(resp.url),
                body=body,
                headers=resp.headers.copy(),
            )
