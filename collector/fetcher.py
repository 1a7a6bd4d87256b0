"""Page fetcher for source listings and feeds."""
import asyncio
from typing import Optional
from dataclasses import dataclass
import aiohttp
from shared.config import settings


@dataclass
class FetchedPage:
    """Container for a fetched page body."""
    url: str
    body: str
    success: bool
    error: Optional[str] = None


class PageFetcher:
    """Fetches raw pages over HTTP. Failures are reported, never raised."""

    def __init__(self, timeout: int = None, user_agent: str = None):
        self.timeout = timeout or settings.fetch_timeout
        self.headers = {
            "User-Agent": user_agent or settings.user_agent,
            "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
            "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8,en;q=0.7",
        }

    async def fetch(self, url: str) -> FetchedPage:
        """
        Fetch a page body.

        Returns FetchedPage with success=False and an error description on
        HTTP errors, timeouts and network failures.
        """
        try:
            async with aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout),
                headers=self.headers
            ) as session:
                async with session.get(url) as response:
                    if response.status >= 400:
                        return FetchedPage(
                            url=url,
                            body="",
                            success=False,
                            error=f"HTTP Error {response.status}"
                        )

                    body = await response.text()
                    return FetchedPage(url=url, body=body, success=True)

        except asyncio.TimeoutError:
            return FetchedPage(
                url=url,
                body="",
                success=False,
                error=f"Timeout after {self.timeout} seconds"
            )
        except aiohttp.ClientError as e:
            return FetchedPage(
                url=url,
                body="",
                success=False,
                error=f"Network error: {str(e)}"
            )
