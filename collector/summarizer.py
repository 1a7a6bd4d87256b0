"""
Summarizer client for OpenAI-compatible chat completion endpoints.

Builds a short shopping-trend summary from an article's title and
description. `summarize` returns None when there is nothing to summarize or
the model answered with nothing; transport and protocol errors are raised.
"""
import logging
from typing import Optional

import httpx

from shared.config import settings

logger = logging.getLogger(__name__)

MIN_TITLE_LENGTH = 10
MIN_DESCRIPTION_LENGTH = 10

LANGUAGE_NAMES = {"ko": "Korean", "en": "English"}


class SummarizerError(Exception):
    """The summarizer answered with something that is not a completion."""


class SummarizerClient:
    """Chat-completion based summarizer."""

    def __init__(
        self,
        base_url: str = None,
        api_key: Optional[str] = None,
        model: str = None,
        timeout: float = None,
        max_length: int = None,
        language: str = None,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        self.base_url = (base_url or settings.summarizer_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.summarizer_api_key
        self.model = model or settings.summarizer_model
        self.timeout = timeout or settings.summarizer_timeout
        self.max_length = max_length or settings.summary_max_length
        self.language = language or settings.summary_language
        self._http_client = http_client
        self._owns_client = http_client is None

    def _client(self) -> httpx.AsyncClient:
        """One client per summarizer, created on first use."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self.timeout)
        return self._http_client

    async def aclose(self) -> None:
        """Close the HTTP client unless it was injected by the caller."""
        if self._owns_client and self._http_client is not None:
            await self._http_client.aclose()
            self._http_client = None

    def _system_prompt(self) -> str:
        language = LANGUAGE_NAMES.get(self.language, self.language)
        return (
            "You summarize shopping trend news articles.\n"
            f"- Write a summary of at most {self.max_length} characters from the given title and description.\n"
            f"- Write in {language}.\n"
            "- Keep an objective tone.\n"
            "- Emphasize the key point and the trend.\n"
            "- Mention product and brand names when present."
        )

    def _user_prompt(self, title: str, description: str) -> str:
        if description and len(description) > MIN_DESCRIPTION_LENGTH:
            text = f"Title: {title}\nDescription: {description}"
        else:
            text = f"Title: {title}"
        return f"Summarize the following article:\n\n{text}"

    async def summarize(self, title: str, description: str = "") -> Optional[str]:
        """Summarize an article from its metadata."""
        if not title or len(title) < MIN_TITLE_LENGTH:
            logger.info(f"Title too short to summarize: {title!r}")
            return None

        payload = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": self._system_prompt()},
                {"role": "user", "content": self._user_prompt(title, description)},
            ],
            "max_tokens": 300,
            "temperature": 0.3,
        }
        headers = {}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        url = f"{self.base_url}/chat/completions"
        try:
            response = await self._client().post(url, json=payload, headers=headers)
            response.raise_for_status()
        except httpx.TimeoutException as e:
            logger.error(f"Summarizer timeout: {e}")
            raise
        except httpx.HTTPStatusError as e:
            logger.error(f"Summarizer HTTP error: {e.response.status_code}")
            raise

        try:
            content = response.json()["choices"][0]["message"]["content"]
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise SummarizerError(f"Malformed summarizer response: {e}") from e

        summary = (content or "").strip()
        return summary or None
