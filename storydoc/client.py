"""Async client for story documents served over HTTP."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import httpx

from .errors import StoryFetchError
from .loader import detect_format, load_story, parse_story_text
from .models import Story

logger = logging.getLogger(__name__)


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


class StoryClient:
    """Async fetcher for remote story documents.

    Usage::

        async with StoryClient(token="...") as client:
            story = await client.fetch("https://example.org/stories/intro.json")
    """

    def __init__(
        self,
        token: str = "",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        headers = {"Accept": "application/json, application/yaml;q=0.9, */*;q=0.1"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            headers=headers,
            timeout=timeout,
            transport=transport,
            follow_redirects=True,
        )

    async def __aenter__(self) -> StoryClient:
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.close()

    async def close(self) -> None:
        await self._client.aclose()

    async def fetch(self, url: str) -> Story:
        """Download and parse the story document at ``url``."""
        try:
            resp = await self._client.get(url)
        except httpx.HTTPError as exc:
            raise StoryFetchError(f"Unable to fetch story from {url}: {exc}") from exc

        if resp.status_code >= 400:
            raise StoryFetchError(
                f"HTTP {resp.status_code} fetching story from {url}",
                status_code=resp.status_code,
            )

        content_type = resp.headers.get("content-type", "")
        fmt = "yaml" if "yaml" in content_type else detect_format(httpx.URL(url).path)
        logger.debug("Fetched %d bytes (%s) from %s", len(resp.content), fmt, url)
        return parse_story_text(resp.text, fmt, source=url)


async def open_story(
    source: str | Path,
    token: str = "",
    timeout: float = 30.0,
    transport: httpx.AsyncBaseTransport | None = None,
) -> Story:
    """Load a story from a local path or an http(s) URL."""
    source = str(source)
    if not is_url(source):
        return load_story(source)
    async with StoryClient(token=token, timeout=timeout, transport=transport) as client:
        return await client.fetch(source)
