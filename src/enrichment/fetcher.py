"""Single-shot HTTP retrieval of a company website."""

from __future__ import annotations

import asyncio
import logging
from urllib.parse import urljoin

import httpx

from src.enrichment.errors import FetchTimeout, InvalidUrl, TooManyRedirects, Unreachable
from src.enrichment.models import FetchResult
from src.enrichment.urls import normalize_url

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0  # seconds, whole redirect chain included
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_MAX_RESPONSE_BYTES = 5 * 1024 * 1024
DEFAULT_USER_AGENT = "company-enrichment-bot/0.1.0"


class Fetcher:
    """GETs a normalized URL, following at most ``max_redirects`` redirects.

    There are no retries: each call touches the target site at most once per
    redirect hop. Every redirect destination is re-validated with
    :func:`normalize_url` so a public site cannot bounce us into an internal
    network.
    """

    def __init__(
        self,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        max_redirects: int = DEFAULT_MAX_REDIRECTS,
        user_agent: str = DEFAULT_USER_AGENT,
        max_response_bytes: int = DEFAULT_MAX_RESPONSE_BYTES,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._timeout = timeout
        self._max_redirects = max_redirects
        self._user_agent = user_agent
        self._max_response_bytes = max_response_bytes
        self._transport = transport

    async def fetch(self, url: str) -> FetchResult:
        """Return the final page for *url*.

        Raises:
            FetchTimeout: the whole exchange took longer than ``timeout``.
            TooManyRedirects: more than ``max_redirects`` redirects.
            Unreachable: DNS/TLS/connection failure, a non-2xx final status,
                or a redirect to a disallowed location.
        """
        try:
            async with asyncio.timeout(self._timeout):
                return await self._fetch(url)
        except TimeoutError:
            logger.warning("fetch timed out", extra={"url": url, "timeout": self._timeout})
            raise FetchTimeout() from None

    async def _fetch(self, url: str) -> FetchResult:
        current_url = url
        async with httpx.AsyncClient(
            follow_redirects=False,
            timeout=self._timeout,
            headers={"User-Agent": self._user_agent, "Accept": "text/html,application/xhtml+xml"},
            transport=self._transport,
        ) as client:
            for hop in range(self._max_redirects + 1):
                try:
                    async with client.stream("GET", current_url) as response:
                        if response.is_redirect:
                            current_url = self._next_hop(current_url, response.headers.get("location", ""))
                            logger.debug("following redirect", extra={"url": current_url, "hop": hop + 1})
                            continue

                        if not response.is_success:
                            logger.info(
                                "fetch returned non-success status",
                                extra={"url": current_url, "status_code": response.status_code},
                            )
                            raise Unreachable(
                                f"The website responded with HTTP {response.status_code}.",
                                upstream_status=response.status_code,
                            )

                        html = await self._read_body(response)
                        logger.debug(
                            "fetch completed",
                            extra={"url": current_url, "status_code": response.status_code, "bytes": len(html)},
                        )
                        return FetchResult(
                            final_url=current_url,
                            status_code=response.status_code,
                            html=html,
                            content_type=response.headers.get("content-type", ""),
                        )
                except httpx.TimeoutException:
                    logger.warning("fetch timed out in transport", extra={"url": current_url})
                    raise FetchTimeout() from None
                except httpx.HTTPError as exc:
                    # DNS, TLS and connection failures all look the same to callers.
                    logger.warning(
                        "fetch failed",
                        extra={"url": current_url, "error_type": type(exc).__name__},
                        exc_info=True,
                    )
                    raise Unreachable() from None

        logger.info("too many redirects", extra={"url": url, "max_redirects": self._max_redirects})
        raise TooManyRedirects()

    def _next_hop(self, current_url: str, location: str) -> str:
        try:
            return normalize_url(urljoin(current_url, location))
        except InvalidUrl:
            logger.warning(
                "redirect to disallowed location",
                extra={"url": current_url, "location": location[:200]},
            )
            raise Unreachable("The website redirected to a disallowed location.") from None

    async def _read_body(self, response: httpx.Response) -> str:
        """Read at most ``max_response_bytes`` of the body and decode it."""
        chunks: list[bytes] = []
        total = 0
        async for chunk in response.aiter_bytes():
            remaining = self._max_response_bytes - total
            chunks.append(chunk[:remaining])
            total += min(len(chunk), remaining)
            if total >= self._max_response_bytes:
                logger.debug("response body truncated", extra={"limit": self._max_response_bytes})
                break

        raw = b"".join(chunks)
        encoding = response.charset_encoding or "utf-8"
        try:
            return raw.decode(encoding, errors="replace")
        except LookupError:
            return raw.decode("utf-8", errors="replace")
