
# ETag-based conditional HTTP client, shared by the feed fetch and the
# webhook notifier.

# Statuspage.io sends an ETag with every response. We send it back as
# If-None-Match; when nothing changed the server answers 304 with no body.
# A 304 is still an observation for the debounce window, so the last body
# seen for that URL is handed back instead of "nothing".

import asyncio
import logging
from typing import Any

import aiohttp

from incident_watch.config import REQUEST_TIMEOUT_SECONDS
from incident_watch.errors import FeedError

log = logging.getLogger(__name__)


class ConditionalHTTPClient:
    """
    Wraps an aiohttp.ClientSession with ETag-based conditional GET support.

    Per-URL ETag and last body are kept in dicts for the life of the process.
    """

    def __init__(self, session: aiohttp.ClientSession, timeout: float = REQUEST_TIMEOUT_SECONDS) -> None:
        self._session = session
        self._timeout = aiohttp.ClientTimeout(total=timeout)
        self._etags: dict[str, str] = {}    # url -> last received ETag
        self._bodies: dict[str, Any] = {}   # url -> body that ETag belongs to

    async def get_json(self, url: str) -> Any:
        """
        Perform a conditional GET and return the decoded JSON body.

        On 304 Not Modified the cached body from the previous 200 is returned.

        Raises:
            aiohttp.ClientResponseError  on non-2xx / non-304 responses
            aiohttp.ClientError          on connection / decoding failures
            asyncio.TimeoutError         on request timeout
            FeedError                    when the body is not valid JSON
        """
        headers: dict[str, str] = {}
        if url in self._etags and url in self._bodies:
            headers["If-None-Match"] = self._etags[url]

        try:
            async with self._session.get(url, headers=headers, timeout=self._timeout) as resp:
                if resp.status == 304:
                    log.debug("304 Not Modified for %s, reusing last body", url)
                    return self._bodies[url]

                resp.raise_for_status()
                data = await resp.json()

                etag = resp.headers.get("ETag")
                if etag:
                    self._etags[url] = etag
                    self._bodies[url] = data
                return data

        except aiohttp.ClientResponseError as exc:
            log.warning("HTTP error fetching %s: %s %s", url, exc.status, exc.message)
            raise
        except asyncio.TimeoutError:
            log.warning("Timeout fetching %s", url)
            raise
        except ValueError as exc:
            # json.JSONDecodeError: e.g. a CDN error page served as application/json
            log.warning("Invalid JSON from %s: %s", url, exc)
            raise FeedError(f"invalid JSON body: {exc}", url=url) from exc

    async def post_json(self, url: str, payload: dict[str, Any]) -> int:
        """
        POST a JSON payload and return the response status.

        Raises the same errors as get_json.
        """
        try:
            async with self._session.post(url, json=payload, timeout=self._timeout) as resp:
                resp.raise_for_status()
                return resp.status

        except aiohttp.ClientResponseError as exc:
            log.warning("HTTP error posting to webhook: %s %s", exc.status, exc.message)
            raise
        except asyncio.TimeoutError:
            log.warning("Timeout posting to webhook")
            raise
