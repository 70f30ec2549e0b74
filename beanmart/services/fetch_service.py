"""Download images from remote URLs with a bounded timeout and retry policy."""
import logging
import time
from dataclasses import dataclass

import httpx

from beanmart.config import (
    FETCH_BACKOFF_SECONDS,
    FETCH_MAX_ATTEMPTS,
    FETCH_TIMEOUT_SECONDS,
    MAX_UPLOAD_BYTES,
)
from beanmart.errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = "Mozilla/5.0 (compatible; Beanmart API)"


@dataclass
class FetchedImage:
    content: bytes
    content_type: str


class RemoteFetcher:
    """HTTP GET for image URLs.

    Retries only timeout-class failures (``httpx.TimeoutException``), up to
    ``max_attempts`` total, sleeping a fixed ``backoff`` between attempts.
    Connection errors, HTTP errors and oversized bodies fail on the first try.
    """

    def __init__(
        self,
        timeout=FETCH_TIMEOUT_SECONDS,
        max_bytes=MAX_UPLOAD_BYTES,
        max_attempts=FETCH_MAX_ATTEMPTS,
        backoff=FETCH_BACKOFF_SECONDS,
        transport=None,
        sleep=time.sleep,
    ):
        self.timeout = timeout
        self.max_bytes = max_bytes
        self.max_attempts = max_attempts
        self.backoff = backoff
        self._transport = transport
        self._sleep = sleep

    def fetch(self, url):
        for attempt in range(1, self.max_attempts + 1):
            try:
                return self._get(url)
            except httpx.TimeoutException as e:
                logger.warning(
                    "Download attempt %d/%d timed out for %s: %s",
                    attempt,
                    self.max_attempts,
                    url,
                    e,
                )
                if attempt == self.max_attempts:
                    raise FetchError(
                        f"Download timeout after {self.max_attempts} attempts",
                        kind="timeout",
                        error=str(e) or type(e).__name__,
                    ) from e
                self._sleep(self.backoff)
            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                if status == 404:
                    raise FetchError(
                        "Image not found at URL", kind="not_found", error=str(e)
                    ) from e
                raise FetchError(
                    f"Failed to download image from URL: HTTP {status}",
                    kind="http",
                    error=str(e),
                ) from e
            except httpx.ConnectError as e:
                raise FetchError(
                    "Failed to connect to image host", kind="connection", error=str(e)
                ) from e
            except httpx.InvalidURL as e:
                raise FetchError(
                    "Invalid URL provided", kind="invalid_url", error=str(e)
                ) from e
            except httpx.HTTPError as e:
                raise FetchError(
                    f"Failed to download image from URL: {e}",
                    kind="generic",
                    error=str(e),
                ) from e

    def _get(self, url):
        deadline = time.monotonic() + self.timeout
        with httpx.Client(
            timeout=self.timeout,
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
            transport=self._transport,
        ) as client:
            with client.stream("GET", url) as response:
                response.raise_for_status()

                declared = response.headers.get("Content-Length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise FetchError(
                        "Remote image exceeds 50MB limit", kind="too_large"
                    )

                chunks = []
                received = 0
                for chunk in response.iter_bytes():
                    received += len(chunk)
                    if received > self.max_bytes:
                        raise FetchError(
                            "Remote image exceeds 50MB limit", kind="too_large"
                        )
                    if time.monotonic() > deadline:
                        raise httpx.ReadTimeout(
                            f"Download exceeded {self.timeout}s",
                            request=response.request,
                        )
                    chunks.append(chunk)

                content_type = response.headers.get(
                    "Content-Type", "application/octet-stream"
                )
                logger.info("Downloaded %d bytes from %s (%s)", received, url, content_type)
                return FetchedImage(content=b"".join(chunks), content_type=content_type)
