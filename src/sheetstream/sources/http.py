"""HTTP/HTTPS source."""

from collections.abc import Iterator
import logging
from typing import Any

from typing_extensions import override

from sheetstream.sources.base import StreamSource, guess_mime_type

logger = logging.getLogger(__name__)


class HTTPSource(StreamSource):
    """
    Stream a workbook from an HTTP(S) URL with httpx.

    Every pass issues a new GET request unless ``cache`` is set, in which case
    the first complete download is kept in memory and replayed.
    """

    def __init__(
        self,
        url: str,
        headers: dict[str, str] | None = None,
        auth: tuple[str, str] | None = None,
        timeout: int = 30,
        chunk_size: int = 16777216,
        cache: bool = False,
    ) -> None:
        """
        Initialize HTTPSource.

        Args:
            url: HTTP/HTTPS URL of the workbook.
            headers: Optional custom HTTP headers.
            auth: Optional (username, password) for basic auth.
            timeout: Request timeout in seconds (default: 30).
            chunk_size: Size of chunks to read (default: 16MB).
            cache: Keep the downloaded bytes for later passes.

        Raises:
            ImportError: If httpx is not installed.
            ValueError: If the URL is not an http(s) URL.
        """
        try:
            import httpx  # noqa: F401
        except ImportError as e:
            raise ImportError(
                "httpx is required for HTTPSource. Install with: pip install sheetstream[http]"
            ) from e

        if not url or not url.startswith(("http://", "https://")):
            raise ValueError("url must be a valid HTTP/HTTPS URL")

        self.url = url
        self.headers = headers or {}
        self.auth = auth
        self.timeout = timeout
        self.chunk_size = chunk_size
        self.cache = cache
        self._cached: list[bytes] | None = None

        logger.debug("HTTPSource initialized for %s", url)

    @override
    def get_stream(self) -> Iterator[bytes]:
        """
        Stream the resource in chunks.

        Raises:
            IOError: If the request fails.
        """
        if self._cached is not None:
            yield from self._cached
            return

        import httpx

        received: list[bytes] = []
        try:
            with httpx.stream(
                "GET",
                self.url,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
                follow_redirects=True,
            ) as response:
                response.raise_for_status()

                for chunk in response.iter_bytes(chunk_size=self.chunk_size):
                    if chunk:
                        if self.cache:
                            received.append(chunk)
                        yield chunk
        except httpx.HTTPError as e:
            logger.exception("Error reading from %s: %s", self.url, e)
            raise OSError(f"Failed to read from {self.url}: {e}") from e

        if self.cache:
            self._cached = received

    @override
    def get_metadata(self) -> dict[str, Any]:
        """Return content length and type from a HEAD request (best effort)."""
        import httpx

        size = 0
        content_type = guess_mime_type(httpx.URL(self.url).path)
        try:
            response = httpx.head(
                self.url,
                headers=self.headers,
                auth=self.auth,
                timeout=self.timeout,
                follow_redirects=True,
            )
            response.raise_for_status()
            length = response.headers.get("content-length")
            size = int(length) if length else 0
            content_type = response.headers.get("content-type", content_type)
        except httpx.HTTPError as e:
            logger.warning("Could not retrieve metadata for %s: %s", self.url, e)

        return {
            "size": size,
            "type": content_type,
            "source_type": "http",
            "url": self.url,
        }
