import httpx

from docsentry.documents.base import MAX_BUFFER_BYTES
from docsentry.exceptions import NetworkError, StageTimeoutError
from docsentry.logging.logger import Log


class AttachmentFetcher:
    """Downloads attachment bytes over HTTP with a per-call timeout."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_seconds: float = 30.0,
        max_bytes: int = MAX_BUFFER_BYTES,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds
        self._max_bytes = max_bytes

    async def fetch(self, url: str, timeout_seconds: float | None = None) -> bytes:
        """Return the body of a successful GET.

        Raises:
            StageTimeoutError: if the download exceeds its time budget.
            NetworkError: on connection failures, non-2xx responses and bodies
                over the size limit.
        """
        timeout = timeout_seconds or self._timeout_seconds
        if self._client is not None:
            return await self._fetch(self._client, url, timeout)
        async with httpx.AsyncClient() as client:
            return await self._fetch(client, url, timeout)

    async def _fetch(self, client: httpx.AsyncClient, url: str, timeout: float) -> bytes:
        try:
            response = await client.get(url, timeout=timeout, follow_redirects=True)
        except httpx.TimeoutException as exc:
            raise StageTimeoutError(f"Request timed out after {timeout}s: {url}") from exc
        except (httpx.RequestError, httpx.InvalidURL) as exc:
            raise NetworkError(f"Unable to download {url}: {exc}") from exc

        if not response.is_success:
            raise NetworkError(
                f"HTTP {response.status_code} {response.reason_phrase} fetching {url}"
            )

        declared = response.headers.get("content-length")
        if declared and declared.isdigit() and int(declared) > self._max_bytes:
            raise NetworkError(f"Input data too large: {declared} bytes (max {self._max_bytes})")
        content = response.content
        if len(content) > self._max_bytes:
            raise NetworkError(f"Input data too large: {len(content)} bytes (max {self._max_bytes})")

        Log.info(f"Fetched {len(content)} bytes", url=url)
        return content
