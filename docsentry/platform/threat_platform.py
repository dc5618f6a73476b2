from typing import Any

import httpx

from docsentry.analysis.models import AnalysisResult, ThreatPlatformConfig
from docsentry.logging.logger import Log

DEFAULT_TIMEOUT_SECONDS = 30.0


class ThreatPlatformClient:
    """Publishes finished analyses to an external threat-modelling platform.

    Publishing is best effort: every failure is logged and reported as
    ``None`` so it never changes the outcome of the analysis itself.
    """

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self._client = client
        self._timeout_seconds = timeout_seconds

    async def publish(
        self,
        result: AnalysisResult,
        config: ThreatPlatformConfig | None,
    ) -> Any | None:
        """POST the result to ``{base_url}/api/scenarios``; return the decoded reply."""
        if config is None or not config.base_url.strip():
            return None
        if self._client is not None:
            return await self._publish(self._client, result, config)
        async with httpx.AsyncClient() as client:
            return await self._publish(client, result, config)

    async def _publish(
        self,
        client: httpx.AsyncClient,
        result: AnalysisResult,
        config: ThreatPlatformConfig,
    ) -> Any | None:
        url = f"{config.base_url.strip().rstrip('/')}/api/scenarios"
        headers = {"Content-Type": "application/json"}
        if config.api_key:
            headers["Authorization"] = f"Bearer {config.api_key}"
        try:
            response = await client.post(
                url, headers=headers, json=result.to_dict(), timeout=self._timeout_seconds
            )
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            Log.warning("Threat platform unreachable", url=url, error=str(exc))
            return None

        if not response.is_success:
            Log.warning("Threat platform rejected analysis", url=url, status=response.status_code)
            return None
        try:
            reply = response.json()
        except ValueError:
            reply = {}
        Log.info("Analysis published to threat platform", url=url)
        return reply
