import json

import httpx
import pytest

from docsentry.analysis.models import AnalysisResult, ThreatPlatformConfig
from docsentry.platform.threat_platform import ThreatPlatformClient

RESULT = AnalysisResult(summary="s", recommendations=("Use MFA",))


class TestThreatPlatformClient:
    @pytest.mark.asyncio
    async def test_posts_result(self) -> None:
        seen: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(201, json={"id": 7})

        client = ThreatPlatformClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        reply = await client.publish(
            RESULT, ThreatPlatformConfig(base_url="https://tm.example/", api_key="tok")
        )
        assert reply == {"id": 7}
        assert str(seen[0].url) == "https://tm.example/api/scenarios"
        assert seen[0].headers["Authorization"] == "Bearer tok"
        assert json.loads(seen[0].content)["recommendations"] == ["Use MFA"]

    @pytest.mark.asyncio
    async def test_skipped_without_config(self) -> None:
        assert await ThreatPlatformClient().publish(RESULT, None) is None
        assert await ThreatPlatformClient().publish(RESULT, ThreatPlatformConfig(base_url=" ")) is None

    @pytest.mark.asyncio
    async def test_rejection_returns_none(self) -> None:
        transport = httpx.MockTransport(lambda request: httpx.Response(500))
        client = ThreatPlatformClient(httpx.AsyncClient(transport=transport))
        assert await client.publish(RESULT, ThreatPlatformConfig(base_url="https://tm.example")) is None

    @pytest.mark.asyncio
    async def test_unreachable_returns_none(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        client = ThreatPlatformClient(httpx.AsyncClient(transport=httpx.MockTransport(handler)))
        assert await client.publish(RESULT, ThreatPlatformConfig(base_url="https://tm.example")) is None
