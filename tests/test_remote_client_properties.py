"""
Tests for the remote analysis service client.

Requests are answered in-process through httpx.MockTransport; nothing leaves
the test process.
"""

import asyncio
import io
import json

import httpx
import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from fake_service import API_BASE, PREFIX, FakeService, make_client, phishing_payload
from phisher_panel.audit_logger import AuditLogger
from phisher_panel.config import ApiConfig
from phisher_panel.enums import ExportFormat, LogLevel, NetworkErrorCode, Sensitivity
from phisher_panel.exceptions import NetworkError
from phisher_panel.remote_client import RemoteServiceClient


USER_ID = "user-123"


def _client_for(handler) -> RemoteServiceClient:
    return RemoteServiceClient(
        ApiConfig(base_url=API_BASE, timeout_seconds=2.0),
        transport=httpx.MockTransport(handler),
    )


class TestAnalyzeRequestProperty:
    """The analyze body carries everything the service needs."""

    @given(
        path=st.text(alphabet="abcdefghijklmnop/", max_size=20),
        sensitivity=st.sampled_from(list(Sensitivity)),
    )
    @settings(max_examples=30)
    def test_body_fields(self, path: str, sensitivity: Sensitivity) -> None:
        """
        Property: every analyze request posts the URL, user agent, a
        millisecond timestamp, the sensitivity and the user id.
        """
        url = f"https://example.com/{path}"
        service = FakeService()

        async def run():
            async with make_client(service) as client:
                return await client.analyze(url, sensitivity, USER_ID)

        result = asyncio.run(run())

        assert result.url == url
        assert len(service.analyze_calls) == 1
        body = json.loads(service.analyze_calls[0].content)
        assert body["url"] == url
        assert body["sensitivity"] == sensitivity.value
        assert body["userId"] == USER_ID
        assert body["userAgent"] == "PhisherPanel/0.1"
        assert isinstance(body["timestamp"], int)
        assert body["timestamp"] > 1_600_000_000_000

    def test_phishing_payload_is_decoded(self) -> None:
        service = FakeService()
        url = "https://login-bank.example/"
        service.verdicts[url] = phishing_payload(url)

        async def run():
            async with make_client(service) as client:
                return await client.analyze(url, Sensitivity.BALANCED, USER_ID)

        result = asyncio.run(run())
        assert result.is_phishing
        assert result.risk_score == 92
        assert result.confidence == 88
        assert result.threats == ["Credential harvesting form", "Lookalike domain"]

    def test_out_of_range_score_is_clamped(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json={"isPhishing": False, "riskScore": 250})

        async def run():
            async with _client_for(handler) as client:
                return await client.analyze("https://a.example/", Sensitivity.STRICT, USER_ID)

        result = asyncio.run(run())
        assert result.risk_score == 100
        assert result.url == "https://a.example/"

    @pytest.mark.parametrize("confidence", [b"NaN", b"Infinity", b"1e400"])
    def test_non_finite_confidence_is_absent(self, confidence: bytes) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b'{"isPhishing": false, "riskScore": 20, "confidence": ' + confidence + b"}",
            )

        async def run():
            async with _client_for(handler) as client:
                return await client.analyze("https://a.example/", Sensitivity.BALANCED, USER_ID)

        result = asyncio.run(run())
        assert result.confidence is None
        assert result.risk_score == 20


class TestNetworkErrorProperty:
    """Failures are reported as NetworkError with a code."""

    def test_timeout(self) -> None:
        service = FakeService(analyze_timeout=True)

        async def run():
            async with make_client(service) as client:
                await client.analyze("https://slow.example/", Sensitivity.BALANCED, USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.code == NetworkErrorCode.TIMEOUT.value

    @given(status=st.sampled_from([400, 401, 403, 404, 429, 500, 502, 503]))
    @settings(max_examples=8)
    def test_non_2xx_status(self, status: int) -> None:
        """Property: any non-2xx answer raises http_error carrying the status."""
        service = FakeService(analyze_status=status)

        async def run():
            async with make_client(service) as client:
                await client.analyze("https://a.example/", Sensitivity.BALANCED, USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        error = exc_info.value
        assert error.code == NetworkErrorCode.HTTP_ERROR.value
        assert error.status_code == status
        assert error.details["remote_message"] == "internal error"

    def test_connection_error(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        async def run():
            async with _client_for(handler) as client:
                await client.get_whitelist(USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.code == NetworkErrorCode.NETWORK_ERROR.value

    @pytest.mark.parametrize("content", [
        b"<html>oops</html>",
        b"[1, 2, 3]",
        b'{"isPhishing": false, "riskScore": 1e400}',
        b'{"isPhishing": true, "riskScore": NaN}',
        b'{"isPhishing": false, "riskScore": -Infinity}',
    ])
    def test_undecodable_analysis_is_parse_error(self, content: bytes) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, content=content)

        async def run():
            async with _client_for(handler) as client:
                await client.analyze("https://a.example/", Sensitivity.BALANCED, USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.code == NetworkErrorCode.PARSE_ERROR.value

    def test_failures_are_logged(self) -> None:
        service = FakeService(analyze_status=500)
        logger = AuditLogger(output_format="json", output_stream=io.StringIO())

        async def run():
            async with make_client(service, logger=logger) as client:
                await client.analyze("https://a.example/", Sensitivity.BALANCED, USER_ID)

        with pytest.raises(NetworkError):
            asyncio.run(run())
        errors = [e for e in logger.entries if e.level == LogLevel.ERROR]
        assert errors
        assert errors[0].component == "RemoteServiceClient"


class TestDomainListRequests:
    """Whitelist and blacklist calls share the /api/v1 prefix."""

    @pytest.mark.parametrize("list_name", ["whitelist", "blacklist"])
    def test_add_list_remove(self, list_name: str) -> None:
        service = FakeService()

        async def run():
            async with make_client(service) as client:
                add = getattr(client, f"add_to_{list_name}")
                remove = getattr(client, f"remove_from_{list_name}")
                fetch = getattr(client, f"get_{list_name}")
                await add("example.com", USER_ID)
                listed = await fetch(USER_ID)
                await remove("example.com", USER_ID)
                return listed, await fetch(USER_ID)

        listed, after = asyncio.run(run())

        assert listed == ["example.com"]
        assert after == []
        base = f"{PREFIX}/{list_name}"
        post = service.calls("POST", base)[0]
        assert json.loads(post.content) == {"domain": "example.com", "userId": USER_ID}
        delete = service.calls("DELETE", f"{base}/example.com")[0]
        assert json.loads(delete.content) == {"userId": USER_ID}
        assert all(r.url.params["userId"] == USER_ID for r in service.calls("GET", base))

    def test_duplicate_add_surfaces_remote_message(self) -> None:
        service = FakeService()
        service.lists["blacklist"].append("evil.com")

        async def run():
            async with make_client(service) as client:
                await client.add_to_blacklist("evil.com", USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.status_code == 409
        assert exc_info.value.details["remote_message"] == "Domain already in blacklist"

    def test_bare_list_response_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=["a.com", "b.org"])

        async def run():
            async with _client_for(handler) as client:
                return await client.get_whitelist(USER_ID)

        assert asyncio.run(run()) == ["a.com", "b.org"]


class TestHistoryRequests:
    """History listing, export and clear."""

    def test_history_query_parameters(self) -> None:
        service = FakeService()
        service.history = [phishing_payload("https://a.example/"), {"url": "https://b.example/", "riskScore": 3}]

        async def run():
            async with make_client(service) as client:
                return await client.get_history(USER_ID, limit=25, only_threats=True)

        records = asyncio.run(run())

        request = service.calls("GET", f"{PREFIX}/history")[0]
        assert request.url.params["limit"] == "25"
        assert request.url.params["onlyThreats"] == "true"
        assert request.url.params["sortOrder"] == "desc"
        assert request.url.params["userId"] == USER_ID
        assert [r.url for r in records] == ["https://a.example/"]

    def test_bare_history_list_accepted(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(200, json=[{"url": "https://x.example/", "riskScore": 40, "_id": "abc"}, "junk"])

        async def run():
            async with _client_for(handler) as client:
                return await client.get_history(USER_ID)

        records = asyncio.run(run())
        assert len(records) == 1
        assert records[0].risk_score == 40
        assert records[0].record_id == "abc"

    def test_history_row_with_non_finite_score_is_kept(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            return httpx.Response(
                200,
                content=b'{"analyses": [{"url": "https://x.example/", "riskScore": Infinity, "confidence": NaN}]}',
            )

        async def run():
            async with _client_for(handler) as client:
                return await client.get_history(USER_ID)

        records = asyncio.run(run())
        assert [r.url for r in records] == ["https://x.example/"]
        assert records[0].risk_score == 0
        assert records[0].confidence is None

    @pytest.mark.parametrize("export_format", list(ExportFormat))
    def test_export_returns_raw_bytes(self, export_format: ExportFormat) -> None:
        service = FakeService()
        service.history = [phishing_payload("https://a.example/")]

        async def run():
            async with make_client(service) as client:
                return await client.export_history(USER_ID, export_format)

        payload = asyncio.run(run())
        request = service.calls("GET", f"{PREFIX}/history/export")[0]
        assert request.url.params["format"] == export_format.value
        assert b"https://a.example/" in payload

    def test_clear(self) -> None:
        service = FakeService()
        service.history = [phishing_payload("https://a.example/")]

        async def run():
            async with make_client(service) as client:
                await client.clear_history(USER_ID)

        asyncio.run(run())
        assert service.history == []
        assert service.calls("DELETE", f"{PREFIX}/history/all")[0].url.params["userId"] == USER_ID


class TestSimulationMode:
    """Simulation mode answers locally and never opens a connection."""

    def test_no_requests_are_sent(self) -> None:
        sent = []

        def handler(request: httpx.Request) -> httpx.Response:
            sent.append(request)
            return httpx.Response(500)

        client = RemoteServiceClient(simulation_mode=True, transport=httpx.MockTransport(handler))

        async def run():
            result = await client.analyze("https://a.example/", Sensitivity.BALANCED, USER_ID)
            await client.add_to_whitelist("example.com", USER_ID)
            whitelist = await client.get_whitelist(USER_ID)
            history = await client.get_history(USER_ID)
            exported = await client.export_history(USER_ID, ExportFormat.CSV)
            await client.clear_history(USER_ID)
            cleared = await client.get_history(USER_ID)
            await client.close()
            return result, whitelist, history, exported, cleared

        result, whitelist, history, exported, cleared = asyncio.run(run())

        assert sent == []
        assert not result.is_phishing
        assert whitelist == ["example.com"]
        assert [r.url for r in history] == ["https://a.example/"]
        assert exported.startswith(b"url,isPhishing,riskScore,createdAt")
        assert cleared == []

    def test_simulated_duplicate_is_rejected(self) -> None:
        client = RemoteServiceClient(simulation_mode=True)

        async def run():
            await client.add_to_blacklist("evil.com", USER_ID)
            await client.add_to_blacklist("evil.com", USER_ID)

        with pytest.raises(NetworkError) as exc_info:
            asyncio.run(run())
        assert exc_info.value.status_code == 409
