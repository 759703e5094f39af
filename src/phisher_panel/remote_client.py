"""
Remote analysis service client.

This module provides an async client for the phishing analysis backend:
URL analysis, the per-user whitelist and blacklist, and scan history with
export and clear. All calls carry an explicit deadline; transport failures,
timeouts, non-2xx responses and undecodable bodies are raised as
NetworkError with a NetworkErrorCode.
"""

import json
import time
from datetime import datetime, timezone
from typing import Any, Optional
from urllib.parse import quote

import httpx

from .audit_logger import AuditLogger
from .config import ApiConfig
from .enums import ExportFormat, NetworkErrorCode, Sensitivity
from .exceptions import NetworkError
from .models import AnalysisResult, HistoryRecord


def _now_ms() -> int:
    return int(time.time() * 1000)


class SimulatedBackend:
    """
    In-memory stand-in for the service, used in simulation mode.

    Lists and history behave like the real service for a single process so
    that dry runs exercise the same panel flows without network access.
    """

    def __init__(self) -> None:
        self.whitelist: dict[str, list[str]] = {}
        self.blacklist: dict[str, list[str]] = {}
        self.history: dict[str, list[dict]] = {}

    def analyze(self, url: str, user_id: str) -> dict:
        payload = {
            "url": url,
            "isPhishing": False,
            "riskScore": 0,
            "confidence": None,
            "threats": [],
            "description": "Simulated analysis, no request was sent",
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }
        self.history.setdefault(user_id, []).insert(0, dict(payload))
        return payload

    def add(self, lists: dict[str, list[str]], user_id: str, domain: str, list_name: str) -> None:
        domains = lists.setdefault(user_id, [])
        if domain in domains:
            raise NetworkError(
                code=NetworkErrorCode.HTTP_ERROR.value,
                message=f"Domain already in {list_name}",
                details={"status_code": 409, "remote_message": f"Domain already in {list_name}"},
            )
        domains.append(domain)

    def remove(self, lists: dict[str, list[str]], user_id: str, domain: str, list_name: str) -> None:
        domains = lists.get(user_id, [])
        if domain not in domains:
            raise NetworkError(
                code=NetworkErrorCode.HTTP_ERROR.value,
                message=f"Domain not in {list_name}",
                details={"status_code": 404, "remote_message": f"Domain not in {list_name}"},
            )
        domains.remove(domain)

    def records(self, user_id: str, limit: int, only_threats: bool) -> list[dict]:
        records = self.history.get(user_id, [])
        if only_threats:
            records = [r for r in records if r.get("isPhishing")]
        return records[:limit]


class RemoteServiceClient:
    """
    Async client for the analysis service.

    Used as an async context manager, or lazily: the underlying
    ``httpx.AsyncClient`` is created on first request and released by
    ``close()``.
    """

    def __init__(
        self,
        config: Optional[ApiConfig] = None,
        simulation_mode: bool = False,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        logger: Optional[AuditLogger] = None,
    ) -> None:
        """
        Initialize the client.

        Args:
            config: Endpoint, list prefix, timeout and user agent
            simulation_mode: If True, no real network requests are made
            transport: Optional httpx transport, e.g. a MockTransport in tests
            logger: Optional audit logger for request failures
        """
        self._config = config or ApiConfig()
        self._simulation_mode = simulation_mode
        self._transport = transport
        self._logger = logger
        self._client: Optional[httpx.AsyncClient] = None
        self._simulated = SimulatedBackend() if simulation_mode else None

    async def __aenter__(self) -> "RemoteServiceClient":
        self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    @property
    def simulation_mode(self) -> bool:
        return self._simulation_mode

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._config.base_url.rstrip("/"),
                timeout=httpx.Timeout(self._config.timeout_seconds),
                headers={
                    "Content-Type": "application/json",
                    "User-Agent": self._config.user_agent,
                },
                transport=self._transport,
                follow_redirects=True,
            )
        return self._client

    def _list_path(self, *parts: str) -> str:
        prefix = self._config.list_prefix.strip("/")
        segments = ([prefix] if prefix else []) + list(parts)
        return "/" + "/".join(segments)

    async def _request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[dict[str, Any]] = None,
    ) -> httpx.Response:
        client = self._ensure_client()
        try:
            response = await client.request(method, path, params=params, json=json_body)
        except httpx.TimeoutException as e:
            raise self._logged(NetworkError(
                code=NetworkErrorCode.TIMEOUT.value,
                message=f"Request timed out after {self._config.timeout_seconds}s",
                details={"method": method, "path": path, "error_message": str(e)},
            ))
        except httpx.HTTPError as e:
            raise self._logged(NetworkError(
                code=NetworkErrorCode.NETWORK_ERROR.value,
                message=f"Connection error: {e}",
                details={"method": method, "path": path},
            ))

        if not response.is_success:
            raise self._logged(NetworkError(
                code=NetworkErrorCode.HTTP_ERROR.value,
                message=f"Unexpected HTTP status: {response.status_code}",
                details={
                    "method": method,
                    "path": path,
                    "status_code": response.status_code,
                    "remote_message": self._remote_message(response),
                },
            ))
        return response

    @staticmethod
    def _remote_message(response: httpx.Response) -> Optional[str]:
        try:
            body = response.json()
        except (ValueError, UnicodeDecodeError):
            return None
        if isinstance(body, dict) and isinstance(body.get("message"), str):
            return body["message"]
        return None

    def _decode(self, response: httpx.Response) -> Any:
        try:
            return response.json()
        except (ValueError, UnicodeDecodeError) as e:
            raise self._logged(NetworkError(
                code=NetworkErrorCode.PARSE_ERROR.value,
                message=f"Failed to parse response: {e}",
                details={"status_code": response.status_code, "path": response.request.url.path},
            ))

    def _logged(self, error: NetworkError) -> NetworkError:
        if self._logger:
            self._logger.log_error(
                "RemoteServiceClient",
                error.message,
                error=error,
                request_url=error.details.get("path"),
                response_status_code=error.status_code,
            )
        return error

    # Analysis

    async def analyze(
        self,
        url: str,
        sensitivity: Sensitivity,
        user_id: str,
    ) -> AnalysisResult:
        """
        Submit ``url`` for analysis.

        Raises:
            NetworkError: On transport failure, timeout, non-2xx or bad payload
        """
        if self._simulated is not None:
            return AnalysisResult.from_dict(self._simulated.analyze(url, user_id), url=url)

        response = await self._request("POST", "/analyze", json_body={
            "url": url,
            "userAgent": self._config.user_agent,
            "timestamp": _now_ms(),
            "sensitivity": sensitivity.value,
            "userId": user_id,
        })
        data = self._decode(response)
        try:
            return AnalysisResult.from_dict(data, url=url)
        except ValueError as e:
            raise self._logged(NetworkError(
                code=NetworkErrorCode.PARSE_ERROR.value,
                message=str(e),
                details={"path": "/analyze", "status_code": response.status_code},
            ))

    # Whitelist / blacklist

    async def get_whitelist(self, user_id: str) -> list[str]:
        return await self._get_domains("whitelist", user_id)

    async def add_to_whitelist(self, domain: str, user_id: str) -> None:
        await self._add_domain("whitelist", domain, user_id)

    async def remove_from_whitelist(self, domain: str, user_id: str) -> None:
        await self._remove_domain("whitelist", domain, user_id)

    async def get_blacklist(self, user_id: str) -> list[str]:
        return await self._get_domains("blacklist", user_id)

    async def add_to_blacklist(self, domain: str, user_id: str) -> None:
        await self._add_domain("blacklist", domain, user_id)

    async def remove_from_blacklist(self, domain: str, user_id: str) -> None:
        await self._remove_domain("blacklist", domain, user_id)

    def _simulated_list(self, list_name: str) -> dict[str, list[str]]:
        return self._simulated.whitelist if list_name == "whitelist" else self._simulated.blacklist

    async def _get_domains(self, list_name: str, user_id: str) -> list[str]:
        if self._simulated is not None:
            return list(self._simulated_list(list_name).get(user_id, []))

        response = await self._request("GET", self._list_path(list_name), params={"userId": user_id})
        data = self._decode(response)
        domains = data.get("domains") if isinstance(data, dict) else data
        if not isinstance(domains, list):
            return []
        return [str(d) for d in domains]

    async def _add_domain(self, list_name: str, domain: str, user_id: str) -> None:
        if self._simulated is not None:
            self._simulated.add(self._simulated_list(list_name), user_id, domain, list_name)
            return
        await self._request(
            "POST",
            self._list_path(list_name),
            json_body={"domain": domain, "userId": user_id},
        )

    async def _remove_domain(self, list_name: str, domain: str, user_id: str) -> None:
        if self._simulated is not None:
            self._simulated.remove(self._simulated_list(list_name), user_id, domain, list_name)
            return
        await self._request(
            "DELETE",
            self._list_path(list_name, quote(domain, safe="")),
            json_body={"userId": user_id},
        )

    # History

    async def get_history(
        self,
        user_id: str,
        limit: int = 50,
        only_threats: bool = False,
    ) -> list[HistoryRecord]:
        """
        Fetch past analyses, newest first.

        Both ``{"analyses": [...]}`` and a bare list are accepted.
        """
        if self._simulated is not None:
            raw = self._simulated.records(user_id, limit, only_threats)
        else:
            response = await self._request("GET", self._list_path("history"), params={
                "limit": str(limit),
                "onlyThreats": "true" if only_threats else "false",
                "sortOrder": "desc",
                "userId": user_id,
            })
            data = self._decode(response)
            raw = data.get("analyses", []) if isinstance(data, dict) else data

        if not isinstance(raw, list):
            return []
        return [HistoryRecord.from_dict(item) for item in raw if isinstance(item, dict)]

    async def export_history(
        self,
        user_id: str,
        export_format: ExportFormat,
        only_threats: bool = False,
        limit: int = 1000,
    ) -> bytes:
        if self._simulated is not None:
            records = self._simulated.records(user_id, limit, only_threats)
            if export_format == ExportFormat.JSON:
                return json.dumps({"analyses": records}, indent=2).encode("utf-8")
            lines = ["url,isPhishing,riskScore,createdAt"]
            lines += [
                f"{r['url']},{str(r['isPhishing']).lower()},{r['riskScore']},{r['createdAt']}"
                for r in records
            ]
            return ("\n".join(lines) + "\n").encode("utf-8")

        response = await self._request("GET", self._list_path("history", "export"), params={
            "format": export_format.value,
            "limit": str(limit),
            "onlyThreats": "true" if only_threats else "false",
            "userId": user_id,
        })
        return response.content

    async def clear_history(self, user_id: str) -> None:
        if self._simulated is not None:
            self._simulated.history.pop(user_id, None)
            return
        await self._request("DELETE", self._list_path("history", "all"), params={"userId": user_id})

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None
