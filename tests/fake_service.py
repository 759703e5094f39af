"""
In-process stand-in for the analysis service, served through httpx.MockTransport.

Shared by the panel, controller, manager and remote client tests.
"""

import asyncio
import json
from pathlib import Path
from typing import Optional
from urllib.parse import unquote

import httpx

from phisher_panel.app import PhisherPanel
from phisher_panel.config import ApiConfig, PanelConfig, StorageConfig
from phisher_panel.remote_client import RemoteServiceClient


API_BASE = "https://phisher.test"
PREFIX = "/api/v1"


def safe_payload(url: str, score: int = 5) -> dict:
    return {
        "url": url,
        "isPhishing": False,
        "riskScore": score,
        "confidence": 0.97,
        "threats": [],
        "description": "No threats found",
        "createdAt": "2024-03-01T10:15:00Z",
    }


def phishing_payload(url: str, score: int = 92) -> dict:
    return {
        "url": url,
        "isPhishing": True,
        "riskScore": score,
        "confidence": 88,
        "threats": ["Credential harvesting form", "Lookalike domain"],
        "description": "Page imitates a bank login",
        "createdAt": "2024-03-01T10:16:00Z",
    }


class FakeService:
    """
    Minimal implementation of the service endpoints.

    Every request is recorded in ``requests``. Per-URL analysis payloads go in
    ``verdicts``; unknown URLs are answered with a safe verdict.
    """

    def __init__(
        self,
        analyze_delay: float = 0.0,
        analyze_status: int = 200,
        analyze_timeout: bool = False,
        analyze_body: Optional[bytes] = None,
    ) -> None:
        self.analyze_delay = analyze_delay
        self.analyze_status = analyze_status
        self.analyze_timeout = analyze_timeout
        # served verbatim, for bodies json.dumps would refuse to produce
        self.analyze_body = analyze_body
        self.verdicts: dict[str, dict] = {}
        self.lists: dict[str, list[str]] = {"whitelist": [], "blacklist": []}
        self.history: list[dict] = []
        self.requests: list[httpx.Request] = []

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and unquote(r.url.path) == path]

    @property
    def analyze_calls(self) -> list[httpx.Request]:
        return self.calls("POST", "/analyze")

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = unquote(request.url.path)
        body = json.loads(request.content) if request.content else {}

        if path == "/analyze" and request.method == "POST":
            if self.analyze_delay:
                await asyncio.sleep(self.analyze_delay)
            if self.analyze_timeout:
                raise httpx.ReadTimeout("timed out", request=request)
            if self.analyze_status != 200:
                return httpx.Response(self.analyze_status, json={"message": "internal error"})
            if self.analyze_body is not None:
                return httpx.Response(200, content=self.analyze_body, headers={"content-type": "application/json"})
            payload = dict(self.verdicts.get(body["url"]) or safe_payload(body["url"]))
            self.history.insert(0, payload)
            return httpx.Response(200, json=payload)

        for list_name in ("whitelist", "blacklist"):
            base = f"{PREFIX}/{list_name}"
            domains = self.lists[list_name]
            if path == base and request.method == "GET":
                return httpx.Response(200, json={"domains": list(domains)})
            if path == base and request.method == "POST":
                if body["domain"] in domains:
                    return httpx.Response(409, json={"message": f"Domain already in {list_name}"})
                domains.append(body["domain"])
                return httpx.Response(201, json={"success": True})
            if path.startswith(base + "/") and request.method == "DELETE":
                domain = path[len(base) + 1:]
                if domain not in domains:
                    return httpx.Response(404, json={"message": f"Domain not in {list_name}"})
                domains.remove(domain)
                return httpx.Response(200, json={"success": True})

        if path == f"{PREFIX}/history" and request.method == "GET":
            records = self._filtered(request)
            return httpx.Response(200, json={"analyses": records[: int(request.url.params["limit"])]})
        if path == f"{PREFIX}/history/export" and request.method == "GET":
            records = self._filtered(request)
            if request.url.params["format"] == "json":
                return httpx.Response(200, content=json.dumps(records).encode("utf-8"))
            lines = ["url,riskScore"] + [f"{r['url']},{r['riskScore']}" for r in records]
            return httpx.Response(200, content="\n".join(lines).encode("utf-8"))
        if path == f"{PREFIX}/history/all" and request.method == "DELETE":
            self.history.clear()
            return httpx.Response(200, json={"success": True})

        return httpx.Response(404, json={"message": "Not found"})

    def _filtered(self, request: httpx.Request) -> list[dict]:
        if request.url.params.get("onlyThreats") == "true":
            return [r for r in self.history if r.get("isPhishing")]
        return list(self.history)


def make_config(state_dir: Path, **overrides) -> PanelConfig:
    config = PanelConfig(
        api=ApiConfig(base_url=API_BASE, timeout_seconds=2.0),
        storage=StorageConfig(state_dir=state_dir, hmac_secret="test-secret-0123456789"),
        downloads_dir=state_dir / "downloads",
    )
    for key, value in overrides.items():
        setattr(config, key, value)
    return config


def make_client(service: FakeService, config: Optional[ApiConfig] = None, logger=None) -> RemoteServiceClient:
    return RemoteServiceClient(
        config or ApiConfig(base_url=API_BASE, timeout_seconds=2.0),
        transport=service.transport(),
        logger=logger,
    )


def make_panel(state_dir: Path, service: FakeService, **kwargs) -> PhisherPanel:
    """A panel wired to ``service`` with state under ``state_dir``."""
    config = make_config(state_dir)
    kwargs.setdefault("transient_seconds", 0.05)
    return PhisherPanel(config, client=make_client(service, config.api), **kwargs)


