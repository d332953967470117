# File: tests/conftest.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web

from order_scout.config import ScoutConfig
from order_scout.exceptions import TransportError

APP_ID = "13e8d036-5516-6104-b456-c8466db39542"


@pytest.fixture()
def config() -> ScoutConfig:
    """
    Return a ScoutConfig without retry delays for fast tests.
    """
    return ScoutConfig(
        cookie="session=abc",
        csrf_token="csrf",
        timeout=2.0,
        retry_times=3,
        retry_delay=0,
        concurrency=4,
    )


@pytest_asyncio.fixture
async def serve(unused_tcp_port_factory):
    """
    Start aiohttp applications on free ports; returns their base URLs.
    All runners are cleaned up after the test.
    """
    runners: List[web.AppRunner] = []

    async def _serve(app: web.Application) -> str:
        runner = web.AppRunner(app)
        await runner.setup()
        port = unused_tcp_port_factory()
        site = web.TCPSite(runner, "localhost", port)
        await site.start()
        runners.append(runner)
        return f"http://localhost:{port}"

    yield _serve

    for runner in runners:
        await runner.cleanup()


def revisions_payload(revisions: List[Dict[str, Any]]) -> Dict[str, Any]:
    return {"responses": [{"message": {"result": {"revisions": revisions}}}]}


def app_page(app_id: str = APP_ID) -> Dict[str, Any]:
    """Page document hosting the given application somewhere deep inside."""
    return {"structure": {"components": [{"type": "Container", "components": [{"appDefinitionId": app_id}]}]}}


class FakeClient:
    """In-memory stand-in for BackofficeClient.

    ``sites`` maps MSID to a dict with ``instance``, ``revisions`` (list of
    raw revision dicts) and ``documents`` (filename -> content); an
    ``error`` key makes get_signature raise it. ``pages`` maps
    jsonFileName to a page document or an exception instance.
    """

    def __init__(self, sites: Dict[str, Dict[str, Any]], pages: Optional[Dict[str, Any]] = None) -> None:
        self.sites = sites
        self.pages = pages or {}
        self.page_calls: List[str] = []
        self.entered = False
        self.closed = False

    async def __aenter__(self) -> FakeClient:
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.closed = True

    async def get_signature(self, msid: str) -> str:
        site = self.sites[msid]
        if "error" in site:
            raise site["error"]
        return f"sig-{msid}"

    async def get_instance_id(self, msid: str, token: str) -> str:
        assert token == f"sig-{msid}"
        return self.sites[msid]["instance"]

    async def list_revisions(self, instance_id: str, token: str) -> Dict[str, Any]:
        for site in self.sites.values():
            if site.get("instance") == instance_id:
                return revisions_payload(site.get("revisions", []))
        raise TransportError("unknown instance", url=instance_id, status=404)

    async def fetch_revision(self, filename: str) -> Any:
        for site in self.sites.values():
            if filename in site.get("documents", {}):
                return site["documents"][filename]
        raise TransportError("missing revision", url=filename, status=404)

    async def fetch_page(self, json_file_name: str) -> Any:
        self.page_calls.append(json_file_name)
        page = self.pages.get(json_file_name)
        if isinstance(page, Exception):
            raise page
        if page is None:
            raise TransportError("missing page", url=json_file_name, status=404)
        return page

