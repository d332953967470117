# order_scout/client/api.py
"""Client for the fire-console backoffice and the editor content hosts."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional
from urllib.parse import quote, urlencode

from aiohttp import ClientSession, ClientTimeout

from order_scout.config import ScoutConfig
from order_scout.exceptions import AuthenticationError, MissingFieldError
from order_scout.logger import get_logger, redact

from .fetcher import Fetcher

logger = get_logger("api")

RELOOSE_QUERY = {
    "artifact": "com.wixpress.metasite.reloose-server",
    "service": "com.wixpress.metasite.reloose.api.RelooseApi",
    "method": "Get",
    "serviceType": "grpc",
    "timeBudget": "30000",
}
REVISIONS_QUERY = {
    "artifact": "com.wixpress.wix-html-editor-revisions-webapp",
    "service": "SiteRevisionsApi",
    "method": "listRevisions",
    "serviceType": "json-rpc",
    "timeBudget": "30000",
}


def revision_url(config: ScoutConfig, filename: str) -> str:
    return f"{config.base('revisions_url')}/revs/{filename}.z"


def page_url(config: ScoutConfig, json_file_name: str) -> str:
    return f"{config.base('pages_url')}/sites/{json_file_name}.z?v=3"


def _first_message(payload: Any) -> Dict[str, Any]:
    """``responses[0].message`` of a fire-console envelope, ``{}`` if absent."""
    if not isinstance(payload, dict):
        return {}
    responses = payload.get("responses")
    if not isinstance(responses, list) or not responses:
        return {}
    first = responses[0]
    if not isinstance(first, dict):
        return {}
    message = first.get("message")
    return message if isinstance(message, dict) else {}


class BackofficeClient:
    """Thin wrapper above the backoffice endpoints used by the pipeline.

    Credentials and the fixed header set come from :class:`ScoutConfig`;
    the underlying ``aiohttp`` session lives as long as the ``async with``
    block, so one client serves a whole batch.
    """

    def __init__(self, config: ScoutConfig, session: Optional[ClientSession] = None) -> None:
        self.config = config
        self._session = session
        self._owns_session = session is None
        self._fetcher: Optional[Fetcher] = None
        if session is not None:
            self._fetcher = self._make_fetcher(session)

    def _make_fetcher(self, session: ClientSession) -> Fetcher:
        return Fetcher(session, attempts=self.config.retry_times, delay=self.config.retry_delay)

    async def __aenter__(self) -> BackofficeClient:
        if self._session is None:
            self._session = ClientSession(timeout=ClientTimeout(total=self.config.timeout))
            self._fetcher = self._make_fetcher(self._session)
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if self._owns_session and self._session and not self._session.closed:
            await self._session.close()

    @property
    def fetcher(self) -> Fetcher:
        if self._fetcher is None:
            raise RuntimeError("Session not initialized")
        return self._fetcher

    # ------------------------------------------------------------------
    # Headers & URLs
    # ------------------------------------------------------------------
    def _headers(self, *, json_body: bool = False, referer: Optional[str] = None) -> Dict[str, str]:
        headers = {
            "accept": "application/json, text/plain, */*",
            "accept-language": "en-US,en;q=0.9",
            "cache-control": "no-cache",
            "pragma": "no-cache",
            "user-agent": self.config.user_agent,
        }
        if self.config.cookie:
            headers["cookie"] = self.config.cookie
        if json_body:
            headers["content-type"] = "application/json"
            headers["origin"] = self.config.base("backoffice_url")
            headers["x-wix-client-artifact-id"] = "fire-console-client"
            if self.config.csrf_token:
                headers["x-fire-console-csrf-token"] = self.config.csrf_token
        if referer:
            headers["referer"] = referer
        return headers

    def _invoke_url(self, query: Dict[str, str]) -> str:
        return f"{self.config.base('backoffice_url')}/fire-console/invoke/?{urlencode(query)}"

    def revision_url(self, filename: str) -> str:
        return revision_url(self.config, filename)

    def page_url(self, json_file_name: str) -> str:
        return page_url(self.config, json_file_name)

    @staticmethod
    def _envelope(data: Dict[str, Any], token: str) -> Dict[str, Any]:
        return {
            "data": [data],
            "metadata": [{"name": "Authorization", "value": token}],
            "experiments": {},
        }

    def _log_request(self, method: str, url: str, headers: Dict[str, str], body: Any = None) -> None:
        if not logger.isEnabledFor(logging.DEBUG):
            return
        logger.debug("%s %s headers=%s", method, url, redact(headers))
        if body is not None:
            logger.debug("body=%s", json.dumps(body))

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def get_signature(self, msid: str) -> str:
        """Step 1: signed authorization token for ``msid``."""
        query = urlencode({"appDefId": self.config.restaurants_meta_app_id, "metaSiteId": msid})
        url = f"{self.config.base('backoffice_url')}/fire-console/serverSign?{query}"
        headers = self._headers()
        self._log_request("GET", url, headers)
        data = await self.fetcher.get(url, headers=headers)

        if isinstance(data, str) and "<!DOCTYPE html" in data:
            raise AuthenticationError(
                "Authentication failed - cookies may have expired. Update the cookie in the config."
            )
        if not isinstance(data, dict) or not data.get("signature"):
            raise AuthenticationError("Invalid response format - missing signature property")
        return data["signature"]

    async def get_instance_id(self, msid: str, token: str) -> str:
        """Step 2: instance id of the ``HtmlWeb`` application of ``msid``."""
        url = self._invoke_url(RELOOSE_QUERY)
        body = json.dumps({"meta_site_id": msid})
        referer = (
            f"{self.config.base('backoffice_url')}/fire-console?"
            f"{urlencode({k: RELOOSE_QUERY[k] for k in ('artifact', 'service', 'method')})}"
            f"&body={quote(body)}"
        )
        headers = self._headers(json_body=True, referer=referer)
        payload = self._envelope({"meta_site_id": msid}, token)
        self._log_request("POST", url, headers, payload)
        data = await self.fetcher.post(url, payload, headers=headers)

        context = _first_message(data).get("context")
        apps = context.get("apps") if isinstance(context, dict) else None
        if isinstance(apps, list):
            for app in apps:
                if isinstance(app, dict) and app.get("app_def_id") == self.config.html_app_def_id:
                    if app.get("instance_id"):
                        return app["instance_id"]
                    break
        raise MissingFieldError(f"{self.config.html_app_def_id} app instance_id not found in response")

    async def list_revisions(self, instance_id: str, token: str) -> Dict[str, Any]:
        """Step 3: raw ``listRevisions`` response for the instance."""
        url = self._invoke_url(REVISIONS_QUERY)
        referer = (
            f"{self.config.base('backoffice_url')}/fire-console?"
            f"{urlencode({k: REVISIONS_QUERY[k] for k in ('artifact', 'service', 'method')})}&body=%7B%7D"
        )
        headers = self._headers(json_body=True, referer=referer)
        payload = self._envelope(
            {"siteId": instance_id, "limit": self.config.revisions_limit, "offset": 0}, token
        )
        self._log_request("POST", url, headers, payload)
        data = await self.fetcher.post(url, payload, headers=headers)
        if not isinstance(data, dict):
            raise MissingFieldError("Revisions response is not a JSON object")
        return data

    async def fetch_revision(self, filename: str) -> Any:
        """Step 4: content tree of one revision."""
        url = self.revision_url(filename)
        logger.debug("GET %s", url)
        return await self.fetcher.get(url)

    async def fetch_page(self, json_file_name: str) -> Any:
        """Page document referenced by a page node's ``jsonFileName``."""
        url = self.page_url(json_file_name)
        logger.debug("GET %s", url)
        return await self.fetcher.get(url)


def extract_revisions(payload: Any) -> List[Dict[str, Any]]:
    """Raw revision records of a ``listRevisions`` response."""
    result = _first_message(payload).get("result")
    if not isinstance(result, dict):
        return []
    revisions = result.get("revisions")
    if not isinstance(revisions, list):
        return []
    return [r for r in revisions if isinstance(r, dict)]


__all__ = ["BackofficeClient", "extract_revisions", "page_url", "revision_url"]
