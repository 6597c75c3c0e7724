"""Async httpx client for the Treeline REST endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from .errors import NotAuthenticated, TransportError
from .models import APP, PackData, PackSummary

logger = logging.getLogger(__name__)


class TreelineAPI:
    """Connects to the Treeline API. Use as an async context manager."""

    def __init__(
        self,
        base_url: str,
        secret: Optional[str] = None,
        timeout: float = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if secret:
            headers["x-auth"] = secret
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            headers=headers,
            follow_redirects=True,
            transport=transport,
        )

    async def aclose(self):
        await self._client.aclose()

    async def __aenter__(self) -> "TreelineAPI":
        return self

    async def __aexit__(self, *exc_info):
        await self.aclose()

    # ── helpers ──

    async def _send(self, path: str, params: dict | None = None) -> httpx.Response:
        try:
            r = await self._client.get(path, params=params)
            r.raise_for_status()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            if status in (401, 403):
                raise NotAuthenticated() from e
            raise TransportError(f"GET {path} failed with HTTP {status}", status_code=status) from e
        except httpx.HTTPError as e:
            raise TransportError(f"GET {path} failed: {e}") from e
        return r

    @staticmethod
    def _decode(r: httpx.Response, path: str) -> Any:
        try:
            return r.json()
        except ValueError as e:
            raise TransportError(f"GET {path} returned invalid JSON", status_code=r.status_code) from e

    async def _get_records(self, path: str, key: str, params: dict | None = None) -> list[dict]:
        """GET a list of objects, either bare or wrapped under `key`."""
        r = await self._send(path, params)
        data = self._decode(r, path)
        records = data.get(key) if isinstance(data, dict) else data
        if not isinstance(records, list) or not all(isinstance(x, dict) for x in records):
            raise TransportError(f"GET {path} returned an unexpected payload", status_code=r.status_code)
        return records

    # ── Machinepacks ──

    async def list_packs(self, username: str) -> list[PackSummary]:
        packs = await self._get_records("/api/v1/machinepacks", "machinepacks", params={"username": username})
        logger.debug("Listed %d machinepacks for %s", len(packs), username)
        return [PackSummary.from_dict(p) for p in packs]

    async def fetch_pack(self, pack_id: str) -> list[PackData]:
        records = await self._get_records(f"/api/v1/machinepacks/{pack_id}/export", "packs")
        return [PackData.from_dict(p) for p in records]

    # ── Projects ──

    async def get_project(self, project_type: str, project_id: str) -> dict:
        kind = "apps" if project_type == APP else "machinepacks"
        path = f"/api/v1/{kind}/{project_id}"
        r = await self._send(path)
        data = self._decode(r, path)
        if not isinstance(data, dict):
            raise TransportError(f"GET {path} returned an unexpected payload", status_code=r.status_code)
        return data
