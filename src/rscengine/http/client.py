# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""httpx-backed client for fetching flight payloads and calling server actions."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import httpx

from ..config import RscSettings, load_rsc_settings
from ..errors import BundlerServerError, NetworkError, ReactServerError, ResponseTooLargeError
from .paths import encode_input

logger = logging.getLogger(__name__)

RSC_CONTENT_TYPE = "text/x-component"


@dataclass
class FlightResponse:
    """A fully read flight response."""

    status_code: int
    content: bytes = b""
    headers: dict[str, str] = field(default_factory=dict)
    url: str = ""
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def text(self) -> str:
        return self.content.decode("utf-8", errors="replace")


def _is_json_response(headers: httpx.Headers) -> bool:
    return "application/json" in (headers.get("content-type") or "").lower()


class FlightClient:
    """
    Async flight client.

    Failures are raised as rscengine errors: transport problems become
    NetworkError, structured bundler errors become BundlerServerError and any
    other non-2xx answer becomes ReactServerError. A body larger than
    ``settings.max_body_bytes`` raises ResponseTooLargeError; partial payloads
    are never returned.
    """

    def __init__(
        self,
        base_url: str,
        settings: RscSettings | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.settings = settings or load_rsc_settings()
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.timeout,
            verify=self.settings.verify_ssl,
        )

    def url_for(self, input: str, search_params: Mapping[str, Any] | None = None) -> str:
        url = f"{self.base_url}{self.settings.rsc_path}/{encode_input(input)}"
        if search_params:
            url = f"{url}?{urlencode(dict(search_params), doseq=True)}"
        return url

    async def fetch(self, input: str, search_params: Mapping[str, Any] | None = None) -> FlightResponse:
        return await self._request("GET", self.url_for(input, search_params))

    async def call_action(
        self,
        action_id: str,
        body: bytes | str = b"",
        *,
        content_type: str | None = None,
    ) -> FlightResponse:
        headers = {"Content-Type": content_type} if content_type else {}
        url = self.url_for(quote(action_id, safe=""))
        return await self._request("POST", url, headers=headers, content=body)

    async def _request(
        self,
        method: str,
        url: str,
        *,
        headers: dict[str, str] | None = None,
        content: bytes | str | None = None,
    ) -> FlightResponse:
        request_headers = dict(headers or {})
        request_headers.setdefault("User-Agent", self.settings.user_agent)
        request_headers.setdefault("Accept", RSC_CONTENT_TYPE)
        max_body_bytes = self.settings.max_body_bytes

        logger.debug("%s %s", method, url)
        try:
            async with self._client.stream(method, url, headers=request_headers, content=content) as resp:
                body = bytearray()
                async for chunk in resp.aiter_bytes():
                    if not chunk:
                        continue
                    if len(body) + len(chunk) > max_body_bytes:
                        raise ResponseTooLargeError(url, max_body_bytes)
                    body.extend(chunk)
        except httpx.TransportError as exc:
            raise NetworkError(str(exc) or exc.__class__.__name__, url) from exc

        if not resp.is_success:
            text = bytes(body).decode("utf-8", errors="replace")
            if _is_json_response(resp.headers):
                try:
                    error_object = json.loads(text)
                except ValueError:
                    error_object = None
                if isinstance(error_object, dict):
                    raise BundlerServerError(error_object, url)
            raise ReactServerError(text or f"HTTP {resp.status_code}", url, resp.status_code)

        return FlightResponse(
            status_code=resp.status_code,
            content=bytes(body),
            headers=dict(resp.headers),
            url=str(resp.url),
            meta={"body_bytes_read": len(body), "body_bytes_limit": max_body_bytes},
        )

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> FlightClient:
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:  # noqa: ANN001
        await self.close()


__all__ = ["FlightClient", "FlightResponse", "RSC_CONTENT_TYPE"]
