# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""High-level facade wiring an app's entries to the dispatcher, collector and SSR path."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .collector import collect_client_modules, get_build_config
from .dispatcher import RenderDispatcher, RenderRequest
from .entries import ByteStream, DecodeReply, Encoder, Entries, ServerReferenceRegistry, ServerReferenceTable
from .modules import ResolveClientEntry
from .ssr import get_ssr_config


class RscRuntime:
    """
    Convenience wrapper that shares one set of collaborators across render,
    build and SSR calls.

    The server reference table is owned by the runtime; pass one in to share it
    with the code that registers actions.
    """

    def __init__(
        self,
        entries: Entries,
        *,
        encoder: Encoder,
        decode_reply: DecodeReply | None = None,
        server_references: ServerReferenceTable | None = None,
        resolve_client_entry: ResolveClientEntry | None = None,
        is_exporting: bool = False,
    ):
        self.entries = entries
        self.encoder = encoder
        self.resolve_client_entry = resolve_client_entry
        self.server_references = server_references if server_references is not None else ServerReferenceRegistry()
        self.dispatcher = RenderDispatcher(
            entries,
            encoder=encoder,
            decode_reply=decode_reply,
            server_references=self.server_references,
            resolve_client_entry=resolve_client_entry,
            is_exporting=is_exporting,
        )

    async def render(
        self,
        input: str,
        *,
        method: str = "GET",
        search_params: Mapping[str, Any] | None = None,
        context: dict[str, Any] | None = None,
        body: Any = None,
        content_type: str | None = None,
    ) -> ByteStream:
        request = RenderRequest(
            input=input,
            method=method,
            search_params=dict(search_params or {}),
            context=context,
            body=body,
            content_type=content_type,
        )
        return await self.dispatcher.render(request)

    async def collect_client_modules(self, input: str) -> list[str]:
        return await collect_client_modules(self.entries, input, encoder=self.encoder)

    async def get_build_config(self) -> Any:
        return await get_build_config(self.entries, encoder=self.encoder)

    async def get_ssr_config(self, pathname: str, search_params: Mapping[str, Any] | None = None) -> dict[str, Any] | None:
        if self.resolve_client_entry is None:
            raise ValueError("resolve_client_entry is required for SSR")
        return await get_ssr_config(
            self.entries,
            pathname,
            search_params,
            encoder=self.encoder,
            resolve_client_entry=self.resolve_client_entry,
        )


__all__ = ["RscRuntime"]
