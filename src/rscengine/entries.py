# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Interfaces of the external collaborators and the server reference registry."""

from __future__ import annotations

from collections.abc import AsyncIterable, Awaitable, Callable, Mapping
from dataclasses import dataclass, field
from typing import Any, Protocol, Union

from .modules import ModuleResolver
from .store import RenderStore

Elements = Mapping[str, Any]
ByteStream = AsyncIterable[bytes]
CollectClientModules = Callable[[str], Awaitable[list[str]]]


@dataclass
class RenderOptions:
    """Second argument of ``render_entries``."""

    search_params: dict[str, Any] = field(default_factory=dict)
    build_config: Any = None
    store: RenderStore = field(default_factory=RenderStore)


class Entries(Protocol):
    """
    The app's entries module.

    Only ``render_entries`` is required. ``get_build_config``,
    ``get_ssr_config`` and ``build_config`` are looked up with ``getattr``.
    """

    def render_entries(self, input: str, options: RenderOptions) -> Awaitable[Elements | None] | Elements | None: ...


class Encoder(Protocol):
    def __call__(self, elements: Any, resolver: ModuleResolver) -> Union[ByteStream, Awaitable[ByteStream]]: ...


class DecodeReply(Protocol):
    def __call__(self, payload: Any, resolver: ModuleResolver) -> Any: ...


class ServerReferenceTable(Protocol):
    def get_server_reference(self, action_id: str) -> Any | None: ...

    def get_debug_description(self) -> str: ...


class ServerReferenceRegistry:
    """
    In-memory server reference table.

    One registry belongs to one dispatcher; there is no process-wide instance.
    """

    def __init__(self) -> None:
        self._references: dict[str, Any] = {}

    def register_server_reference(self, reference: Any, module_id: str, export_name: str | None = None) -> Any:
        """
        Register ``reference`` under ``module_id`` (and ``module_id#export_name`` when named).

        Returns the reference so it can be used as a decorator-style helper.
        """
        self._references[module_id] = reference
        if export_name:
            self._references[f"{module_id}#{export_name}"] = reference
        return reference

    def get_server_reference(self, action_id: str) -> Any | None:
        reference = self._references.get(action_id)
        if reference is None and "#" in action_id:
            reference = self._references.get(action_id.partition("#")[0])
        return reference

    def get_debug_description(self) -> str:
        if not self._references:
            return "No server actions are registered."
        ids = ", ".join(sorted(self._references))
        return f"Registered server actions: {ids}"

    def __contains__(self, action_id: object) -> bool:
        return isinstance(action_id, str) and self.get_server_reference(action_id) is not None

    def __len__(self) -> int:
        return len(self._references)


__all__ = [
    "ByteStream",
    "CollectClientModules",
    "DecodeReply",
    "Elements",
    "Encoder",
    "Entries",
    "RenderOptions",
    "ServerReferenceRegistry",
    "ServerReferenceTable",
]
