# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Client module reference resolution.

The Encoder never inlines client code. Whenever it meets a client reference it
asks a resolver for a module descriptor, passing the encoded id
``"<path>#<exportName>"`` that the "use client" transform stamped on it.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

from .errors import InvalidReferenceError

logger = logging.getLogger(__name__)

FILE_URL_PREFIX = "file://"
EXPORT_CHUNK_PREFIX = "chunk:"
# Server action ids (40 hex chars) can show up as data inside decoded replies.
SELF_DESCRIBING_ACTION_RE = re.compile(r"^[0-9a-f]{40}#", re.IGNORECASE)


@dataclass(frozen=True)
class ModuleDescriptor:
    """Loadable identity of a client module export."""

    id: str
    chunks: tuple[str, ...]
    name: str = ""
    async_: bool = True

    def to_mapping(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "chunks": list(self.chunks),
            "name": self.name,
            "async": self.async_,
        }


@dataclass(frozen=True)
class ClientEntry:
    """Result of a dev-bundler lookup: module id plus the URLs that load it."""

    id: str
    url: list[str] = field(default_factory=list)

    @classmethod
    def from_value(cls, value: ClientEntry | Mapping[str, Any]) -> ClientEntry:
        if isinstance(value, ClientEntry):
            return value
        if isinstance(value, Mapping):
            raw_url = value.get("url") or []
            urls = [raw_url] if isinstance(raw_url, str) else [str(item) for item in raw_url]
            return cls(id=str(value.get("id") or ""), url=urls)
        raise TypeError(f"Unexpected client entry: {value!r}")


ResolveClientEntry = Callable[[str], "ClientEntry | Mapping[str, Any]"]
ModuleIdCallback = Callable[[ModuleDescriptor], None]


def file_url_to_path(file_url: str) -> str:
    """Convert a ``file://`` URL to a plain, percent-decoded file path."""
    if not file_url.startswith(FILE_URL_PREFIX):
        raise InvalidReferenceError("Not a file URL")
    return unquote(file_url[len(FILE_URL_PREFIX) :])


def split_encoded_id(encoded_id: str) -> tuple[str, str]:
    """Split ``path#name`` at the first ``#``; a missing name means the default export."""
    if not isinstance(encoded_id, str) or not encoded_id:
        raise InvalidReferenceError(f"Invalid module reference: {encoded_id!r}")
    path, _, name = encoded_id.partition("#")
    if not path:
        raise InvalidReferenceError(f"Invalid module reference: {encoded_id!r}")
    return path, name


def is_action_reference(encoded_id: str) -> bool:
    return bool(SELF_DESCRIBING_ACTION_RE.match(encoded_id or ""))


class ModuleResolver:
    """
    Per-request bundler config handed to the Encoder and the reply decoder.

    Exactly one of two modes applies:
    - serving: ``resolve_client_entry`` maps a file path to a live bundler entry;
    - exporting: a provisional ``chunk:<path>`` placeholder is emitted.

    Building a resolver with neither is a caller error. When ``on_module`` is
    given, every distinct encoded id reports its descriptor once.
    """

    def __init__(
        self,
        resolve_client_entry: ResolveClientEntry | None = None,
        *,
        is_exporting: bool = False,
        on_module: ModuleIdCallback | None = None,
    ):
        if resolve_client_entry is None and not is_exporting:
            raise ValueError("resolve_client_entry is required when not exporting")
        self.resolve_client_entry = resolve_client_entry
        self.is_exporting = is_exporting
        self.on_module = on_module
        self._reported: set[str] = set()

    def __call__(self, encoded_id: str) -> ModuleDescriptor:
        return self.resolve(encoded_id)

    def resolve(self, encoded_id: str) -> ModuleDescriptor:
        descriptor = self._describe(encoded_id)
        if self.on_module is not None and encoded_id not in self._reported:
            self._reported.add(encoded_id)
            self.on_module(descriptor)
        return descriptor

    def _describe(self, encoded_id: str) -> ModuleDescriptor:
        path, name = split_encoded_id(encoded_id)

        if is_action_reference(encoded_id):
            return ModuleDescriptor(id=encoded_id, chunks=(encoded_id,), name=name)

        file_path = file_url_to_path(path) if path.startswith(FILE_URL_PREFIX) else path

        if self.resolve_client_entry is not None:
            entry = ClientEntry.from_value(self.resolve_client_entry(file_path))
            logger.debug("Resolved client entry %s -> %s", file_path, entry.id)
            return ModuleDescriptor(id=entry.id, chunks=tuple(entry.url), name=name)

        return ModuleDescriptor(id=file_path, chunks=(f"{EXPORT_CHUNK_PREFIX}{file_path}",), name=name)


__all__ = [
    "ClientEntry",
    "ModuleDescriptor",
    "ModuleIdCallback",
    "ModuleResolver",
    "ResolveClientEntry",
    "file_url_to_path",
    "is_action_reference",
    "split_encoded_id",
]
