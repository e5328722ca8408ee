# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""SSR fallback: re-encode the body of an app-provided SSR config."""

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from typing import Any

from .entries import Encoder, Entries
from .modules import ClientEntry, ModuleDescriptor, ResolveClientEntry, split_encoded_id

logger = logging.getLogger(__name__)


class SsrModuleResolver:
    """Resolver used for SSR bodies: the bundler id doubles as the only chunk."""

    def __init__(self, resolve_client_entry: ResolveClientEntry):
        self.resolve_client_entry = resolve_client_entry

    def __call__(self, encoded_id: str) -> ModuleDescriptor:
        return self.resolve(encoded_id)

    def resolve(self, encoded_id: str) -> ModuleDescriptor:
        path, name = split_encoded_id(encoded_id)
        entry = ClientEntry.from_value(self.resolve_client_entry(path))
        return ModuleDescriptor(id=entry.id, chunks=(entry.id,), name=name)


async def get_ssr_config(
    entries: Entries,
    pathname: str,
    search_params: Mapping[str, Any] | None = None,
    *,
    encoder: Encoder,
    resolve_client_entry: ResolveClientEntry,
) -> dict[str, Any] | None:
    """Return the app's SSR config for ``pathname`` with its body encoded, or None."""
    hook = getattr(entries, "get_ssr_config", None)
    if hook is None:
        return None
    ssr_config = hook(pathname, {"search_params": dict(search_params or {})})
    if inspect.isawaitable(ssr_config):
        ssr_config = await ssr_config
    if not ssr_config:
        return None
    logger.debug("Encoding SSR config body for %r", pathname)
    body = encoder(ssr_config.get("body"), SsrModuleResolver(resolve_client_entry))
    if inspect.isawaitable(body):
        body = await body
    return {**ssr_config, "body": body}


__all__ = ["SsrModuleResolver", "get_ssr_config"]
