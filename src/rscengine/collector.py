# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Build-time discovery of the client modules an entry references."""

from __future__ import annotations

import inspect
import logging
from typing import Any

from .dispatcher import RenderDispatcher, RenderRequest, iter_stream
from .entries import Encoder, Entries
from .modules import ModuleDescriptor

logger = logging.getLogger(__name__)


async def collect_client_modules(entries: Entries, input: str, *, encoder: Encoder) -> list[str]:
    """
    Render ``input`` in export mode and return every module id the Encoder resolved.

    The stream is drained to the end; module references are only resolved as
    the Encoder reaches them, so stopping early would under-report. Stream
    errors propagate unchanged.
    """
    module_ids: set[str] = set()

    def record(descriptor: ModuleDescriptor) -> None:
        module_ids.add(descriptor.id)

    dispatcher = RenderDispatcher(entries, encoder=encoder, is_exporting=True)
    stream = await dispatcher.render(RenderRequest(input=input, method="GET", module_id_callback=record))
    chunks = 0
    async for _ in iter_stream(stream):
        chunks += 1
    logger.debug("Collected %d client module(s) for %r over %d chunk(s)", len(module_ids), input, chunks)
    return sorted(module_ids)


async def get_build_config(entries: Entries, *, encoder: Encoder) -> Any:
    """
    Run the app's ``get_build_config`` hook with a module collector bound to ``entries``.

    A missing hook is not fatal: a warning is logged and an empty manifest returned.
    """
    hook = getattr(entries, "get_build_config", None)
    if hook is None:
        logger.warning("get_build_config is undefined. It's recommended for optimization and sometimes required.")
        return []

    async def collect(input: str) -> list[str]:
        return await collect_client_modules(entries, input, encoder=encoder)

    output = hook(collect)
    if inspect.isawaitable(output):
        output = await output
    return output


__all__ = ["collect_client_modules", "get_build_config"]
