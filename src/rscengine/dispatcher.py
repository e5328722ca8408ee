# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Render dispatcher for flight requests.

GET requests render an entry and encode it. POST requests invoke a server
action; the action may call ``rerender`` any number of times and the resulting
element trees are merged, in call order, into the encoded response together
with the action's return value under ``_value``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import unquote

from .entries import ByteStream, DecodeReply, Elements, Encoder, Entries, RenderOptions, ServerReferenceTable
from .errors import ActionNotFoundError, AlreadyRenderedError, EntryNotFoundError, ReservedKeyError
from .modules import ModuleIdCallback, ModuleResolver, ResolveClientEntry
from .payloads import Body, decode_action_args
from .store import RenderStore, render_scope

logger = logging.getLogger(__name__)

RESERVED_PREFIX = "_"
ACTION_VALUE_KEY = "_value"


@dataclass
class RenderRequest:
    """Inbound render request as handed over by the serving layer."""

    input: str
    method: str = "GET"
    search_params: dict[str, Any] = field(default_factory=dict)
    context: dict[str, Any] | None = None
    body: Body | None = None
    content_type: str | None = None
    module_id_callback: ModuleIdCallback | None = None


@dataclass(frozen=True)
class ActionInvocation:
    action_id: str
    export_name: str
    args: list[Any]


async def _maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def check_reserved_keys(elements: Elements) -> None:
    reserved = [key for key in elements if str(key).startswith(RESERVED_PREFIX)]
    if reserved:
        raise ReservedKeyError(reserved)


async def iter_stream(stream: Any) -> AsyncIterator[bytes]:
    """Iterate an encoder result that may be an async or plain iterable of chunks."""
    if hasattr(stream, "__aiter__"):
        async for chunk in stream:
            yield chunk
    else:
        for chunk in stream:
            yield chunk


class _ActionRenders:
    """Rerender bookkeeping for one server action invocation."""

    def __init__(self, render: Callable[[str, dict[str, Any]], Any]):
        self._render = render
        self._pending: list[asyncio.Future] = []
        self.finalized = False

    def rerender(self, input: str, search_params: Any = None) -> None:
        if self.finalized:
            raise AlreadyRenderedError()
        logger.debug("Scheduling rerender of %r", input)
        self._pending.append(asyncio.ensure_future(self._render(input, dict(search_params or {}))))

    async def collect(self) -> dict[str, Any]:
        elements: dict[str, Any] = {}
        merged = 0
        # Renders may schedule further rerenders while we wait on them.
        while merged < len(self._pending):
            rendered = await self._pending[merged]
            merged += 1
            if rendered is None:
                logger.warning("Rerender produced no elements; nothing merged")
                continue
            elements.update(rendered)
        self.finalized = True
        return elements

    def cancel(self) -> None:
        self.finalized = True
        for future in self._pending:
            if not future.done():
                future.cancel()
            elif not future.cancelled():
                # Mark secondary failures as retrieved; the first error is the one raised.
                future.exception()


class RenderDispatcher:
    """
    Drives the Rendering Engine and the Encoder for GET and POST flight requests.

    All collaborators are injected; a dispatcher holds no per-request state, so
    one instance can serve overlapping requests.
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
        if resolve_client_entry is None and not is_exporting:
            raise ValueError("resolve_client_entry is required when not exporting")
        self.entries = entries
        self.encoder = encoder
        self.decode_reply = decode_reply
        self.server_references = server_references
        self.resolve_client_entry = resolve_client_entry
        self.is_exporting = is_exporting

    @property
    def build_config(self) -> Any:
        return getattr(self.entries, "build_config", None)

    def create_resolver(self, module_id_callback: ModuleIdCallback | None = None) -> ModuleResolver:
        return ModuleResolver(
            self.resolve_client_entry,
            is_exporting=self.is_exporting,
            on_module=module_id_callback,
        )

    async def render(self, request: RenderRequest) -> ByteStream:
        resolver = self.create_resolver(request.module_id_callback)
        method = (request.method or "GET").upper()
        logger.debug("Dispatching %s %r", method, request.input)
        if method == "POST":
            return await self._render_action(request, resolver)
        return await self._render_entry(request, resolver)

    async def _render_elements(self, input: str, search_params: dict[str, Any], store: RenderStore) -> Elements | None:
        options = RenderOptions(search_params=search_params, build_config=self.build_config, store=store)
        return await _maybe_await(self.entries.render_entries(input, options))

    async def _encode(self, elements: Any, resolver: ModuleResolver) -> ByteStream:
        return await _maybe_await(self.encoder(elements, resolver))

    async def _render_entry(self, request: RenderRequest, resolver: ModuleResolver) -> ByteStream:
        store = RenderStore(context=request.context or {})
        with render_scope(store):
            elements = await self._render_elements(request.input, dict(request.search_params or {}), store)
            if elements is None:
                raise EntryNotFoundError(request.input)
            check_reserved_keys(elements)
            return await self._encode(elements, resolver)

    async def decode_action(self, request: RenderRequest, resolver: ModuleResolver) -> ActionInvocation:
        action_id = unquote(request.input)
        if request.body is not None and self.decode_reply is None:
            raise ValueError("decode_reply is required to decode server action arguments")
        args = await decode_action_args(request.body, request.content_type, self.decode_reply, resolver)
        _, _, export_name = action_id.partition("#")
        return ActionInvocation(action_id=action_id, export_name=export_name, args=args)

    def lookup_action(self, invocation: ActionInvocation) -> Callable[..., Any]:
        table = self.server_references
        reference = table.get_server_reference(invocation.action_id) if table is not None else None
        logger.debug("Server action lookup %r -> %r", invocation.action_id, reference)
        if reference is None:
            debug = table.get_debug_description() if table is not None else ""
            raise ActionNotFoundError(invocation.action_id, debug)
        if invocation.export_name:
            return getattr(reference, invocation.export_name, None) or reference
        return reference

    async def _render_action(self, request: RenderRequest, resolver: ModuleResolver) -> ByteStream:
        invocation = await self.decode_action(request, resolver)
        action = self.lookup_action(invocation)

        store: RenderStore

        async def render(input: str, search_params: dict[str, Any]) -> Elements | None:
            return await self._render_elements(input, search_params, store)

        renders = _ActionRenders(render)
        store = RenderStore(context=request.context or {}, rerender=renders.rerender)
        with render_scope(store):
            try:
                value = await _maybe_await(action(*invocation.args))
                elements = await renders.collect()
            except BaseException:
                renders.cancel()
                raise
            check_reserved_keys(elements)
            return await self._encode({**elements, ACTION_VALUE_KEY: value}, resolver)


async def render_rsc(
    request: RenderRequest,
    entries: Entries,
    *,
    encoder: Encoder,
    decode_reply: DecodeReply | None = None,
    server_references: ServerReferenceTable | None = None,
    resolve_client_entry: ResolveClientEntry | None = None,
    is_exporting: bool = False,
) -> ByteStream:
    """One-shot helper building a dispatcher for a single request."""
    dispatcher = RenderDispatcher(
        entries,
        encoder=encoder,
        decode_reply=decode_reply,
        server_references=server_references,
        resolve_client_entry=resolve_client_entry,
        is_exporting=is_exporting,
    )
    return await dispatcher.render(request)


__all__ = [
    "ACTION_VALUE_KEY",
    "ActionInvocation",
    "RenderDispatcher",
    "RenderRequest",
    "check_reserved_keys",
    "iter_stream",
    "render_rsc",
]
