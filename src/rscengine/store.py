# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
Per-request render store.

A RenderStore carries the request's ambient context and its ``rerender``
callback. The dispatcher hands it to the Rendering Engine explicitly through
``RenderOptions.store``; server actions, whose signatures belong to the app,
read it from a ContextVar that is bound only while the dispatcher runs them.
ContextVar values are copied per asyncio task, so concurrent requests never see
each other's store.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any

from .errors import RerenderNotSupportedError

Rerender = Callable[..., None]


def _unsupported_rerender(input: str, search_params: Mapping[str, Any] | None = None) -> None:  # noqa: ARG001
    raise RerenderNotSupportedError()


@dataclass(frozen=True)
class RenderStore:
    context: dict[str, Any] = field(default_factory=dict)
    rerender: Rerender = _unsupported_rerender


_current_render_store: ContextVar[RenderStore | None] = ContextVar("rscengine_render_store", default=None)


def get_render_store() -> RenderStore:
    """Return the render store of the request being processed."""
    store = _current_render_store.get()
    if store is None:
        raise RuntimeError("No render store is active; call from within a render or server action")
    return store


def get_context() -> dict[str, Any]:
    return get_render_store().context


def rerender(input: str, search_params: Mapping[str, Any] | None = None) -> None:
    """Schedule a render of ``input`` to be merged into the current action response."""
    store = _current_render_store.get()
    if store is None:
        raise RerenderNotSupportedError("Cannot rerender outside of a server action")
    store.rerender(input, search_params)


@contextmanager
def render_scope(store: RenderStore) -> Iterator[RenderStore]:
    """Bind ``store`` for the duration of the block, restoring the outer value afterwards."""
    token = _current_render_store.set(store)
    try:
        yield store
    finally:
        _current_render_store.reset(token)


__all__ = [
    "RenderStore",
    "Rerender",
    "get_context",
    "get_render_store",
    "render_scope",
    "rerender",
]
