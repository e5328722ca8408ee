# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""
rscengine package entrypoint.

Server-side engine for React Server Components flight requests: it renders
entries through an injected Rendering Engine, encodes them with an injected
Encoder while resolving client module references, dispatches server actions
with their rerenders, and walks entries at build time to enumerate the client
modules they reference.
"""

from .collector import collect_client_modules, get_build_config
from .config import RscSettings, load_rsc_settings
from .dispatcher import ActionInvocation, RenderDispatcher, RenderRequest, render_rsc
from .entries import RenderOptions, ServerReferenceRegistry
from .errors import (
    ActionNotFoundError,
    ActionPayloadError,
    AlreadyRenderedError,
    BundlerServerError,
    EntryNotFoundError,
    InvalidInputError,
    InvalidReferenceError,
    NetworkError,
    ReactServerError,
    ResponseTooLargeError,
    RerenderNotSupportedError,
    ReservedKeyError,
    RscError,
    status_for_exception,
)
from .http import FlightClient, FlightResponse
from .log import setup_logging
from .modules import ClientEntry, ModuleDescriptor, ModuleResolver, file_url_to_path
from .payloads import FileAttachment, FormData, parse_form_data
from .runtime import RscRuntime
from .ssr import get_ssr_config
from .store import RenderStore, get_context, get_render_store, rerender
from .version import __version__

__all__ = [
    "ActionInvocation",
    "ActionNotFoundError",
    "ActionPayloadError",
    "AlreadyRenderedError",
    "BundlerServerError",
    "ClientEntry",
    "EntryNotFoundError",
    "FileAttachment",
    "FlightClient",
    "FlightResponse",
    "FormData",
    "InvalidInputError",
    "InvalidReferenceError",
    "ModuleDescriptor",
    "ModuleResolver",
    "NetworkError",
    "ReactServerError",
    "ResponseTooLargeError",
    "RenderDispatcher",
    "RenderOptions",
    "RenderRequest",
    "RenderStore",
    "RerenderNotSupportedError",
    "ReservedKeyError",
    "RscError",
    "RscRuntime",
    "RscSettings",
    "ServerReferenceRegistry",
    "__version__",
    "collect_client_modules",
    "file_url_to_path",
    "get_build_config",
    "get_context",
    "get_render_store",
    "get_ssr_config",
    "load_rsc_settings",
    "parse_form_data",
    "render_rsc",
    "rerender",
    "setup_logging",
    "status_for_exception",
]
