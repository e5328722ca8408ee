# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Error taxonomy and exception helpers."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from typing import Any


class ErrorCode(str, Enum):
    INVALID_REFERENCE = "INVALID_REFERENCE"
    ENTRY_NOT_FOUND = "ENTRY_NOT_FOUND"
    RESERVED_KEY = "RESERVED_KEY"
    ACTION_NOT_FOUND = "ACTION_NOT_FOUND"
    ACTION_PAYLOAD = "ACTION_PAYLOAD"
    RERENDER_NOT_SUPPORTED = "RERENDER_NOT_SUPPORTED"
    ALREADY_RENDERED = "ALREADY_RENDERED"
    NETWORK_ERROR = "NETWORK_ERROR"
    BUNDLER_SERVER_ERROR = "BUNDLER_SERVER_ERROR"
    REACT_SERVER_ERROR = "REACT_SERVER_ERROR"


class RscError(Exception):
    """Base class for every error raised by rscengine."""

    code: ErrorCode = ErrorCode.REACT_SERVER_ERROR
    status_code: int = 500


class InvalidReferenceError(RscError):
    """Malformed encoded module id, file URL or flight path."""

    code = ErrorCode.INVALID_REFERENCE


class InvalidInputError(InvalidReferenceError):
    """Flight request path that does not encode an entry input."""

    status_code = 400


class EntryNotFoundError(RscError):
    code = ErrorCode.ENTRY_NOT_FOUND
    status_code = 404

    def __init__(self, input: str):
        super().__init__(f"No function component found at: {input}")
        self.input = input


class ReservedKeyError(RscError):
    code = ErrorCode.RESERVED_KEY

    def __init__(self, keys: list[str] | None = None):
        super().__init__('"_" prefix is reserved')
        self.keys = list(keys or [])


class ActionNotFoundError(RscError):
    code = ErrorCode.ACTION_NOT_FOUND

    def __init__(self, action_id: str, debug_description: str = ""):
        message = f'Server action not found: "{action_id}".'
        if debug_description:
            message = f"{message} {debug_description}"
        super().__init__(message)
        self.action_id = action_id


class ActionPayloadError(RscError):
    """Action request body could not be parsed."""

    code = ErrorCode.ACTION_PAYLOAD


class RerenderNotSupportedError(RscError):
    code = ErrorCode.RERENDER_NOT_SUPPORTED

    def __init__(self, message: str = "Cannot rerender"):
        super().__init__(message)


class AlreadyRenderedError(RscError):
    code = ErrorCode.ALREADY_RENDERED

    def __init__(self, message: str = "already rendered"):
        super().__init__(message)


class NetworkError(RscError):
    """The flight endpoint could not be reached."""

    code = ErrorCode.NETWORK_ERROR

    def __init__(self, message: str, url: str):
        super().__init__(message)
        self.url = url


class BundlerServerError(RscError):
    """
    The dev bundler answered with a structured error object.

    Every field of the error object is copied onto the exception so callers can
    surface bundler diagnostics (file, line, snippet, ...) unchanged.
    """

    code = ErrorCode.BUNDLER_SERVER_ERROR

    def __init__(self, error_object: Mapping[str, Any], url: str):
        super().__init__(str(error_object.get("message") or "Bundler server error"))
        self.url = url
        self.details = dict(error_object)
        for key, value in self.details.items():
            if not isinstance(key, str) or key.startswith("_") or key in {"code", "url", "details", "args"}:
                continue
            try:
                setattr(self, key, value)
            except (AttributeError, TypeError):
                continue


class ReactServerError(RscError):
    code = ErrorCode.REACT_SERVER_ERROR

    def __init__(self, message: str, url: str, status_code: int):
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class ResponseTooLargeError(ReactServerError):
    """The upstream flight body exceeded the configured size cap."""

    def __init__(self, url: str, limit: int):
        super().__init__(f"Flight response exceeds {limit} bytes", url, 502)
        self.limit = limit


def status_for_exception(exc: BaseException) -> int:
    """
    Map an exception to the HTTP status the serving layer should answer with.

    Only a missing entry is a client-visible 404. Other failures are server
    errors: a 5xx carried by the exception is kept, anything else (including
    an upstream 4xx relayed by ReactServerError) becomes 500.
    """
    if isinstance(exc, EntryNotFoundError):
        return 404
    status = getattr(exc, "status_code", None)
    if isinstance(status, int) and 500 <= status <= 599:
        return status
    return 500


__all__ = [
    "ActionNotFoundError",
    "ActionPayloadError",
    "AlreadyRenderedError",
    "BundlerServerError",
    "EntryNotFoundError",
    "ErrorCode",
    "InvalidInputError",
    "InvalidReferenceError",
    "NetworkError",
    "ReactServerError",
    "ResponseTooLargeError",
    "RerenderNotSupportedError",
    "ReservedKeyError",
    "RscError",
    "status_for_exception",
]
