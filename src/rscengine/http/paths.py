# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Mapping between entry inputs and flight request paths."""

from __future__ import annotations

from ..errors import InvalidInputError

INDEX_PATH = "index.txt"
INPUT_SUFFIX = ".txt"


def encode_input(input: str) -> str:
    """``""`` -> ``index.txt``, ``posts/1`` -> ``posts/1.txt``."""
    if input == "":
        return INDEX_PATH
    if input == "index":
        raise InvalidInputError("Input should not be `index`")
    if input.startswith("/"):
        raise InvalidInputError("Input should not start with `/`")
    if input.endswith("/"):
        raise InvalidInputError("Input should not end with `/`")
    return f"{input}{INPUT_SUFFIX}"


def decode_input(encoded_input: str) -> str:
    if encoded_input == INDEX_PATH:
        return ""
    if encoded_input.endswith(INPUT_SUFFIX):
        return encoded_input[: -len(INPUT_SUFFIX)]
    raise InvalidInputError("Invalid encoded input")


def split_flight_path(path: str, rsc_path: str) -> str:
    """Strip the flight prefix from a request path and decode the remainder to an input."""
    prefix = rsc_path.rstrip("/") + "/"
    if not path.startswith(prefix):
        raise InvalidInputError(f"Not a flight path: {path!r}")
    return decode_input(path[len(prefix) :])


__all__ = ["decode_input", "encode_input", "split_flight_path"]
