# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Server action request body decoding (plain text and minimal multipart/form-data)."""

from __future__ import annotations

import codecs
import inspect
import re
from collections.abc import AsyncIterable, Iterable, Iterator
from dataclasses import dataclass
from typing import Any, Union

from .errors import ActionPayloadError

MULTIPART_FORM_DATA = "multipart/form-data"
DEFAULT_ATTACHMENT_TYPE = "application/octet-stream"

_NAME_RE = re.compile(r'(?<![\w-])name="([^"]+)"')
_FILENAME_RE = re.compile(r'filename="([^"]+)"')

Body = Union[bytes, bytearray, str, Iterable[bytes], AsyncIterable[bytes]]


@dataclass(frozen=True)
class FileAttachment:
    """A file part of a multipart body."""

    filename: str
    content: bytes
    content_type: str = DEFAULT_ATTACHMENT_TYPE

    @property
    def size(self) -> int:
        return len(self.content)

    def text(self, encoding: str = "utf-8") -> str:
        return self.content.decode(encoding, errors="replace")


FormValue = Union[str, FileAttachment]


class FormData:
    """Ordered, multi-valued name -> value mapping, the shape ``decode_reply`` expects."""

    def __init__(self, items: Iterable[tuple[str, FormValue]] | None = None):
        self._items: list[tuple[str, FormValue]] = list(items or [])

    def append(self, name: str, value: FormValue) -> None:
        self._items.append((name, value))

    def get(self, name: str, default: FormValue | None = None) -> FormValue | None:
        for key, value in self._items:
            if key == name:
                return value
        return default

    def getall(self, name: str) -> list[FormValue]:
        return [value for key, value in self._items if key == name]

    def keys(self) -> list[str]:
        seen: list[str] = []
        for key, _ in self._items:
            if key not in seen:
                seen.append(key)
        return seen

    def items(self) -> list[tuple[str, FormValue]]:
        return list(self._items)

    def __contains__(self, name: object) -> bool:
        return any(key == name for key, _ in self._items)

    def __getitem__(self, name: str) -> FormValue:
        for key, value in self._items:
            if key == name:
                return value
        raise KeyError(name)

    def __iter__(self) -> Iterator[str]:
        return iter(self.keys())

    def __len__(self) -> int:
        return len(self._items)

    def __repr__(self) -> str:
        return f"FormData({self._items!r})"


def _ensure_bytes(chunk: Any) -> bytes:
    if isinstance(chunk, (bytes, bytearray, memoryview)):
        return bytes(chunk)
    raise TypeError(f"Unexpected buffer type: {type(chunk).__name__}")


async def stream_to_bytes(body: Body | None) -> bytes:
    """Buffer a request body completely."""
    if body is None:
        return b""
    if isinstance(body, str):
        return body.encode("utf-8")
    if isinstance(body, (bytes, bytearray, memoryview)):
        return bytes(body)
    out = bytearray()
    if isinstance(body, AsyncIterable):
        async for chunk in body:
            out.extend(_ensure_bytes(chunk))
    else:
        for chunk in body:
            out.extend(_ensure_bytes(chunk))
    return bytes(out)


async def stream_to_string(body: Body | None, *, errors: str = "strict") -> str:
    if isinstance(body, str):
        return body
    decoder = codecs.getincrementaldecoder("utf-8")(errors=errors)
    return decoder.decode(await stream_to_bytes(body), final=True)


def extract_boundary(content_type: str) -> str:
    _, sep, rest = content_type.partition("boundary=")
    boundary = rest.split(";", 1)[0].strip().strip('"') if sep else ""
    if not boundary:
        raise ActionPayloadError(f"Missing multipart boundary in content type: {content_type!r}")
    return boundary


def _parse_part_headers(raw_headers: str) -> dict[str, str]:
    headers: dict[str, str] = {}
    for line in raw_headers.split("\r\n"):
        key, sep, value = line.partition(":")
        if not sep:
            continue
        headers[key.strip().lower()] = value.strip()
    return headers


def parse_form_data(body: str, content_type: str) -> FormData:
    """
    Parse a fully buffered multipart/form-data body.

    Only the pieces server action payloads use are handled: ``name`` and
    ``filename`` from Content-Disposition, plus the part Content-Type.
    Bodies are expected to be decoded with ``surrogateescape`` so file contents
    survive as raw bytes.
    """
    boundary = extract_boundary(content_type)
    form = FormData()
    for part in body.split(f"--{boundary}"):
        if part.strip() == "" or part.startswith("--"):
            continue
        raw_headers, _, content = part.lstrip("\r\n").partition("\r\n\r\n")
        headers = _parse_part_headers(raw_headers)
        disposition = headers.get("content-disposition", "")
        name_match = _NAME_RE.search(disposition)
        if not name_match:
            continue
        filename_match = _FILENAME_RE.search(disposition)
        if filename_match:
            if content.endswith("\r\n"):
                content = content[:-2]
            form.append(
                name_match.group(1),
                FileAttachment(
                    filename=filename_match.group(1),
                    content=content.encode("utf-8", errors="surrogateescape"),
                    content_type=headers.get("content-type") or DEFAULT_ATTACHMENT_TYPE,
                ),
            )
        else:
            form.append(name_match.group(1), content.strip())
    return form


def is_multipart(content_type: str | None) -> bool:
    return isinstance(content_type, str) and content_type.startswith(MULTIPART_FORM_DATA)


async def decode_action_args(body: Body | None, content_type: str | None, decode_reply: Any, resolver: Any) -> list[Any]:
    """
    Turn a server action request body into call arguments.

    The body is buffered completely; multipart bodies go through
    ``parse_form_data`` first. ``decode_reply`` may be sync or async.
    """
    if body is None:
        return []
    if is_multipart(content_type):
        text = await stream_to_string(body, errors="surrogateescape")
        payload: Any = parse_form_data(text, content_type or "")
    else:
        payload = await stream_to_string(body, errors="replace")
        if not payload:
            return []
    args = decode_reply(payload, resolver)
    if inspect.isawaitable(args):
        args = await args
    return list(args or [])


__all__ = [
    "FileAttachment",
    "FormData",
    "decode_action_args",
    "extract_boundary",
    "is_multipart",
    "parse_form_data",
    "stream_to_bytes",
    "stream_to_string",
]
