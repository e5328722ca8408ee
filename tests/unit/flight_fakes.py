# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Stand-ins for the Rendering Engine, Encoder and reply decoder used across tests."""

import asyncio
import json
from dataclasses import dataclass


@dataclass(frozen=True)
class ClientRef:
    """A client component reference as emitted by the "use client" transform."""

    encoded_id: str


def to_wire(value, resolver):
    if isinstance(value, ClientRef):
        return {"$module": resolver(value.encoded_id).to_mapping()}
    if isinstance(value, dict):
        return {key: to_wire(item, resolver) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(item, resolver) for item in value]
    return value


class JsonLinesEncoder:
    """Encodes one JSON line per top-level slot, resolving references lazily while streaming."""

    def __init__(self, fail_after=None):
        self.calls = []
        self.fail_after = fail_after

    def __call__(self, elements, resolver):
        self.calls.append(dict(elements))

        async def stream():
            for index, (key, value) in enumerate(elements.items()):
                if self.fail_after is not None and index >= self.fail_after:
                    raise ConnectionAbortedError("stream aborted")
                await asyncio.sleep(0)
                yield (json.dumps({key: to_wire(value, resolver)}, sort_keys=True) + "\n").encode("utf-8")

        return stream()


async def read_stream(stream):
    out = bytearray()
    async for chunk in stream:
        out.extend(chunk)
    return out.decode("utf-8")


async def read_lines(stream):
    merged = {}
    for line in (await read_stream(stream)).splitlines():
        merged.update(json.loads(line))
    return merged


class FakeEntries:
    """Entries backed by a dict of input -> elements (or a callable producing them)."""

    def __init__(self, pages, build_config=None):
        self.pages = pages
        self.build_config = build_config
        self.calls = []

    async def render_entries(self, input, options):
        self.calls.append((input, dict(options.search_params), options.store))
        await asyncio.sleep(0)
        page = self.pages.get(input)
        if callable(page):
            return page(options)
        return page


def json_decode_reply(payload, resolver):  # noqa: ARG001
    if isinstance(payload, str):
        return json.loads(payload)
    return [payload]
