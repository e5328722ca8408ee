# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import pytest
from flight_fakes import ClientRef, FakeEntries, JsonLinesEncoder, json_decode_reply, read_lines

from rscengine.modules import ClientEntry
from rscengine.runtime import RscRuntime
from rscengine.ssr import get_ssr_config


class SsrEntries(FakeEntries):
    def __init__(self, pages, ssr_configs):
        super().__init__(pages)
        self.ssr_configs = ssr_configs

    async def get_ssr_config(self, pathname, options):
        self.last_ssr_options = options
        return self.ssr_configs.get(pathname)


def _resolve(path):
    return ClientEntry(id=f"ssr:{path}", url=["ignored.bundle"])


def test_ssr_body_is_reencoded_with_id_as_chunk():
    entries = SsrEntries({}, {"/": {"input": "", "body": {"Root": ClientRef("/app/Root.tsx#Root")}}})

    async def run():
        config = await get_ssr_config(entries, "/", {"q": "1"}, encoder=JsonLinesEncoder(), resolve_client_entry=_resolve)
        return config, await read_lines(config["body"])

    config, body = asyncio.run(run())

    assert config["input"] == ""
    assert body["Root"]["$module"] == {"id": "ssr:/app/Root.tsx", "chunks": ["ssr:/app/Root.tsx"], "name": "Root", "async": True}
    assert entries.last_ssr_options == {"search_params": {"q": "1"}}


def test_ssr_returns_none_without_config_or_hook():
    entries = SsrEntries({}, {})
    assert asyncio.run(get_ssr_config(entries, "/missing", encoder=JsonLinesEncoder(), resolve_client_entry=_resolve)) is None
    assert asyncio.run(get_ssr_config(FakeEntries({}), "/", encoder=JsonLinesEncoder(), resolve_client_entry=_resolve)) is None


def test_runtime_shares_registry_between_render_and_actions():
    runtime = RscRuntime(
        FakeEntries({"": {"App": ClientRef("/app/App.tsx#App")}}),
        encoder=JsonLinesEncoder(),
        decode_reply=json_decode_reply,
        resolve_client_entry=_resolve,
    )
    runtime.server_references.register_server_reference(lambda a, b: a + b, "add")

    async def run():
        page = await read_lines(await runtime.render(""))
        action = await read_lines(await runtime.render("add", method="POST", body=b"[1, 2]"))
        modules = await runtime.collect_client_modules("")
        return page, action, modules

    page, action, modules = asyncio.run(run())

    assert page["App"]["$module"]["id"] == "ssr:/app/App.tsx"
    assert action == {"_value": 3}
    assert modules == ["/app/App.tsx"]


def test_runtime_ssr_requires_resolver():
    runtime = RscRuntime(FakeEntries({}), encoder=JsonLinesEncoder(), is_exporting=True)
    with pytest.raises(ValueError):
        asyncio.run(runtime.get_ssr_config("/"))
