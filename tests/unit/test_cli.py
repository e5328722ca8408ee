# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import json
import sys
import types

from flight_fakes import ClientRef, FakeEntries, JsonLinesEncoder

from rscengine.cli.main import build_parser, load_entries, main


def _install_entries(monkeypatch, entries):
    module = types.ModuleType("demo_entries")
    module.entries = entries
    monkeypatch.setitem(sys.modules, "demo_entries", module)


def test_build_parser_subcommands():
    parser = build_parser()
    args = parser.parse_args(["collect", "demo_entries:entries", "", "about"])
    assert args.command == "collect"
    assert args.inputs == ["", "about"]

    args = parser.parse_args(["fetch", "http://localhost:8081", "posts/1", "--param", "tab=2"])
    assert args.base_url == "http://localhost:8081"
    assert args.param == ["tab=2"]


def test_load_entries_defaults_attribute(monkeypatch):
    entries = FakeEntries({})
    _install_entries(monkeypatch, entries)
    assert load_entries("demo_entries") is entries
    assert load_entries("demo_entries:entries") is entries


def test_collect_prints_modules_per_input(monkeypatch, capsys):
    entries = FakeEntries({"": {"A": ClientRef("/app/A.js#A")}, "about": {"B": "static"}})
    entries.encoder = JsonLinesEncoder()
    _install_entries(monkeypatch, entries)

    assert main(["collect", "demo_entries:entries", "", "about"]) == 0
    assert json.loads(capsys.readouterr().out) == {"": ["/app/A.js"], "about": []}


def test_collect_reports_missing_entry(monkeypatch, capsys):
    entries = FakeEntries({})
    entries.encoder = JsonLinesEncoder()
    _install_entries(monkeypatch, entries)

    assert main(["collect", "demo_entries", "missing"]) == 1
    assert "EntryNotFoundError" in capsys.readouterr().err


def test_build_config_without_hook_prints_empty_manifest(monkeypatch, capsys):
    entries = FakeEntries({})
    entries.encoder = JsonLinesEncoder()
    _install_entries(monkeypatch, entries)

    assert main(["build-config", "demo_entries"]) == 0
    assert json.loads(capsys.readouterr().out) == []
