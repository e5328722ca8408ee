# SPDX-FileCopyrightText: 2025 Theori Inc.
# SPDX-License-Identifier: AGPL-3.0-or-later

import asyncio

import pytest

from rscengine.errors import ActionPayloadError
from rscengine.payloads import (
    FileAttachment,
    FormData,
    decode_action_args,
    extract_boundary,
    parse_form_data,
    stream_to_string,
)

BOUNDARY = "----FormBoundaryfeedface"
CONTENT_TYPE = f"multipart/form-data; boundary={BOUNDARY}"


def _multipart_body() -> str:
    return (
        f"--{BOUNDARY}\r\n"
        'Content-Disposition: form-data; name="x"\r\n'
        "\r\n"
        "42\r\n"
        f"--{BOUNDARY}\r\n"
        'Content-Disposition: form-data; name="f"; filename="a.txt"\r\n'
        "Content-Type: text/plain\r\n"
        "\r\n"
        "hi\r\n"
        f"--{BOUNDARY}--\r\n"
    )


async def _chunks(*parts: bytes):
    for part in parts:
        await asyncio.sleep(0)
        yield part


def test_parse_form_data_fields_and_files():
    form = parse_form_data(_multipart_body(), CONTENT_TYPE)

    assert form.keys() == ["x", "f"]
    assert form["x"] == "42"
    attachment = form["f"]
    assert isinstance(attachment, FileAttachment)
    assert attachment.filename == "a.txt"
    assert attachment.content == b"hi"
    assert attachment.content_type == "text/plain"


def test_file_parts_default_to_octet_stream():
    body = (
        f"--{BOUNDARY}\r\n"
        'Content-Disposition: form-data; name="upload"; filename="blob.bin"\r\n'
        "\r\n"
        "\x00\x01\r\n"
        f"--{BOUNDARY}--\r\n"
    )
    attachment = parse_form_data(body, CONTENT_TYPE)["upload"]
    assert attachment.content_type == "application/octet-stream"
    assert attachment.content == b"\x00\x01"


def test_repeated_names_are_kept_in_order():
    body = "".join(
        f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="1"\r\n\r\n{value}\r\n' for value in ("a", "b")
    )
    body += f"--{BOUNDARY}--\r\n"
    form = parse_form_data(body, CONTENT_TYPE)
    assert form.getall("1") == ["a", "b"]
    assert form.get("1") == "a"
    assert form.get("missing") is None
    assert len(form) == 2


def test_parts_without_name_are_skipped():
    body = f"--{BOUNDARY}\r\nContent-Type: text/plain\r\n\r\norphan\r\n--{BOUNDARY}--\r\n"
    assert len(parse_form_data(body, CONTENT_TYPE)) == 0


def test_extract_boundary_handles_quotes_and_parameters():
    assert extract_boundary('multipart/form-data; boundary="abc"; charset=utf-8') == "abc"
    with pytest.raises(ActionPayloadError):
        extract_boundary("multipart/form-data")


def test_stream_to_string_rejects_non_bytes_chunks():
    async def bad():
        yield "text"

    with pytest.raises(TypeError):
        asyncio.run(stream_to_string(bad()))


def test_decode_action_args_without_body_is_empty():
    def decode_reply(payload, resolver):  # noqa: ARG001
        raise AssertionError("decoder must not be called")

    assert asyncio.run(decode_action_args(None, None, decode_reply, None)) == []
    assert asyncio.run(decode_action_args(b"", "text/plain", decode_reply, None)) == []


def test_decode_action_args_passes_text_body_and_resolver():
    seen = {}

    def decode_reply(payload, resolver):
        seen["payload"] = payload
        seen["resolver"] = resolver
        return ["hello", 1]

    args = asyncio.run(decode_action_args(_chunks(b'["hel', b'lo",1]'), "text/plain;charset=UTF-8", decode_reply, "resolver"))

    assert args == ["hello", 1]
    assert seen == {"payload": '["hello",1]', "resolver": "resolver"}


def test_decode_action_args_replaces_invalid_utf8_in_text_bodies():
    seen = {}

    def decode_reply(payload, resolver):  # noqa: ARG001
        seen["payload"] = payload
        return [payload]

    args = asyncio.run(decode_action_args(b'["\xff"]', "text/plain", decode_reply, None))

    assert seen["payload"] == '["�"]'
    assert args == ['["�"]']


def test_decode_action_args_multipart_hands_form_data_to_async_decoder():
    async def decode_reply(payload, resolver):  # noqa: ARG001
        assert isinstance(payload, FormData)
        return [payload["x"], payload["f"]]

    body = _chunks(*[part.encode("utf-8") for part in _multipart_body().partition("hi")])
    x, f = asyncio.run(decode_action_args(body, CONTENT_TYPE, decode_reply, None))

    assert x == "42"
    assert f.filename == "a.txt"
    assert f.text() == "hi"


def test_multipart_file_bytes_survive_non_utf8_content():
    raw = (
        f'--{BOUNDARY}\r\nContent-Disposition: form-data; name="f"; filename="img.png"\r\n'
        "Content-Type: image/png\r\n\r\n"
    ).encode("utf-8") + b"\x89PNG\xff\xfe" + f"\r\n--{BOUNDARY}--\r\n".encode("utf-8")

    def decode_reply(payload, resolver):  # noqa: ARG001
        return [payload["f"]]

    (attachment,) = asyncio.run(decode_action_args(raw, CONTENT_TYPE, decode_reply, None))
    assert attachment.content == b"\x89PNG\xff\xfe"
    assert attachment.content_type == "image/png"
