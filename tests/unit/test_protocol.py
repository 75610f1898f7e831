# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the expander <-> backend request format.
"""

import base64
import json

import pytest

from expandybird.protocol import decode_request, encode_request
from expandybird.template import Import, Template

pytestmark = pytest.mark.unit


def test_contents_are_base64():
    template = Template("config.yaml", "name: ü\n".encode("utf-8"), [Import("a.jinja", b"{{ x }}")])
    payload = json.loads(encode_request(template, {"deployment": "d"}))
    assert payload["template"]["name"] == "config.yaml"
    assert base64.b64decode(payload["template"]["content"]) == "name: ü\n".encode("utf-8")
    assert base64.b64decode(payload["imports"]["a.jinja"]) == b"{{ x }}"
    assert payload["env"] == {"deployment": "d"}


def test_decode_request():
    template = Template("config.yaml", b"resources: []", [Import("b.py", b"x = 1"), Import("a.py", b"y = 2")])
    request = decode_request(encode_request(template))
    assert request.name == "config.yaml"
    assert request.content == "resources: []"
    assert request.imports == {"a.py": "y = 2", "b.py": "x = 1"}
    assert request.env == {}


@pytest.mark.parametrize(
    "payload",
    [
        "not json",
        json.dumps([1, 2]),
        json.dumps({"template": {"content": ""}}),
        json.dumps({"template": {"name": "c", "content": "!!!"}}),
        json.dumps({"template": {"name": "c", "content": base64.b64encode(b"\xff\xfe").decode()}}),
        json.dumps({"template": {"name": "c", "content": ""}, "imports": ["a"]}),
    ],
)
def test_malformed_requests(payload):
    with pytest.raises(ValueError):
        decode_request(payload)
