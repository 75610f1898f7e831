# SPDX-FileCopyrightText: Copyright (c) 2025-2026 NVIDIA CORPORATION & AFFILIATES. All rights reserved.
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for the rendering backend client, with the backend process mocked out.
"""

import os
import subprocess
from pathlib import Path
from unittest.mock import patch

import pytest

import expandybird
from expandybird.config import ExpanderConfig
from expandybird.errors import ExpansionError, ExpansionTimeoutError, MissingResourceNameError, ParseError
from expandybird.expander import BUNDLED_BACKEND_MODULE, Expander
from expandybird.protocol import decode_request
from expandybird.result import ExpansionResult, Resource
from expandybird.template import Import, Template

pytestmark = pytest.mark.unit

RUN = "expandybird.expander.subprocess.run"


@pytest.fixture
def template():
    return Template("config.yaml", b"resources: []\n", [Import("helper.py", b"def GenerateConfig(c): pass\n")])


def _completed(returncode=0, stdout=b"", stderr=b""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestBackendCommand:
    def test_bundled_backend(self):
        expander = Expander(ExpanderConfig(python_executable="/usr/bin/python3"))
        assert expander.backend_command() == ["/usr/bin/python3", "-m", BUNDLED_BACKEND_MODULE]
        assert expander.uses_bundled_backend

    def test_python_script_backend(self):
        expander = Expander(ExpanderConfig(expansion_binary="expansion/expansion.py", python_executable="py"))
        assert expander.backend_command() == ["py", "expansion/expansion.py"]

    def test_executable_backend(self):
        expander = Expander(ExpanderConfig(expansion_binary="/opt/bin/render"))
        assert expander.backend_command() == ["/opt/bin/render"]
        assert not expander.uses_bundled_backend


class TestExpandTemplate:
    def test_payload_and_arguments(self, template):
        config = ExpanderConfig(timeout_s=12, env={"deployment": "prod"}, python_executable="py")
        with patch(RUN, return_value=_completed(stdout=b"- {name: a, type: t}\n")) as run:
            output = Expander(config).expand_template(template)

        assert output == b"- {name: a, type: t}\n"
        run.assert_called_once()
        args, kwargs = run.call_args
        assert args[0] == ["py", "-m", BUNDLED_BACKEND_MODULE, "config.yaml"]
        assert kwargs["timeout"] == 12
        request = decode_request(kwargs["input"].decode("utf-8"))
        assert request.name == "config.yaml"
        assert request.content == "resources: []\n"
        assert request.imports == {"helper.py": "def GenerateConfig(c): pass\n"}
        assert request.env == {"deployment": "prod"}

    def test_diagnostic_kept_verbatim(self, template):
        stderr = "ExpansionError: Resource does not have a name Resource: {'type': 'T'}\n"
        with patch(RUN, return_value=_completed(returncode=1, stderr=stderr.encode("utf-8"))):
            with pytest.raises(ExpansionError) as exc_info:
                Expander().expand_template(template)
        assert str(exc_info.value) == stderr.strip()
        assert exc_info.value.returncode == 1

    def test_undecodable_diagnostic_is_still_an_expansion_error(self, template):
        with patch(RUN, return_value=_completed(returncode=1, stderr=b"ExpansionError: bad \xff\n")):
            with pytest.raises(ExpansionError) as exc_info:
                Expander().expand_template(template)
        assert str(exc_info.value) == "ExpansionError: bad \ufffd"

    def test_output_bytes_returned_unmodified(self, template):
        rendered = b"- {name: a, type: \xff}\r\n"
        with patch(RUN, return_value=_completed(stdout=rendered)) as run:
            assert Expander().expand_template(template) == rendered
        assert "text" not in run.call_args.kwargs

    def test_nonzero_exit_without_stderr(self, template):
        with patch(RUN, return_value=_completed(returncode=3)):
            with pytest.raises(ExpansionError, match="exited with status 3"):
                Expander().expand_template(template)

    def test_empty_output_is_an_error(self, template):
        with patch(RUN, return_value=_completed(stdout=b"  \n")):
            with pytest.raises(ExpansionError, match="no output"):
                Expander().expand_template(template)

    def test_timeout(self, template):
        with patch(RUN, side_effect=subprocess.TimeoutExpired(cmd=["x"], timeout=1)):
            with pytest.raises(ExpansionTimeoutError) as exc_info:
                Expander(ExpanderConfig(timeout_s=1)).expand_template(template)
        assert isinstance(exc_info.value, ExpansionError)

    def test_backend_cannot_start(self, template):
        with patch(RUN, side_effect=FileNotFoundError(2, "No such file or directory")):
            with pytest.raises(ExpansionError, match="cannot start expansion backend /missing/backend"):
                Expander(ExpanderConfig(expansion_binary="/missing/backend")).expand_template(template)

    def test_bundled_backend_importable_from_source_tree(self, template, monkeypatch):
        monkeypatch.setenv("PYTHONPATH", "/extra")
        with patch(RUN, return_value=_completed(stdout=b"[]")) as run:
            Expander().expand_template(template)
        paths = run.call_args.kwargs["env"]["PYTHONPATH"].split(os.pathsep)
        assert paths == ["/extra", str(Path(expandybird.__file__).resolve().parent.parent)]

    def test_package_root_not_duplicated_on_pythonpath(self, template, monkeypatch):
        root = str(Path(expandybird.__file__).resolve().parent.parent)
        monkeypatch.setenv("PYTHONPATH", os.pathsep.join([root, "/extra"]))
        with patch(RUN, return_value=_completed(stdout=b"[]")) as run:
            Expander().expand_template(template)
        assert run.call_args.kwargs["env"]["PYTHONPATH"].split(os.pathsep) == [root, "/extra"]

    def test_external_backend_env_untouched(self, template, monkeypatch):
        monkeypatch.setenv("PYTHONPATH", "/extra")
        with patch(RUN, return_value=_completed(stdout=b"[]")) as run:
            Expander(ExpanderConfig(expansion_binary="/opt/bin/render")).expand_template(template)
        assert run.call_args.kwargs["env"]["PYTHONPATH"] == "/extra"


class TestExpand:
    def test_round_trip(self, template):
        rendered = b"- name: a\n  type: t\n  properties:\n    replicas: 2\n"
        with patch(RUN, return_value=_completed(stdout=rendered)):
            result = Expander().expand(template)
        assert result == ExpansionResult(resources=(Resource("a", "t", {"replicas": 2}),))

    def test_deterministic(self, template):
        rendered = b"config:\n  resources:\n  - {name: a, type: t}\n  - {name: b, type: t}\n"
        with patch(RUN, return_value=_completed(stdout=rendered)) as run:
            expander = Expander()
            first = expander.expand(template)
            second = expander.expand(template)
        assert first == second
        assert run.call_count == 2

    def test_garbage_output_is_parse_error(self, template):
        with patch(RUN, return_value=_completed(stdout=b"resources:\n- name: a\n  x: y: z\n")):
            with pytest.raises(ParseError):
                Expander().expand(template)

    def test_resource_validation(self, template):
        with patch(RUN, return_value=_completed(stdout=b"- {type: t}\n")):
            with pytest.raises(MissingResourceNameError):
                Expander().expand(template)

    def test_undecodable_output_is_parse_error(self, template):
        with patch(RUN, return_value=_completed(stdout=b"- {name: a, type: \xff}\n")):
            with pytest.raises(ParseError, match="not valid UTF-8"):
                Expander().expand(template)
