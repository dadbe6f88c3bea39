# Copyright 2017-2019 The FIAAS Authors
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
from unittest import mock

import pytest
from k8s import config


# k8s client library mocks


@pytest.fixture(autouse=True)
def k8s_config(monkeypatch):
    """Configure k8s for test-runs"""
    monkeypatch.setattr(config, "api_server", "https://10.0.0.1")
    monkeypatch.setattr(config, "api_token", "password")
    monkeypatch.setattr(config, "verify_ssl", False)


@pytest.fixture(scope="session", autouse=True)
def _open():
    """
    mock open() to return predefined namespace if the file we're trying to read is
    /var/run/secrets/kubernetes.io/serviceaccount/namespace. Otherwise, pass all parameters to the real open() builtin
    and call it
    """
    real_open = open

    def _mock_namespace_file_open(name, *args, **kwargs):
        namespace = "namespace-from-file"
        if name == "/var/run/secrets/kubernetes.io/serviceaccount/namespace":
            return mock.mock_open(read_data=namespace)()
        else:
            return real_open(name, *args, **kwargs)

    with mock.patch("builtins.open") as mock_open:
        mock_open.side_effect = _mock_namespace_file_open
        yield mock_open
