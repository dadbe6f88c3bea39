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
import requests
from k8s.client import ClientError, NotFound, ServerError
from k8s.models.deployment import Deployment
from requests import Request, Response

from node_autoscaler.errors import Conflict, InvalidTarget, TargetNotFound, TargetNotReady, TargetUnavailable
from node_autoscaler.targets import TargetBindings
from node_autoscaler.targets.adapter import Scale
from node_autoscaler.targets.deployment import DeploymentAdapter
from node_autoscaler.targets.node_group import ScalableNodeGroupAdapter
from node_autoscaler.types import API_VERSION, ScalableNodeGroup

NAME = "microservices"
NAMESPACE = "default"


def _node_group(replicas=3, observed=3, resource_version="42"):
    status = {} if observed is None else {"replicas": observed}
    return ScalableNodeGroup.from_dict({
        "apiVersion": API_VERSION,
        "kind": "ScalableNodeGroup",
        "metadata": {"name": NAME, "namespace": NAMESPACE, "resourceVersion": resource_version},
        "spec": {"replicas": replicas, "type": "AWSEC2AutoScalingGroup", "id": "arn:aws:autoscaling:asg"},
        "status": status,
    })


def _deployment(replicas=2, status=None):
    return Deployment.from_dict({
        "metadata": {"name": NAME, "namespace": NAMESPACE, "resourceVersion": "7"},
        "spec": {
            "replicas": replicas,
            "selector": {"matchLabels": {"app": NAME}},
            "template": {
                "metadata": {"labels": {"app": NAME}},
                "spec": {"containers": [{"name": NAME, "image": "example/app"}]},
            },
        },
        "status": status,
    })


class TestScalableNodeGroupAdapter(object):
    @pytest.fixture
    def adapter(self):
        return ScalableNodeGroupAdapter()

    @pytest.fixture
    def model_get(self):
        with mock.patch.object(ScalableNodeGroup, "get") as m:
            yield m

    @pytest.fixture
    def model_save(self):
        with mock.patch.object(ScalableNodeGroup, "save", autospec=True) as m:
            yield m

    def test_read_observed(self, adapter, model_get):
        model_get.return_value = _node_group(replicas=4, observed=3)

        assert adapter.read_observed(NAME, NAMESPACE) == Scale(3, 4, "42")
        model_get.assert_called_once_with(NAME, NAMESPACE)

    def test_read_missing_target(self, adapter, model_get):
        model_get.side_effect = NotFound()

        with pytest.raises(TargetNotFound):
            adapter.read_observed(NAME, NAMESPACE)

    def test_read_target_without_observed_replicas(self, adapter, model_get):
        model_get.return_value = _node_group(observed=None)

        with pytest.raises(TargetNotReady):
            adapter.read_observed(NAME, NAMESPACE)

    def test_read_group_scaled_to_zero(self, adapter, model_get):
        model_get.return_value = _node_group(replicas=0, observed=0)

        assert adapter.read_observed(NAME, NAMESPACE) == Scale(0, 0, "42")

    @pytest.mark.parametrize("error", (
        requests.exceptions.ConnectionError("connection refused"),
        requests.exceptions.Timeout("timed out"),
        ServerError("500 Server Error: Internal Server Error"),
        ClientError("403 Client Error: Forbidden"),
    ))
    def test_read_from_unavailable_api_server(self, adapter, model_get, error):
        model_get.side_effect = error

        with pytest.raises(TargetUnavailable) as excinfo:
            adapter.read_observed(NAME, NAMESPACE)
        assert excinfo.value.reason == "TargetUnavailable"

    @pytest.mark.parametrize("error", (
        requests.exceptions.ConnectionError("connection refused"),
        ServerError("503 Server Error: Service Unavailable"),
        ClientError("422 Client Error: Unprocessable Entity"),
    ))
    def test_write_to_unavailable_api_server(self, adapter, model_get, model_save, error):
        model_get.return_value = _node_group()
        model_save.side_effect = error

        with pytest.raises(TargetUnavailable):
            adapter.write_desired(NAME, NAMESPACE, 8, "42")

    def test_write_target_deleted_while_saving(self, adapter, model_get, model_save):
        model_get.return_value = _node_group()
        model_save.side_effect = NotFound()

        with pytest.raises(TargetNotFound):
            adapter.write_desired(NAME, NAMESPACE, 8, "42")

    def test_write_desired(self, adapter, model_get, model_save):
        node_group = _node_group(replicas=3)
        model_get.return_value = node_group

        adapter.write_desired(NAME, NAMESPACE, 8, "42")

        model_save.assert_called_once_with(node_group)
        assert node_group.spec.replicas == 8

    def test_write_desired_after_concurrent_modification(self, adapter, model_get, model_save):
        model_get.return_value = _node_group(resource_version="43")

        with pytest.raises(Conflict):
            adapter.write_desired(NAME, NAMESPACE, 8, "42")

        model_save.assert_not_called()

    def test_write_desired_rejected_by_api_server(self, adapter, model_get, model_save):
        model_get.return_value = _node_group()
        response = mock.MagicMock(spec=Response)
        response.status_code = 409  # Conflict
        response.request = mock.MagicMock(spec=Request, method="PUT", url="http://example.com")
        response.json.return_value = {"reason": "Conflict", "message": "the object has been modified"}
        model_save.side_effect = ClientError("Conflict", response=response)

        with pytest.raises(Conflict) as excinfo:
            adapter.write_desired(NAME, NAMESPACE, 8, "42")
        assert "the object has been modified" in excinfo.value.message

    def test_write_missing_target(self, adapter, model_get):
        model_get.side_effect = NotFound()

        with pytest.raises(TargetNotFound):
            adapter.write_desired(NAME, NAMESPACE, 8, "42")


class TestDeploymentAdapter(object):
    @pytest.fixture
    def adapter(self):
        return DeploymentAdapter()

    @pytest.fixture
    def model_get(self):
        with mock.patch.object(Deployment, "get") as m:
            yield m

    @pytest.mark.parametrize("status,expected", (
        ({"observedGeneration": 1, "replicas": 2}, 2),
        ({"observedGeneration": 3}, 0),
    ))
    def test_read_observed(self, adapter, model_get, status, expected):
        model_get.return_value = _deployment(replicas=2, status=status)

        assert adapter.read_observed(NAME, NAMESPACE).observed_replicas == expected

    def test_read_deployment_not_yet_seen_by_controller(self, adapter, model_get):
        model_get.return_value = _deployment(status=None)

        with pytest.raises(TargetNotReady):
            adapter.read_observed(NAME, NAMESPACE)


class TestScaleTargetAdapters(object):
    @pytest.fixture
    def scale_targets(self):
        return TargetBindings().provide_scale_targets()

    def test_kinds(self, scale_targets):
        assert scale_targets.kinds() == ["Deployment", "ScalableNodeGroup"]

    @pytest.mark.parametrize("kind,cls", (
        ("Deployment", DeploymentAdapter),
        ("ScalableNodeGroup", ScalableNodeGroupAdapter),
    ))
    def test_for_kind(self, scale_targets, kind, cls):
        assert isinstance(scale_targets.for_kind(kind), cls)

    def test_unsupported_kind(self, scale_targets):
        with pytest.raises(InvalidTarget) as excinfo:
            scale_targets.for_kind("StatefulSet")
        assert "StatefulSet" in excinfo.value.message
