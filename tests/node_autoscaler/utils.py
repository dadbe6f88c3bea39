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
from node_autoscaler.types import API_VERSION

AUTOSCALER_NAME = "reserved-capacity"
AUTOSCALER_NAMESPACE = "default"
AUTOSCALER_UID = "c1f34517-6f54-11ea-8eaf-0ad3d9992c8c"
NODE_GROUP_NAME = "microservices"
KEY = (AUTOSCALER_NAMESPACE, AUTOSCALER_NAME)

AUTOSCALER = {
    "apiVersion": API_VERSION,
    "kind": "HorizontalAutoscaler",
    "metadata": {
        "name": AUTOSCALER_NAME,
        "namespace": AUTOSCALER_NAMESPACE,
        "uid": AUTOSCALER_UID,
        "generation": 1,
        "resourceVersion": "1",
    },
    "spec": {
        "scaleTargetRef": {
            "apiVersion": API_VERSION,
            "kind": "ScalableNodeGroup",
            "name": NODE_GROUP_NAME,
        },
        "metric": {
            "kind": "Utilization",
            "query": "karpenter_reserved_capacity_cpu_utilization{name=\"microservices\"}",
            "targetValue": 0.6,
        },
    },
}


class FakeConfig(object):
    def __init__(self, **kwargs):
        self.resync_interval = 30.0
        self.backoff_base = 1.0
        self.backoff_max = 60.0
        self.metrics_server = "http://prometheus.example.com:9090/"
        self.metrics_timeout = 10.0
        self.multiple_samples = "reject"
        self.watch_all_namespaces = False
        self.namespace = AUTOSCALER_NAMESPACE
        self.workers = 2
        self.__dict__.update(kwargs)


def configure_mock_fail_then_success(mockk, fail=lambda: None, success=lambda: None, fail_times=1):
    """Make mockk run fail on the first fail_times calls, and success on the remaining calls"""
    calls = []

    def side_effect(*args, **kwargs):
        calls.append(1)
        if len(calls) <= fail_times:
            return fail(*args, **kwargs)
        return success(*args, **kwargs)

    mockk.side_effect = side_effect
