#!/usr/bin/env python
# -*- coding: utf-8

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


from k8s.base import Model
from k8s.fields import Field, ListField, RequiredField
from k8s.models.common import ObjectMeta

API_GROUP = "autoscaling.karpenter.sh"
API_VERSION = "{}/v1alpha1".format(API_GROUP)

METRIC_KIND_UTILIZATION = "Utilization"
METRIC_KIND_VALUE = "Value"
METRIC_KINDS = (METRIC_KIND_UTILIZATION, METRIC_KIND_VALUE)


class ScaleTargetReference(Model):
    apiVersion = Field(str)  # NOQA
    kind = RequiredField(str)
    name = RequiredField(str)
    namespace = Field(str)


class MetricSpec(Model):
    kind = RequiredField(str)
    query = RequiredField(str)
    targetValue = RequiredField(float)  # NOQA


class HorizontalAutoscalerSpec(Model):
    scaleTargetRef = RequiredField(ScaleTargetReference)  # NOQA
    metric = RequiredField(MetricSpec)
    minReplicas = Field(int)  # NOQA
    maxReplicas = Field(int)  # NOQA


class Condition(Model):
    type = RequiredField(str)
    status = RequiredField(str)
    reason = Field(str)
    message = Field(str)
    lastTransitionTime = Field(str)  # NOQA


class HorizontalAutoscalerStatus(Model):
    observedGeneration = Field(int)  # NOQA
    currentReplicas = Field(int)  # NOQA
    desiredReplicas = Field(int)  # NOQA
    currentMetricValue = Field(float)  # NOQA
    lastScaleTime = Field(str)  # NOQA
    conditions = ListField(Condition)


class HorizontalAutoscaler(Model):
    class Meta:
        list_url = "/apis/{}/horizontalautoscalers".format(API_VERSION)
        url_template = "/apis/{}/namespaces/{{namespace}}/horizontalautoscalers/{{name}}".format(API_VERSION)
        watch_list_url = "/apis/{}/watch/horizontalautoscalers".format(API_VERSION)
        watch_list_url_template = "/apis/{}/watch/namespaces/{{namespace}}/horizontalautoscalers".format(API_VERSION)

    # Workaround for https://github.com/kubernetes/kubernetes/issues/44182
    apiVersion = Field(str, API_VERSION)  # NOQA
    kind = Field(str, "HorizontalAutoscaler")

    metadata = Field(ObjectMeta)
    spec = Field(HorizontalAutoscalerSpec)
    status = Field(HorizontalAutoscalerStatus)


class ScalableNodeGroupSpec(Model):
    replicas = Field(int)
    type = Field(str)
    id = Field(str)


class ScalableNodeGroupStatus(Model):
    replicas = Field(int)


class ScalableNodeGroup(Model):
    class Meta:
        list_url = "/apis/{}/scalablenodegroups".format(API_VERSION)
        url_template = "/apis/{}/namespaces/{{namespace}}/scalablenodegroups/{{name}}".format(API_VERSION)
        watch_list_url = "/apis/{}/watch/scalablenodegroups".format(API_VERSION)
        watch_list_url_template = "/apis/{}/watch/namespaces/{{namespace}}/scalablenodegroups".format(API_VERSION)

    # Workaround for https://github.com/kubernetes/kubernetes/issues/44182
    apiVersion = Field(str, API_VERSION)  # NOQA
    kind = Field(str, "ScalableNodeGroup")

    metadata = Field(ObjectMeta)
    spec = Field(ScalableNodeGroupSpec)
    status = Field(ScalableNodeGroupStatus)
