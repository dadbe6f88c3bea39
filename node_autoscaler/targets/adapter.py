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
"""Read and write replica counts of the resources a HorizontalAutoscaler can scale

Every supported kind has its own adapter. The autoscaler only ever writes spec.replicas, and only
ever trusts status.replicas (written by the controller owning the resource) as the current size.
"""

import logging
from collections import namedtuple

from k8s.client import ClientError, NotFound
from requests.exceptions import RequestException

from ..errors import Conflict, InvalidTarget, TargetNotFound, TargetNotReady, TargetUnavailable
from ..retry import is_conflict, translate_conflicts

LOG = logging.getLogger(__name__)

Scale = namedtuple("Scale", ("observed_replicas", "desired_replicas", "resource_version"))


class ScalableResourceAdapter(object):
    kind = None
    model = None

    def read_observed(self, name, namespace):
        resource = self._get(name, namespace)
        observed = self._observed_replicas(resource)
        if observed is None:
            raise TargetNotReady("{} {}/{} has not reported any replicas yet".format(self.kind, namespace, name))
        return Scale(observed, resource.spec.replicas, resource.metadata.resourceVersion)

    @translate_conflicts
    def write_desired(self, name, namespace, desired_replicas, resource_version):
        """Set spec.replicas, but only if nobody has modified the resource since we read resource_version"""
        resource = self._get(name, namespace)
        if resource.metadata.resourceVersion != resource_version:
            raise Conflict("{} {}/{} was modified, resourceVersion {} is now {}".format(
                self.kind, namespace, name, resource_version, resource.metadata.resourceVersion))
        LOG.info("Scaling %s %s/%s from %s to %d replicas", self.kind, namespace, name, resource.spec.replicas,
                 desired_replicas)
        resource.spec.replicas = desired_replicas
        self._save(resource)

    def _get(self, name, namespace):
        try:
            return self.model.get(name, namespace)
        except NotFound as e:
            raise TargetNotFound("{} {}/{} does not exist".format(self.kind, namespace, name)) from e
        except RequestException as e:
            raise TargetUnavailable("Unable to read {} {}/{}: {}".format(self.kind, namespace, name, e)) from e

    def _save(self, resource):
        namespace, name = resource.metadata.namespace, resource.metadata.name
        try:
            resource.save()
        except NotFound as e:
            raise TargetNotFound("{} {}/{} was deleted".format(self.kind, namespace, name)) from e
        except ClientError as e:
            if is_conflict(e):
                raise
            raise TargetUnavailable("Unable to save {} {}/{}: {}".format(self.kind, namespace, name, e)) from e
        except RequestException as e:
            raise TargetUnavailable("Unable to save {} {}/{}: {}".format(self.kind, namespace, name, e)) from e

    def _observed_replicas(self, resource):
        return resource.status.replicas


class ScaleTargetAdapters(object):
    def __init__(self, adapters):
        self._adapters = {adapter.kind: adapter for adapter in adapters}

    def for_kind(self, kind):
        try:
            return self._adapters[kind]
        except KeyError:
            raise InvalidTarget("Unsupported scaleTargetRef kind {!r}, must be one of {}".format(
                kind, ", ".join(sorted(self._adapters))))

    def kinds(self):
        return sorted(self._adapters)
