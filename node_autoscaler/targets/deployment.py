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

from k8s.models.deployment import Deployment

from .adapter import ScalableResourceAdapter


class DeploymentAdapter(ScalableResourceAdapter):
    kind = "Deployment"
    model = Deployment

    def _observed_replicas(self, resource):
        # status.replicas is left out when it is zero, so use observedGeneration to tell
        # whether the deployment controller has seen the resource at all
        if not resource.status.observedGeneration:
            return None
        return resource.status.replicas or 0
