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


import pinject

from .adapter import ScaleTargetAdapters
from .deployment import DeploymentAdapter
from .node_group import ScalableNodeGroupAdapter


class TargetBindings(pinject.BindingSpec):
    def provide_scale_targets(self):
        return ScaleTargetAdapters([ScalableNodeGroupAdapter(), DeploymentAdapter()])
