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

from .adapter import ScalableResourceAdapter
from ..types import ScalableNodeGroup


class ScalableNodeGroupAdapter(ScalableResourceAdapter):
    """The node group controller always writes status.replicas, also when the group is scaled to zero.

    A missing count therefore means the controller has not reported on the group yet.
    """

    kind = "ScalableNodeGroup"
    model = ScalableNodeGroup
