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


from collections import namedtuple

import pinject

MetricReading = namedtuple("MetricReading", ("value", "timestamp"))

MULTIPLE_SAMPLES_REJECT = "reject"
MULTIPLE_SAMPLES_FIRST = "first"
MULTIPLE_SAMPLES_AVERAGE = "average"
MULTIPLE_SAMPLES_POLICIES = (MULTIPLE_SAMPLES_REJECT, MULTIPLE_SAMPLES_FIRST, MULTIPLE_SAMPLES_AVERAGE)


class MetricsBindings(pinject.BindingSpec):
    def configure(self, bind, require):
        from .prometheus import PrometheusClient

        require("config")
        require("session")
        bind("metric_client", to_class=PrometheusClient)
