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
from blinker import signal
from prometheus_client import Counter, Gauge, Histogram

from .lifecycle import STATE_CHANGED


class Bookkeeper(object):
    """Measures time, fails and successes of reconciliation cycles"""

    cycle_histogram = Histogram("autoscaler_time_to_reconcile", "Time spent on each reconciliation cycle")
    error_counter = Counter("autoscaler_errors", "Reconciliation cycle failed", ["reason"])
    success_counter = Counter("autoscaler_success", "Reconciliation cycle successful")
    desired_replicas_gauge = Gauge("autoscaler_desired_replicas", "Last computed desired replicas",
                                   ["namespace", "name"])
    transition_counter = Counter("autoscaler_state_transitions", "State transitions of HorizontalAutoscalers",
                                 ["state"])

    def time(self):
        return self.cycle_histogram.time()

    def failed(self, error):
        self.error_counter.labels(error.reason).inc()

    def success(self, key, desired_replicas):
        namespace, name = key
        self.success_counter.inc()
        self.desired_replicas_gauge.labels(namespace, name).set(desired_replicas)

    def forget(self, key):
        namespace, name = key
        try:
            self.desired_replicas_gauge.remove(namespace, name)
        except KeyError:
            pass


def connect_signals():
    signal(STATE_CHANGED).connect(_handle_signal)


def _handle_signal(sender, key, old_state, new_state, reason):
    Bookkeeper.transition_counter.labels(new_state).inc()
