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

import logging

from blinker import signal

from .conditions import find_condition, STATUS_TRUE, STATUS_FALSE

STATE_CHANGED = "autoscaler_state_changed"

STATE_PENDING = "Pending"
STATE_HAPPY = "Happy"
STATE_DEGRADED = "Degraded"

LOG = logging.getLogger(__name__)


def state_of(status):
    """Pending until the first cycle has completed, then Happy or Degraded according to the Ready condition"""
    condition = find_condition(status)
    if condition is None:
        return STATE_PENDING
    if condition.status == STATUS_TRUE:
        return STATE_HAPPY
    if condition.status == STATUS_FALSE:
        return STATE_DEGRADED
    return STATE_PENDING


class Lifecycle(object):
    state_change_signal = signal(STATE_CHANGED, "Signals a change in the state of a HorizontalAutoscaler")

    def change(self, key, old_state, new_state, reason):
        if old_state == new_state:
            return
        namespace, name = key
        LOG.info("HorizontalAutoscaler %s/%s went from %s to %s (%s)", namespace, name, old_state, new_state, reason)
        self.state_change_signal.send(key=key, old_state=old_state, new_state=new_state, reason=reason)
