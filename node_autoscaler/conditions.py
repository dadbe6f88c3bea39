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
from datetime import datetime

import pytz

from .types import Condition

CONDITION_READY = "Ready"
REASON_SCALING_COMPUTED = "ScalingComputed"

STATUS_TRUE = "True"
STATUS_FALSE = "False"
STATUS_UNKNOWN = "Unknown"

LOG = logging.getLogger(__name__)


def now():
    now = datetime.utcnow()
    now = pytz.utc.localize(now)
    return now.isoformat()


class ConditionManager(object):
    """Translate the outcome of a reconciliation cycle into the Ready condition"""

    def __init__(self, clock=now):
        self._clock = clock

    def record_outcome(self, status, error=None, desired_replicas=None):
        if error is None:
            condition = Condition(type=CONDITION_READY, status=STATUS_TRUE, reason=REASON_SCALING_COMPUTED,
                                  message="Desired replicas computed as {}".format(desired_replicas))
        else:
            condition = Condition(type=CONDITION_READY, status=STATUS_FALSE, reason=error.reason,
                                  message=error.message)
        return self.set_condition(status, condition)

    def set_condition(self, status, condition):
        """Replace the condition with the same type in status

        If the status of the condition is unchanged, only reason and message are updated, keeping
        lastTransitionTime.
        """
        conditions = list(status.conditions)
        for i, existing in enumerate(conditions):
            if existing.type != condition.type:
                continue
            if existing.status == condition.status:
                existing.reason = condition.reason
                existing.message = condition.message
                return existing
            condition.lastTransitionTime = self._clock()
            LOG.debug("Condition %s changed from %s to %s", condition.type, existing.status, condition.status)
            conditions[i] = condition
            status.conditions = conditions
            return condition
        condition.lastTransitionTime = self._clock()
        conditions.append(condition)
        status.conditions = conditions
        return condition


def find_condition(status, condition_type=CONDITION_READY):
    for condition in status.conditions:
        if condition.type == condition_type:
            return condition
    return None
