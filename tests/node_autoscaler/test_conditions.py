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
import itertools

import pytest

from node_autoscaler.conditions import ConditionManager, find_condition, CONDITION_READY, REASON_SCALING_COMPUTED
from node_autoscaler.errors import MetricEmpty, TargetNotFound
from node_autoscaler.types import Condition, HorizontalAutoscalerStatus


class TestConditionManager(object):
    @pytest.fixture
    def clock(self):
        counter = itertools.count(1)
        return lambda: "2020-03-25T12:00:{:02d}+00:00".format(next(counter))

    @pytest.fixture
    def manager(self, clock):
        return ConditionManager(clock=clock)

    @pytest.fixture
    def status(self):
        return HorizontalAutoscalerStatus()

    def test_success_sets_ready_true(self, manager, status):
        manager.record_outcome(status, desired_replicas=8)

        condition = find_condition(status)
        assert condition.type == CONDITION_READY
        assert condition.status == "True"
        assert condition.reason == REASON_SCALING_COMPUTED
        assert "8" in condition.message
        assert condition.lastTransitionTime == "2020-03-25T12:00:01+00:00"

    def test_failure_sets_ready_false_with_reason(self, manager, status):
        manager.record_outcome(status, error=MetricEmpty("no series"))

        condition = find_condition(status)
        assert condition.status == "False"
        assert condition.reason == "MetricEmpty"
        assert condition.message == "no series"

    def test_same_status_keeps_transition_time(self, manager, status):
        manager.record_outcome(status, error=MetricEmpty("no series"))
        manager.record_outcome(status, error=TargetNotFound("gone"))

        assert len(status.conditions) == 1
        condition = find_condition(status)
        assert condition.reason == "TargetNotFound"
        assert condition.message == "gone"
        assert condition.lastTransitionTime == "2020-03-25T12:00:01+00:00"

    def test_repeated_success_is_idempotent(self, manager, status):
        manager.record_outcome(status, desired_replicas=8)
        before = status.as_dict()

        manager.record_outcome(status, desired_replicas=8)

        assert status.as_dict() == before

    def test_changed_status_updates_transition_time(self, manager, status):
        manager.record_outcome(status, error=MetricEmpty("no series"))
        manager.record_outcome(status, desired_replicas=3)

        assert len(status.conditions) == 1
        condition = find_condition(status)
        assert condition.status == "True"
        assert condition.lastTransitionTime == "2020-03-25T12:00:02+00:00"

    def test_other_conditions_are_kept(self, manager, status):
        status.conditions = [Condition(type="Active", status="True")]

        manager.record_outcome(status, desired_replicas=1)

        assert [c.type for c in status.conditions] == ["Active", CONDITION_READY]


def test_find_condition_without_conditions():
    assert find_condition(HorizontalAutoscalerStatus()) is None
