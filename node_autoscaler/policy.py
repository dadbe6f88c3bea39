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
"""Ratio based scaling policy

desired = ceil(current_replicas * current_value / target_value)

The formula is scale invariant, so utilization ratios (0.85 vs 0.60) and absolute values (41 vs 4)
are treated the same way. The metric kind is only a hint to the operator about how the numbers are
expressed.
"""
import math
from fractions import Fraction

from .errors import InvalidMetric, InvalidTarget
from .types import METRIC_KINDS


def evaluate(current_replicas, current_value, target_value, kind=None):
    """Calculate the number of replicas needed to bring current_value down (or up) to target_value"""
    if kind is not None and kind not in METRIC_KINDS:
        raise InvalidMetric("unsupported metric kind {!r}, must be one of {}".format(kind, ", ".join(METRIC_KINDS)))
    if target_value is None or not _is_finite(target_value) or target_value <= 0:
        raise InvalidTarget("target value must be a positive number, got {!r}".format(target_value))
    if current_value is None or not _is_finite(current_value) or current_value < 0:
        raise InvalidMetric("metric value must be a non-negative number, got {!r}".format(current_value))
    if current_replicas < 0:
        raise ValueError("current replicas can not be negative, got {!r}".format(current_replicas))
    if current_replicas == 0:
        return 0
    ratio = _exact(current_value) / _exact(target_value)
    return int(math.ceil(current_replicas * ratio))


def apply_bounds(desired_replicas, min_replicas=None, max_replicas=None):
    if min_replicas is not None:
        desired_replicas = max(desired_replicas, min_replicas)
    if max_replicas is not None:
        desired_replicas = min(desired_replicas, max_replicas)
    return desired_replicas


def _exact(value):
    # Use the shortest decimal representation, so 3 * 0.2 / 0.6 is exactly 1 and not 1.0000000000000002
    return Fraction(repr(float(value)))


def _is_finite(value):
    try:
        return math.isfinite(value)
    except TypeError:
        return False
