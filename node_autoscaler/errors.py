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
"""Failure kinds of a reconciliation cycle

The class name of each error is used verbatim as the reason of the Ready condition,
so operators see e.g. `MetricEmpty` on the HorizontalAutoscaler.
"""


class AutoscalerError(Exception):
    def __init__(self, message):
        super(AutoscalerError, self).__init__(message)
        self.message = message

    @property
    def reason(self):
        return self.__class__.__name__


class ConfigurationFault(AutoscalerError):
    """Bad policy configuration. Retrying faster will not help."""


class InvalidTarget(ConfigurationFault):
    pass


class InvalidMetric(ConfigurationFault):
    pass


class MetricError(AutoscalerError):
    """The telemetry backend could not give us a usable reading"""


class MetricUnavailable(MetricError):
    pass


class MetricEmpty(MetricError):
    pass


class MetricAmbiguous(MetricError):
    pass


class TargetError(AutoscalerError):
    """Reading or writing the scale target failed"""


class TargetNotFound(TargetError):
    pass


class TargetNotReady(TargetError):
    pass


class TargetUnavailable(TargetError):
    """The API server could not be reached, or failed to handle the request"""


class Conflict(TargetError):
    pass


class Superseded(AutoscalerError):
    """The HorizontalAutoscaler was deleted or changed while a cycle was running"""
