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
import threading

_LOG_EXTRAS = threading.local()
_EXTRA_KEYS = ("namespace", "name")


class ExtraFilter(logging.Filter):
    """Attach the HorizontalAutoscaler currently being reconciled by this thread to every record"""

    def filter(self, record):
        extras = {}
        for key in _EXTRA_KEYS:
            extras[key] = getattr(_LOG_EXTRAS, key, "")
        record.extras = extras
        return 1


class PlainFormatter(logging.Formatter):
    def __init__(self):
        super(PlainFormatter, self).__init__(
            "[%(asctime)s|%(levelname)7s] %(message)s [%(name)s|%(threadName)s|%(extras_namespace)s/%(extras_name)s]")

    def format(self, record):
        record = self._flatten_extras(record)
        return super(PlainFormatter, self).format(record)

    @staticmethod
    def _flatten_extras(record):
        extras = getattr(record, "extras", {})
        for key in _EXTRA_KEYS:
            setattr(record, "extras_{}".format(key), extras.get(key, ""))
        return record


def set_extras(autoscaler=None, namespace=None, name=None):
    if autoscaler:
        namespace = autoscaler.metadata.namespace
        name = autoscaler.metadata.name
    if any(x is None for x in (namespace, name)):
        raise TypeError("Either autoscaler, or both of (namespace, name) must be specified")
    _LOG_EXTRAS.namespace = namespace
    _LOG_EXTRAS.name = name


def clear_extras():
    for key in _EXTRA_KEYS:
        if hasattr(_LOG_EXTRAS, key):
            delattr(_LOG_EXTRAS, key)
