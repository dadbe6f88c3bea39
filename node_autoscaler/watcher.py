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
import time

from k8s.base import WatchEvent
from k8s.watcher import Watcher

from .base_thread import DaemonThread
from .types import HorizontalAutoscaler

LOG = logging.getLogger(__name__)

WATCH_ERROR_DELAY = 5


class AutoscalerWatcher(DaemonThread):
    def __init__(self, work_queue, config, delay_func=time.sleep):
        super(AutoscalerWatcher, self).__init__()
        self._queue = work_queue
        self._watcher = Watcher(HorizontalAutoscaler)
        self._delay_func = delay_func
        self.namespace = None if config.watch_all_namespaces else config.namespace

    def __call__(self):
        while True:
            self._watch(namespace=self.namespace)

    def _watch(self, namespace):
        try:
            for event in self._watcher.watch(namespace=namespace):
                self._handle_watch_event(event)
        except Exception:
            LOG.exception("Error while watching for changes on HorizontalAutoscalers")
            self._delay_func(WATCH_ERROR_DELAY)

    def _handle_watch_event(self, event):
        autoscaler = event.object
        key = (autoscaler.metadata.namespace, autoscaler.metadata.name)
        if event.type == WatchEvent.ADDED:
            LOG.debug("Queueing new HorizontalAutoscaler %s/%s", *key)
            self._queue.add(key)
        elif event.type == WatchEvent.MODIFIED:
            if self._skip_status_event(autoscaler):
                return
            LOG.debug("Queueing modified HorizontalAutoscaler %s/%s", *key)
            self._queue.add(key)
        elif event.type == WatchEvent.DELETED:
            LOG.info("HorizontalAutoscaler %s/%s was deleted", *key)
            self._queue.forget(key)
        else:
            raise ValueError("Unknown WatchEvent type {}".format(event.type))

    # Our own status updates also arrive as MODIFIED events.
    # Only spec changes bump the generation.
    @staticmethod
    def _skip_status_event(autoscaler):
        generation = autoscaler.metadata.generation
        observed_generation = autoscaler.status.observedGeneration
        if generation is not None and observed_generation == generation:
            LOG.debug("Event for %s/%s created from status update", autoscaler.metadata.namespace,
                      autoscaler.metadata.name)
            return True
        return False
