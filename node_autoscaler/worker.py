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

from .base_thread import DaemonThread
from .log_extras import clear_extras

LOG = logging.getLogger(__name__)


class Worker(DaemonThread):
    """Take keys from the work queue, reconcile them, and put them back for the next cycle"""

    def __init__(self, work_queue, reconciler, rate_limiter, index=0):
        super(Worker, self).__init__(name="Worker-{}".format(index))
        self._queue = work_queue
        self._reconciler = reconciler
        self._rate_limiter = rate_limiter

    def __call__(self):
        while True:
            self.process_next()

    def process_next(self, block=True):
        key = self._queue.get(block=block)
        try:
            result = self._reconciler.reconcile(key)
        except Exception:
            LOG.exception("Unexpected error while reconciling %s/%s", *key)
            delay = self._rate_limiter.when(key)
        else:
            delay = self._requeue_delay(key, result)
        finally:
            self._queue.done(key)
            clear_extras()
        if delay is not None:
            LOG.debug("Next reconciliation of %s/%s in %.1f seconds", key[0], key[1], delay)
            self._queue.add_after(key, delay)
        return key

    def _requeue_delay(self, key, result):
        if result is None:
            self._rate_limiter.forget(key)
            return None
        if result.backoff:
            return min(self._rate_limiter.when(key), result.requeue_after)
        self._rate_limiter.forget(key)
        return result.requeue_after
