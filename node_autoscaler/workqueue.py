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
"""Keys of HorizontalAutoscalers waiting to be reconciled

A key is queued at most once, and is handed to at most one worker at a time. A key added while it is
being processed is queued again when the worker is done with it.
"""
import heapq
import itertools
import threading
from collections import deque
from queue import Empty
from time import monotonic as time_monotonic
from typing import Callable

import backoff

MAX_WAIT = 1.0


class WorkQueue(object):
    def __init__(self, time_func=time_monotonic):
        self._time_func: Callable[[], float] = time_func
        self._lock = threading.Condition()
        self._ready = deque()
        self._dirty = set()
        self._processing = set()
        self._deadlines = {}
        self._waiting = []
        self._counter = itertools.count()

    def add(self, key):
        with self._lock:
            self._deadlines.pop(key, None)
            self._add(key)

    def add_after(self, key, delay):
        """Add key after delay seconds. If key is already waiting, the earliest deadline wins."""
        if delay <= 0:
            return self.add(key)
        with self._lock:
            execute_at = self._time_func() + delay
            current = self._deadlines.get(key)
            if current is not None and current <= execute_at:
                return
            self._deadlines[key] = execute_at
            heapq.heappush(self._waiting, (execute_at, next(self._counter), key))
            self._lock.notify()

    def forget(self, key):
        with self._lock:
            self._deadlines.pop(key, None)
            self._dirty.discard(key)
            try:
                self._ready.remove(key)
            except ValueError:
                pass

    def get(self, block=True):
        with self._lock:
            while True:
                self._promote_due()
                if self._ready:
                    key = self._ready.popleft()
                    self._dirty.discard(key)
                    self._deadlines.pop(key, None)
                    self._processing.add(key)
                    return key
                if not block:
                    raise Empty()
                self._lock.wait(self._next_wait())

    def done(self, key):
        with self._lock:
            self._processing.discard(key)
            if key in self._dirty:
                self._ready.append(key)
                self._lock.notify()

    def __len__(self):
        with self._lock:
            return len(self._ready) + len(self._deadlines)

    def _add(self, key):
        if key in self._dirty:
            return
        self._dirty.add(key)
        if key not in self._processing:
            self._ready.append(key)
            self._lock.notify()

    def _promote_due(self):
        now = self._time_func()
        while self._waiting and self._waiting[0][0] <= now:
            execute_at, _, key = heapq.heappop(self._waiting)
            if self._deadlines.get(key) != execute_at:
                continue  # superseded by an earlier deadline, or already handled
            del self._deadlines[key]
            self._add(key)

    def _next_wait(self):
        if not self._waiting:
            return MAX_WAIT
        return min(MAX_WAIT, max(0.0, self._waiting[0][0] - self._time_func()))


class RateLimiter(object):
    """Exponential backoff per key, from base seconds up to max_value seconds"""

    def __init__(self, base, max_value):
        self._base = base
        self._max_value = max_value
        self._waits = {}
        self._lock = threading.Lock()

    def when(self, key):
        with self._lock:
            wait = self._waits.get(key)
            if wait is None:
                wait = backoff.expo(factor=self._base, max_value=self._max_value)
                # backoff's wait generators need to be primed before use
                wait.send(None)
                self._waits[key] = wait
            return next(wait)

    def forget(self, key):
        with self._lock:
            self._waits.pop(key, None)
