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
import functools

import backoff
from k8s.client import ClientError
from prometheus_client import Counter

from .errors import Conflict

CONFLICT_MAX_RETRIES = 2
CONFLICT_MAX_VALUE = 3

autoscaler_conflict_retry_counter = Counter(
    "autoscaler_conflict_retry",
    "Number of retries made due to 409 Conflict when updating a Kubernetes resource",
    ["target"]
)
autoscaler_conflict_failure_counter = Counter(
    "autoscaler_conflict_failure",
    "Number of times max retries were exceeded due to 409 Conflict when updating a Kubernetes resource",
    ["target"]
)


def conflict_from(error):
    response = error.response
    try:
        status_json = response.json()
        # `reason=Conflict` means the resourceVersion we tried to PUT was lower than the resourceVersion
        # of the resource on the server.
        reason = status_json["reason"]
        message = status_json["message"]
    except (ValueError, KeyError, TypeError):
        reason = "Conflict"
        message = str(error)
    return Conflict("{status_code} Conflict for {method} {url}. reason={reason}, message={message}".format(
        status_code=response.status_code,
        method=response.request.method,
        url=response.request.url,
        reason=reason,
        message=message,
    ))


def is_conflict(error):
    return error.response is not None and error.response.status_code == 409


def translate_conflicts(func):
    """Raise Conflict instead of ClientError when the API server responds with 409"""
    @functools.wraps(func)
    def _wrap(*args, **kwargs):
        try:
            return func(*args, **kwargs)
        except ClientError as e:
            if is_conflict(e):
                raise conflict_from(e) from e
            raise
    return _wrap


def count_retry(target):
    autoscaler_conflict_retry_counter.labels(target=target).inc()


def count_failure(target):
    autoscaler_conflict_failure_counter.labels(target=target).inc()


def canonical_name(func):
    return "{}.{}".format(func.__module__, func.__qualname__)


def retry_on_upsert_conflict(_func=None, max_value_seconds=CONFLICT_MAX_VALUE, max_tries=CONFLICT_MAX_RETRIES):
    def _retry_decorator(func):
        target = canonical_name(func)

        retrying = backoff.on_exception(backoff.expo, Conflict,
                                        max_value=max_value_seconds,
                                        max_tries=max_tries,
                                        on_backoff=lambda details: count_retry(target),
                                        on_giveup=lambda details: count_failure(target))
        return retrying(translate_conflicts(func))

    if _func is None:
        return _retry_decorator
    else:
        return _retry_decorator(_func)
