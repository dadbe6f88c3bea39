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
"""Query a Prometheus compatible backend for the current value of a signal

One request per call. Retrying is left to the reconciliation loop.
"""

import logging
import math
import time

import requests
from prometheus_client import Histogram

from . import MetricReading, MULTIPLE_SAMPLES_AVERAGE, MULTIPLE_SAMPLES_FIRST
from ..errors import MetricAmbiguous, MetricEmpty, MetricUnavailable

LOG = logging.getLogger(__name__)

QUERY_PATH = "/api/v1/query"

query_histogram = Histogram("autoscaler_metric_query_latency", "Metric query latency in seconds")


class PrometheusClient(object):
    def __init__(self, session, config, clock=time.time):
        self._session = session
        self._url = config.metrics_server.rstrip("/") + QUERY_PATH
        self._timeout = config.metrics_timeout
        self._multiple_samples = config.multiple_samples
        self._clock = clock

    @query_histogram.time()
    def fetch(self, query):
        LOG.debug("Querying %s for %r", self._url, query)
        try:
            resp = self._session.post(self._url, data={"query": query, "time": self._clock()}, timeout=self._timeout)
            resp.raise_for_status()
            envelope = resp.json()
        except requests.exceptions.RequestException as e:
            raise MetricUnavailable("Unable to query {}: {}".format(self._url, e)) from e
        except ValueError as e:
            raise MetricUnavailable("Response from {} was not valid JSON: {}".format(self._url, e)) from e
        return self._parse(query, envelope)

    def _parse(self, query, envelope):
        if not isinstance(envelope, dict):
            raise MetricUnavailable("Malformed response for query {!r}: {!r}".format(query, envelope))
        if envelope.get("status") != "success":
            raise MetricUnavailable("Query {!r} failed with status {!r}: [{}] {}".format(
                query, envelope.get("status"), envelope.get("errorType", "unknown"), envelope.get("error", "")))
        data = envelope.get("data")
        if not isinstance(data, dict) or data.get("resultType") != "vector" or not isinstance(data.get("result"), list):
            raise MetricUnavailable("Malformed response for query {!r}, expected a vector result: {!r}".format(
                query, data))
        samples = [_sample(query, result) for result in data["result"]]
        if not samples:
            raise MetricEmpty("Query {!r} matched no series".format(query))
        if len(samples) == 1:
            return samples[0]
        if self._multiple_samples == MULTIPLE_SAMPLES_FIRST:
            return samples[0]
        if self._multiple_samples == MULTIPLE_SAMPLES_AVERAGE:
            return MetricReading(sum(s.value for s in samples) / len(samples), max(s.timestamp for s in samples))
        raise MetricAmbiguous("Query {!r} matched {} series, expected exactly one".format(query, len(samples)))


def _sample(query, result):
    try:
        timestamp, value = result["value"]
        reading = MetricReading(float(value), float(timestamp))
    except (KeyError, TypeError, ValueError) as e:
        raise MetricUnavailable("Malformed sample for query {!r}: {!r}".format(query, result)) from e
    # Prometheus reports NaN and Inf for e.g. a division by zero in the query
    if not math.isfinite(reading.value):
        raise MetricUnavailable("Query {!r} returned {}".format(query, reading.value))
    return reading
