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
"""One reconciliation cycle of a HorizontalAutoscaler

read scale target -> fetch metric -> evaluate policy -> write scale target -> update status

The host guarantees that a key is never reconciled by two workers at once, so nothing here is shared
between cycles except the collaborators, which are all safe to use from several threads.
"""

import logging
from collections import namedtuple

from k8s.client import NotFound

from .conditions import now, REASON_SCALING_COMPUTED
from .errors import AutoscalerError, Conflict, ConfigurationFault, InvalidTarget, Superseded
from .lifecycle import state_of, STATE_DEGRADED, STATE_HAPPY
from .log_extras import set_extras
from .policy import apply_bounds, evaluate
from .retry import canonical_name, count_failure, count_retry, retry_on_upsert_conflict, CONFLICT_MAX_RETRIES
from .types import HorizontalAutoscaler

LOG = logging.getLogger(__name__)

Result = namedtuple("Result", ("requeue_after", "backoff"))
Observation = namedtuple("Observation", ("observed_replicas", "desired_replicas", "metric_value", "scaled"))


class AutoscalerReconciler(object):
    def __init__(self, metric_client, scale_targets, condition_manager, lifecycle, bookkeeper, config):
        self._metric_client = metric_client
        self._scale_targets = scale_targets
        self._conditions = condition_manager
        self._lifecycle = lifecycle
        self._bookkeeper = bookkeeper
        self._resync_interval = config.resync_interval

    def reconcile(self, key):
        """Run one cycle for the HorizontalAutoscaler identified by key (namespace, name)

        Returns a Result telling when to run the next cycle, or None if the HorizontalAutoscaler is gone.
        """
        namespace, name = key
        set_extras(namespace=namespace, name=name)
        try:
            autoscaler = HorizontalAutoscaler.get(name, namespace)
        except NotFound:
            LOG.info("HorizontalAutoscaler %s/%s no longer exists, forgetting it", namespace, name)
            self._bookkeeper.forget(key)
            return None
        old_state = state_of(autoscaler.status)
        with self._bookkeeper.time():
            try:
                observation = self._cycle(autoscaler)
            except Superseded as e:
                LOG.info("Abandoning reconciliation of %s/%s: %s", namespace, name, e.message)
                return Result(0, False)
            except AutoscalerError as error:
                LOG.warning("Reconciliation of %s/%s failed with %s: %s", namespace, name, error.reason,
                            error.message)
                self._bookkeeper.failed(error)
                self._update_status(autoscaler, error=error)
                self._lifecycle.change(key, old_state, STATE_DEGRADED, error.reason)
                # Configuration faults wait for the next resync
                return Result(self._resync_interval, not isinstance(error, ConfigurationFault))
        self._update_status(autoscaler, observation=observation)
        self._bookkeeper.success(key, observation.desired_replicas)
        self._lifecycle.change(key, old_state, STATE_HAPPY, REASON_SCALING_COMPUTED)
        return Result(self._resync_interval, False)

    def _cycle(self, autoscaler):
        spec = autoscaler.spec
        ref = spec.scaleTargetRef
        adapter = self._scale_targets.for_kind(ref.kind)
        target_namespace = ref.namespace or autoscaler.metadata.namespace
        scale = adapter.read_observed(ref.name, target_namespace)
        reading = self._metric_client.fetch(spec.metric.query)
        LOG.debug("%s %s/%s has %d replicas, metric value is %s (target %s)", ref.kind, target_namespace, ref.name,
                  scale.observed_replicas, reading.value, spec.metric.targetValue)
        tries = 0
        while True:
            tries += 1
            desired = self._desired_replicas(spec, scale, reading)
            if desired == scale.desired_replicas:
                LOG.debug("%s %s/%s already wants %d replicas", ref.kind, target_namespace, ref.name, desired)
                return Observation(scale.observed_replicas, desired, reading.value, False)
            self._revalidate(autoscaler)
            try:
                adapter.write_desired(ref.name, target_namespace, desired, scale.resource_version)
                return Observation(scale.observed_replicas, desired, reading.value, True)
            except Conflict:
                target = canonical_name(adapter.write_desired)
                if tries >= CONFLICT_MAX_RETRIES:
                    count_failure(target)
                    raise
                count_retry(target)
                LOG.info("%s %s/%s was modified concurrently, reading it again", ref.kind, target_namespace,
                         ref.name)
                scale = adapter.read_observed(ref.name, target_namespace)

    @staticmethod
    def _desired_replicas(spec, scale, reading):
        min_replicas, max_replicas = spec.minReplicas, spec.maxReplicas
        if min_replicas is not None and min_replicas < 0:
            raise InvalidTarget("minReplicas can not be negative, got {}".format(min_replicas))
        if min_replicas is not None and max_replicas is not None and min_replicas > max_replicas:
            raise InvalidTarget("minReplicas ({}) can not be larger than maxReplicas ({})".format(
                min_replicas, max_replicas))
        desired = evaluate(scale.observed_replicas, reading.value, spec.metric.targetValue, spec.metric.kind)
        return apply_bounds(desired, min_replicas, max_replicas)

    @staticmethod
    def _revalidate(autoscaler):
        """Make sure the HorizontalAutoscaler still is what we based our decision on, right before writing"""
        namespace, name = autoscaler.metadata.namespace, autoscaler.metadata.name
        try:
            current = HorizontalAutoscaler.get(name, namespace)
        except NotFound:
            raise Superseded("HorizontalAutoscaler {}/{} was deleted".format(namespace, name))
        if current.metadata.uid != autoscaler.metadata.uid:
            raise Superseded("HorizontalAutoscaler {}/{} was replaced".format(namespace, name))
        if current.metadata.generation != autoscaler.metadata.generation:
            raise Superseded("HorizontalAutoscaler {}/{} was changed (generation {} is now {})".format(
                namespace, name, autoscaler.metadata.generation, current.metadata.generation))

    @retry_on_upsert_conflict
    def _update_status(self, autoscaler, observation=None, error=None):
        namespace, name = autoscaler.metadata.namespace, autoscaler.metadata.name
        try:
            current = HorizontalAutoscaler.get(name, namespace)
        except NotFound:
            LOG.info("HorizontalAutoscaler %s/%s was deleted before status could be saved", namespace, name)
            return
        if current.metadata.uid != autoscaler.metadata.uid:
            return
        status = current.status
        before = status.as_dict()
        status.observedGeneration = current.metadata.generation
        desired_replicas = status.desiredReplicas
        if observation is not None:
            status.currentReplicas = observation.observed_replicas
            status.desiredReplicas = desired_replicas = observation.desired_replicas
            status.currentMetricValue = observation.metric_value
            if observation.scaled:
                status.lastScaleTime = now()
        self._conditions.record_outcome(status, error=error, desired_replicas=desired_replicas)
        if status.as_dict() == before:
            LOG.debug("Status of %s/%s is unchanged", namespace, name)
            return
        current.status = status
        current.save_status()
