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
import os
from argparse import ArgumentTypeError, Namespace

import configargparse

from .metrics import MULTIPLE_SAMPLES_POLICIES, MULTIPLE_SAMPLES_REJECT

DEFAULT_CONFIG_FILE = "/var/run/config/node-autoscaler/config.yaml"

MULTIPLE_SAMPLES_HELP = """
What to do when a metric query matches more than one series.

Option `reject` (the default) fails the reconciliation with MetricAmbiguous, and the HorizontalAutoscaler
reports it in its Ready condition.

Option `first` uses the first sample returned by the metrics backend.

Option `average` uses the mean of all samples.
"""

BACKOFF_HELP = """
Failed reconciliations caused by the metrics backend or the scale target are retried with exponential
backoff per HorizontalAutoscaler, starting at --backoff-base seconds and doubling up to --backoff-max
seconds, but never later than the next resync. Invalid configuration is only retried at the resync interval.
"""

EPILOG = """
Args that start with '--' (eg. --log-format) can also be set in a config file
({} or specified via -c). The config file uses YAML syntax and must represent
a YAML 'mapping' (for details, see http://learn.getgrav.org/advanced/yaml).

If an arg is specified in more than one place, then commandline values
override config file values which override defaults.
""".format(
    DEFAULT_CONFIG_FILE
)


class Configuration(Namespace):
    VALID_LOG_FORMAT = ("plain", "json")

    def __init__(self, args=None, **kwargs):
        super(Configuration, self).__init__(**kwargs)
        self._logger = logging.getLogger(__name__)
        self._parse_args(args)
        self.namespace = self._resolve_namespace()

    def _parse_args(self, args):
        parser = configargparse.ArgParser(
            add_config_file_help=False,
            add_env_var_help=False,
            config_file_parser_class=configargparse.YAMLConfigFileParser,
            default_config_files=[DEFAULT_CONFIG_FILE],
            args_for_setting_config_path=["-c", "--config-file"],
            ignore_unknown_config_file_keys=True,
            description="%(prog)s scales node groups to track a metric",
            epilog=EPILOG,
            formatter_class=configargparse.ArgumentDefaultsHelpFormatter,
        )
        parser.add_argument(
            "--log-format", help="Set logformat (default: %(default)s)", choices=self.VALID_LOG_FORMAT, default="plain"
        )
        parser.add_argument("--proxy", help="Use http proxy for requests to the metrics backend")
        parser.add_argument(
            "--debug",
            help="Enable a number of debugging options (including disable SSL-verification)",
            action="store_true",
        )
        parser.add_argument(
            "--port", help="Port to use for the web-interface (default: %(default)s)", type=int, default=5000
        )
        parser.add_argument(
            "--watch-all-namespaces",
            help="Reconcile HorizontalAutoscalers in all namespaces, instead of only the namespace we run in",
            action="store_true",
        )
        parser.add_argument(
            "--workers", help="Number of HorizontalAutoscalers to reconcile concurrently (default: %(default)s)",
            type=_positive_int, default=4
        )
        parser.add_argument(
            "--resync-interval",
            help="Seconds between reconciliations of each HorizontalAutoscaler (default: %(default)s)",
            type=_positive_float, default=30.0,
        )
        backoff_parser = parser.add_argument_group("Backoff", BACKOFF_HELP)
        backoff_parser.add_argument(
            "--backoff-base", help="First retry delay in seconds (default: %(default)s)",
            type=_positive_float, default=1.0,
        )
        backoff_parser.add_argument(
            "--backoff-max", help="Maximum retry delay in seconds (default: %(default)s)",
            type=_positive_float, default=60.0,
        )
        metrics_parser = parser.add_argument_group("Metrics backend")
        metrics_parser.add_argument(
            "--metrics-server",
            help="Base URL of the Prometheus compatible metrics backend (default: %(default)s)",
            default="http://prometheus-operated:9090",
        )
        metrics_parser.add_argument(
            "--metrics-timeout", help="Timeout in seconds for metric queries (default: %(default)s)",
            type=_positive_float, default=10.0,
        )
        metrics_parser.add_argument(
            "--multiple-samples", help=MULTIPLE_SAMPLES_HELP, choices=MULTIPLE_SAMPLES_POLICIES,
            default=MULTIPLE_SAMPLES_REJECT,
        )
        api_parser = parser.add_argument_group("API server")
        api_parser.add_argument(
            "--api-server",
            help="Address of the api-server to use (IP or name)",
            default="https://kubernetes.default.svc.cluster.local",
        )
        api_parser.add_argument("--api-token", help="Token to use (default: lookup from service account)", default=None)
        api_parser.add_argument(
            "--api-cert", help="API server certificate (default: lookup from service account)", default=None
        )
        api_parser.add_argument(
            "--request-timeout", help="Timeout in seconds for requests to the api-server (default: %(default)s)",
            type=_positive_float, default=10.0,
        )
        client_cert_parser = parser.add_argument_group("Client certificate")
        client_cert_parser.add_argument("--client-cert", help="Client certificate to use", default=None)
        client_cert_parser.add_argument("--client-key", help="Client certificate key to use", default=None)

        parser.parse_args(args, namespace=self)
        if self.backoff_max < self.backoff_base:
            parser.error("--backoff-max can not be lower than --backoff-base")

    @staticmethod
    def _resolve_namespace():
        namespace_file_path = "/var/run/secrets/kubernetes.io/serviceaccount/namespace"
        namespace_env_variable = "NAMESPACE"
        try:
            with open(namespace_file_path, "r") as fobj:
                namespace = fobj.read().strip()
                if namespace:
                    return namespace
        except IOError:
            namespace = os.getenv(namespace_env_variable)
            if namespace:
                return namespace
        raise InvalidConfigurationException(
            "Could not determine namespace: could not read {path}, and ${env_var} was not set".format(
                path=namespace_file_path, env_var=namespace_env_variable
            )
        )

    def __repr__(self):
        return "Configuration({})".format(
            ", ".join(
                "{}={}".format(key, self.__dict__[key])
                for key in vars(self)
                if not key.startswith("_") and not key.isupper() and "token" not in key
            )
        )


class InvalidConfigurationException(Exception):
    pass


def _positive_int(arg):
    value = int(arg)
    if value < 1:
        raise ArgumentTypeError("must be at least 1, got {}".format(arg))
    return value


def _positive_float(arg):
    value = float(arg)
    if value <= 0:
        raise ArgumentTypeError("must be a positive number, got {}".format(arg))
    return value
