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
import os

from setuptools import setup, find_packages


def read(filename):
    with open(os.path.join(os.path.dirname(__file__), filename)) as f:
        return f.read()


GENERIC_REQ = [
    "ConfigArgParse >= 1.5.3",
    "prometheus_client >= 0.17.1",
    "PyYAML >= 6.0.1",
    "pinject >= 0.14.1",
    "k8s >= 0.28.0",
    "requests-toolbelt >= 1.0.0",
    "backoff >= 2.2.1",
    "blinker >= 1.7.0",
    "pytz >= 2023.3",
]

WEB_REQ = [
    "Flask >= 3.0.0",
    "werkzeug >= 3.0.1",
]

METRICS_REQ = [
    "requests >= 2.31.0",
]

FLAKE8_REQ = [
    "flake8-print == 5.0.0",
    "flake8-comprehensions == 3.14.0",
    "pep8-naming == 0.13.3",
    "flake8 == 6.1.0",
]

TESTS_REQ = [
    "pytest-sugar == 0.9.7",
    "pytest-cov == 4.1.0",
    "pytest-helpers-namespace == 2021.12.29",
    "pytest == 7.4.2",
    "pyaml == 23.9.7",
    "callee == 0.3.1",
]

DEV_TOOLS = [
    "tox==3.14.5",
    "black ~= 22.0",
]


if __name__ == "__main__":
    setup(
        name="node-autoscaler",
        author="FINN Team Infrastructure",
        author_email="FINN-TechteamInfrastruktur@finn.no",
        version="1.0",
        packages=find_packages(exclude=("tests", "tests.*")),
        zip_safe=True,
        include_package_data=True,
        python_requires=">=3.8",
        # Requirements
        install_requires=GENERIC_REQ + WEB_REQ + METRICS_REQ,
        extras_require={
            "dev": TESTS_REQ + FLAKE8_REQ + DEV_TOOLS,
            "ci": DEV_TOOLS,
        },
        # Metadata
        description="Scale node groups in Kubernetes to track a metric",
        long_description=read("README.md"),
        # Entrypoints
        entry_points={
            "console_scripts": [
                "node-autoscaler = node_autoscaler:main",
            ]
        },
    )
