# SPDX-License-Identifier: Apache-2.0
#
# The OpenSearch Contributors require contributions made to
# this file be licensed under the Apache-2.0 license or a
# compatible open source license.
# Modifications Copyright OpenSearch Contributors. See
# GitHub history for details.
# Licensed to Elasticsearch B.V. under one or more contributor
# license agreements. See the NOTICE file distributed with
# this work for additional information regarding copyright
# ownership. Elasticsearch B.V. licenses this file to you under
# the Apache License, Version 2.0 (the "License"); you may
# not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#	http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing,
# software distributed under the License is distributed on an
# "AS IS" BASIS, WITHOUT WARRANTIES OR CONDITIONS OF ANY
# KIND, either express or implied.  See the License for the
# specific language governing permissions and limitations
# under the License.

import collections
import threading

from esexporter import exceptions


class MetricRegistry:
    """
    Holds the current value of every series, keyed by metric name and label values.

    The registry is not synchronized by itself. Whoever resets and repopulates it must hold ``lock`` for the whole
    sequence so that readers never see a half-populated registry.
    """

    def __init__(self, catalog):
        self.catalog = catalog
        self.lock = threading.Lock()
        self._series = collections.OrderedDict((descriptor.name, {}) for descriptor in catalog)

    def reset(self):
        for series in self._series.values():
            series.clear()

    def set(self, name, label_values, value):
        try:
            descriptor = self.catalog[name]
        except KeyError:
            raise exceptions.InvalidMetricError("Unknown metric [{}].".format(name))
        label_values = tuple(label_values)
        if len(label_values) != len(descriptor.label_names):
            raise exceptions.InvalidMetricError(
                "Metric [{}] expects labels {} but got values {}.".format(name, descriptor.label_names, label_values))
        self._series[name][label_values] = float(value)

    def get(self, name, label_values):
        return self._series[name].get(tuple(label_values))

    def series_count(self):
        return sum(len(series) for series in self._series.values())

    def snapshot(self):
        """
        :return: A copy of all series as an ordered dict of metric name to ``{label values: value}``. Metrics without
                 any series are omitted.
        """
        return collections.OrderedDict((name, dict(series)) for name, series in self._series.items() if series)
