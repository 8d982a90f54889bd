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

from prometheus_client import CollectorRegistry, generate_latest, make_wsgi_app
from prometheus_client.core import CounterMetricFamily, GaugeMetricFamily
from prometheus_client.registry import Collector

from esexporter.config import NAMESPACE

LANDING_PAGE = """<html>
<head><title>Elasticsearch Exporter</title></head>
<body>
<h1>Elasticsearch Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""


def metric_family(namespace, descriptor, series=None):
    family_type = CounterMetricFamily if descriptor.kind.is_counter else GaugeMetricFamily
    family = family_type("{}_{}".format(namespace, descriptor.name), descriptor.help,
                         labels=list(descriptor.label_names))
    for label_values in sorted(series or {}):
        family.add_metric(list(label_values), series[label_values])
    return family


class ElasticsearchCollector(Collector):
    """
    Runs one collection cycle per scrape and hands the resulting values to the Prometheus client.
    """

    def __init__(self, cycle, namespace=NAMESPACE):
        self.cycle = cycle
        self.namespace = namespace

    def up_family(self, up=None):
        family = GaugeMetricFamily("{}_up".format(self.namespace), "Was the Elasticsearch instance query successful?")
        if up is not None:
            family.add_metric([], 1 if up else 0)
        return family

    def describe(self):
        families = [metric_family(self.namespace, descriptor) for descriptor in self.cycle.registry.catalog]
        families.append(self.up_family())
        return families

    def collect(self):
        # the families are fully built before the client starts serializing them
        result = self.cycle.run()
        catalog = self.cycle.registry.catalog
        families = [metric_family(self.namespace, catalog[name], series) for name, series in result.snapshot.items()]
        families.append(self.up_family(result.up))
        return families


def create_registry(cycle, namespace=NAMESPACE):
    registry = CollectorRegistry()
    registry.register(ElasticsearchCollector(cycle, namespace))
    return registry


def render(registry):
    return generate_latest(registry)


def make_app(registry, metrics_path):
    """
    :return: A WSGI application serving the metrics at ``metrics_path`` and a landing page at ``/``.
    """
    metrics_app = make_wsgi_app(registry)
    landing_page = LANDING_PAGE.format(metrics_path=metrics_path).encode("utf-8")

    def app(environ, start_response):
        path = environ.get("PATH_INFO", "/")
        if path == metrics_path:
            return metrics_app(environ, start_response)
        if path == "/":
            start_response("200 OK", [("Content-Type", "text/html; charset=utf-8")])
            return [landing_page]
        start_response("404 Not Found", [("Content-Type", "text/plain; charset=utf-8")])
        return [b"Not Found\n"]

    return app
