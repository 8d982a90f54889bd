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

from esexporter import exceptions

DEFAULT_URI = "http://localhost:9200"
DEFAULT_TIMEOUT = 5.0
DEFAULT_LISTEN_ADDRESS = ":9108"
DEFAULT_METRICS_PATH = "/metrics"

NAMESPACE = "elasticsearch"


def parse_listen_address(listen_address):
    """
    Splits a listen address of the form ``[host]:port`` into its parts.

    :param listen_address: e.g. ``:9108`` or ``127.0.0.1:9108``.
    :return: A tuple ``(host, port)``. The host is an empty string if the address binds all interfaces.
    """
    host, sep, port = listen_address.rpartition(":")
    if not sep:
        raise exceptions.SystemSetupError("Listen address [{}] must be of the form [host]:port.".format(listen_address))
    try:
        port = int(port)
    except ValueError as e:
        raise exceptions.SystemSetupError("Listen address [{}] has an invalid port.".format(listen_address), e)
    if not 0 <= port <= 65535:
        raise exceptions.SystemSetupError("Listen address [{}] has an invalid port.".format(listen_address))
    # [::1]:9108
    if host.startswith("[") and host.endswith("]"):
        host = host[1:-1]
    return host, port


_ExporterConfig = collections.namedtuple("ExporterConfig", ["uri", "timeout", "all_nodes", "insecure",
                                                             "listen_address", "metrics_path"])


class ExporterConfig(_ExporterConfig):
    """
    Immutable settings passed from the command line into the exporter core.
    """
    __slots__ = ()

    def __new__(cls, uri=DEFAULT_URI, timeout=DEFAULT_TIMEOUT, all_nodes=False, insecure=False,
                listen_address=DEFAULT_LISTEN_ADDRESS, metrics_path=DEFAULT_METRICS_PATH):
        return super().__new__(cls, uri.rstrip("/"), float(timeout), bool(all_nodes), bool(insecure),
                               listen_address, metrics_path)

    @property
    def node_id(self):
        return None if self.all_nodes else "_local"

    @property
    def node_stats_path(self):
        return "/_nodes/stats" if self.all_nodes else "/_nodes/_local/stats"

    @property
    def cluster_health_path(self):
        return "/_cluster/health"

    def validate(self):
        if self.timeout <= 0:
            raise exceptions.SystemSetupError(
                "The timeout must be greater than zero but was {}.".format(self.timeout))
        if not self.metrics_path.startswith("/"):
            raise exceptions.SystemSetupError(
                "The metrics path must start with '/' but was [{}].".format(self.metrics_path))
        if not self.uri.startswith(("http://", "https://")):
            raise exceptions.SystemSetupError(
                "The cluster URI must be an http:// or https:// URI but was [{}].".format(self.uri))
        parse_listen_address(self.listen_address)
        return self
