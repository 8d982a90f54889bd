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

import logging
from urllib.parse import unquote, urlsplit

import elasticsearch
from elastic_transport import NodeConfig, Transport
from elastic_transport.client_utils import basic_auth_to_header

from esexporter import exceptions


def node_config(cfg):
    """
    Builds the connection settings for the single node behind ``cfg.uri``. Credentials embedded in the URI are sent
    as basic authentication.
    """
    parts = urlsplit(cfg.uri)
    headers = {"accept": "application/json"}
    if parts.username is not None:
        headers["authorization"] = basic_auth_to_header((unquote(parts.username), unquote(parts.password or "")))
    tls = {}
    if parts.scheme == "https":
        tls = {"verify_certs": not cfg.insecure, "ssl_show_warn": not cfg.insecure}
    return NodeConfig(parts.scheme,
                      parts.hostname,
                      parts.port or (443 if parts.scheme == "https" else 80),
                      path_prefix=parts.path,
                      headers=headers,
                      request_timeout=cfg.timeout,
                      **tls)


def create_transport(cfg):
    # a plain transport performs no product check, so any cluster speaking the stats API is accepted
    return Transport([node_config(cfg)], max_retries=0, retry_on_timeout=False, retry_on_status=())


class StatsClient:
    """
    Reads the statistics documents from the cluster. Every call is a blocking GET bounded by the configured
    timeout; failures are reported as ``FetchError`` or ``DecodeError``.
    """

    def __init__(self, cfg, transport=None):
        self.logger = logging.getLogger(__name__)
        self.cfg = cfg
        self.transport = transport if transport is not None else create_transport(cfg)

    def node_stats(self):
        return self._get(self.cfg.node_stats_path)

    def cluster_health(self):
        return self._get(self.cfg.cluster_health_path)

    def _get(self, path):
        url = self.cfg.uri + path
        self.logger.debug("Requesting [%s].", url)
        try:
            response = self.transport.perform_request("GET", path, request_timeout=self.cfg.timeout)
        except elasticsearch.SerializationError as e:
            raise exceptions.DecodeError("Could not decode the response of [{}].".format(url), e)
        except elasticsearch.TransportError as e:
            raise exceptions.FetchError("Could not retrieve [{}]: {}".format(url, e), e)
        status = response.meta.status
        if not 200 <= status < 300:
            raise exceptions.FetchError("Could not retrieve [{}]: HTTP status {}.".format(url, status))
        return response.body

    def close(self):
        self.transport.close()
