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

import argparse
import logging
import sys
from wsgiref.simple_server import WSGIRequestHandler, make_server

from prometheus_client import ProcessCollector
from prometheus_client.exposition import ThreadingWSGIServer

from esexporter import __version__, catalog, exceptions, exposition
from esexporter.client import StatsClient
from esexporter.config import (DEFAULT_LISTEN_ADDRESS, DEFAULT_METRICS_PATH, DEFAULT_TIMEOUT, DEFAULT_URI, NAMESPACE,
                               ExporterConfig, parse_listen_address)
from esexporter.cycle import CollectionCycle
from esexporter.log import configure_logging
from esexporter.registry import MetricRegistry


class RequestHandler(WSGIRequestHandler):
    def log_message(self, format, *args):  # pylint: disable=redefined-builtin
        logging.getLogger(__name__).debug("%s - %s", self.address_string(), format % args)


def create_arg_parser():
    parser = argparse.ArgumentParser(prog="esexporter",
                                     description="Exports Elasticsearch node and cluster statistics for Prometheus.")
    parser.add_argument("--web.listen-address", dest="listen_address", default=DEFAULT_LISTEN_ADDRESS,
                        help="Address to listen on for web interface and telemetry (default: %(default)s).")
    parser.add_argument("--web.telemetry-path", dest="metrics_path", default=DEFAULT_METRICS_PATH,
                        help="Path under which to expose metrics (default: %(default)s).")
    parser.add_argument("--es.uri", dest="uri", default=DEFAULT_URI,
                        help="HTTP API address of an Elasticsearch node (default: %(default)s).")
    parser.add_argument("--es.timeout", dest="timeout", type=float, default=DEFAULT_TIMEOUT,
                        help="Timeout in seconds for trying to get stats from Elasticsearch (default: %(default)s).")
    parser.add_argument("--es.all", dest="all_nodes", action="store_true", default=False,
                        help="Export stats for all nodes in the cluster.")
    parser.add_argument("--es.insecure", "--es.unsecure", dest="insecure", action="store_true", default=False,
                        help="Ignore certificate validation errors.")
    parser.add_argument("--log-level", dest="log_level", default="INFO",
                        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
                        help="Log level (default: %(default)s).")
    parser.add_argument("--list-metrics", dest="list_metrics", action="store_true", default=False,
                        help="List all exported metrics and exit.")
    parser.add_argument("--version", action="version", version="%(prog)s " + __version__)
    return parser


def config_from_args(args):
    return ExporterConfig(uri=args.uri,
                          timeout=args.timeout,
                          all_nodes=args.all_nodes,
                          insecure=args.insecure,
                          listen_address=args.listen_address,
                          metrics_path=args.metrics_path).validate()


def create_server(cfg, app):
    host, port = parse_listen_address(cfg.listen_address)
    return make_server(host, port, app, server_class=ThreadingWSGIServer, handler_class=RequestHandler)


def main(argv=None):
    args = create_arg_parser().parse_args(argv)
    configure_logging(args.log_level)
    logger = logging.getLogger(__name__)

    try:
        metric_catalog = catalog.build_catalog()
        if args.list_metrics:
            catalog.list_metrics(metric_catalog, NAMESPACE, sys.stdout)
            return 0
        cfg = config_from_args(args)
    except exceptions.SystemSetupError as e:
        logger.error("Cannot start exporter: %s", e)
        return 1

    client = StatsClient(cfg)
    cycle = CollectionCycle(cfg, client, MetricRegistry(metric_catalog))
    registry = exposition.create_registry(cycle)
    # the exporter's own resource usage
    ProcessCollector(registry=registry)

    try:
        httpd = create_server(cfg, exposition.make_app(registry, cfg.metrics_path))
    except OSError as e:
        logger.error("Cannot listen on [%s]: %s", cfg.listen_address, e)
        client.close()
        return 1

    logger.info("Exporting stats of [%s] on [%s%s].", cfg.uri, cfg.listen_address, cfg.metrics_path)
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Shutting down.")
    finally:
        httpd.server_close()
        client.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
