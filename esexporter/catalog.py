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
from enum import Enum

import tabulate

from esexporter import exceptions

CLUSTER_LABELS = ("cluster", "node")


class MetricKind(Enum):
    SCALAR_GAUGE = "scalar gauge"
    SCALAR_COUNTER = "scalar counter"
    LABELED_GAUGE = "labeled gauge"
    LABELED_COUNTER = "labeled counter"

    @property
    def is_counter(self):
        return self in (MetricKind.SCALAR_COUNTER, MetricKind.LABELED_COUNTER)

    @property
    def is_labeled(self):
        return self in (MetricKind.LABELED_GAUGE, MetricKind.LABELED_COUNTER)

    @property
    def prometheus_type(self):
        return "counter" if self.is_counter else "gauge"


MetricDescriptor = collections.namedtuple("MetricDescriptor", ["name", "help", "kind", "label_names"])

# Counters hold the cumulative value reported by the cluster as-is; they are overwritten, not incremented.

SCALAR_GAUGES = {
    "cluster_health_status": "Current cluster health status",
    "cluster_health_timed_out": "Current cluster health timed out",
    "cluster_number_of_nodes_total": "Current cluster total node size",
    "cluster_number_of_data_nodes_total": "Current cluster total data node size",
    "indices_fielddata_memory_size_bytes": "Field data cache memory usage in bytes",
    "indices_filter_cache_memory_size_bytes": "Filter cache memory usage in bytes",
    "indices_query_cache_memory_size_bytes": "Query cache memory usage in bytes",
    "indices_request_cache_memory_size_bytes": "Request cache memory usage in bytes",
    "indices_docs": "Count of documents on this node",
    "indices_docs_deleted": "Count of deleted documents on this node",
    "indices_store_size_bytes": "Current size of stored index data in bytes",
    "indices_segments_memory_bytes": "Current memory size of segments in bytes",
    "indices_segments_count": "Count of index segments on this node",
    "process_cpu_percent": "Percent CPU used by process",
    "process_mem_resident_size_bytes": "Resident memory in use by process in bytes",
    "process_mem_share_size_bytes": "Shared memory in use by process in bytes",
    "process_mem_virtual_size_bytes": "Total virtual memory used in bytes",
    "process_open_files_count": "Open file descriptors",
    "process_max_files_count": "Max file descriptors for process",
}

SCALAR_COUNTERS = {
    "indices_fielddata_evictions_total": "Evictions from field data",
    "indices_filter_cache_evictions_total": "Evictions from filter cache",
    "indices_query_cache_evictions_total": "Evictions from query cache",
    "indices_request_cache_evictions_total": "Evictions from request cache",
    "indices_flush_total": "Total flushes",
    "indices_flush_time_ms_total": "Cumulative flush time in milliseconds",
    "transport_rx_packets_total": "Count of packets received",
    "transport_rx_size_bytes_total": "Total number of bytes received",
    "transport_tx_packets_total": "Count of packets sent",
    "transport_tx_size_bytes_total": "Total number of bytes sent",
    "indices_store_throttle_time_ms_total": "Throttle time for index store in milliseconds",
    "indices_indexing_index_total": "Total index calls",
    "indices_indexing_index_time_ms_total": "Cumulative index time in milliseconds",
    "indices_merges_total": "Total merges",
    "indices_merges_total_docs_total": "Cumulative docs merged",
    "indices_merges_total_size_bytes_total": "Total merge size in bytes",
    "indices_merges_total_time_ms_total": "Total time spent merging in milliseconds",
    "indices_refresh_total": "Total refreshes",
    "indices_refresh_total_time_ms_total": "Total time spent refreshing in milliseconds",
}

LABELED_GAUGES = {
    "breakers_estimated_size_bytes": ("Estimated size in bytes of breaker", ("breaker",)),
    "breakers_limit_size_bytes": ("Limit size in bytes for breaker", ("breaker",)),
    "jvm_memory_committed_bytes": ("JVM memory currently committed by area", ("area",)),
    "jvm_memory_used_bytes": ("JVM memory currently used by area", ("area",)),
    "jvm_memory_max_bytes": ("JVM memory max", ("area",)),
    "thread_pool_active_count": ("Thread Pool threads active", ("type",)),
    "thread_pool_largest_count": ("Thread Pool largest threads count", ("type",)),
    "thread_pool_queue_count": ("Thread Pool operations queued", ("type",)),
    "thread_pool_threads_count": ("Thread Pool current threads count", ("type",)),
}

LABELED_COUNTERS = {
    "jvm_gc_collections_total": ("Count of JVM GC runs", ("gc",)),
    "jvm_gc_collection_seconds_total": ("GC run time in seconds", ("gc",)),
    "process_cpu_time_seconds_total": ("Process CPU time in seconds", ("type",)),
    "thread_pool_completed_total": ("Thread Pool operations completed", ("type",)),
    "thread_pool_rejected_total": ("Thread Pool operations rejected", ("type",)),
}


class Catalog:
    """
    Read-only table of every metric the exporter exposes, keyed by metric name.

    Descriptors are kept in declaration order: scalar gauges, scalar counters, labeled gauges, labeled counters.
    """

    def __init__(self, descriptors):
        self._descriptors = collections.OrderedDict()
        for descriptor in descriptors:
            if descriptor.name in self._descriptors:
                raise exceptions.SystemSetupError("Metric [{}] is declared more than once.".format(descriptor.name))
            if not descriptor.help or not descriptor.help.strip():
                raise exceptions.SystemSetupError("Metric [{}] has no help text.".format(descriptor.name))
            if descriptor.label_names[:len(CLUSTER_LABELS)] != CLUSTER_LABELS:
                raise exceptions.SystemSetupError(
                    "Metric [{}] must start with the labels {} but has {}.".format(descriptor.name, CLUSTER_LABELS,
                                                                                   descriptor.label_names))
            if descriptor.kind.is_labeled != (len(descriptor.label_names) > len(CLUSTER_LABELS)):
                raise exceptions.SystemSetupError(
                    "Metric [{}] is a {} but has labels {}.".format(descriptor.name, descriptor.kind.value,
                                                                    descriptor.label_names))
            # the Prometheus client exposes counter samples as <family>_total
            if descriptor.kind.is_counter and not descriptor.name.endswith("_total"):
                raise exceptions.SystemSetupError("Counter [{}] must end with '_total'.".format(descriptor.name))
            self._descriptors[descriptor.name] = descriptor

    def __getitem__(self, name):
        return self._descriptors[name]

    def __contains__(self, name):
        return name in self._descriptors

    def __iter__(self):
        return iter(self._descriptors.values())

    def __len__(self):
        return len(self._descriptors)

    def names(self):
        return list(self._descriptors.keys())


def descriptors(scalar_gauges, scalar_counters, labeled_gauges, labeled_counters):
    for name, help_text in scalar_gauges.items():
        yield MetricDescriptor(name, help_text, MetricKind.SCALAR_GAUGE, CLUSTER_LABELS)
    for name, help_text in scalar_counters.items():
        yield MetricDescriptor(name, help_text, MetricKind.SCALAR_COUNTER, CLUSTER_LABELS)
    for name, (help_text, labels) in labeled_gauges.items():
        yield MetricDescriptor(name, help_text, MetricKind.LABELED_GAUGE, CLUSTER_LABELS + tuple(labels))
    for name, (help_text, labels) in labeled_counters.items():
        yield MetricDescriptor(name, help_text, MetricKind.LABELED_COUNTER, CLUSTER_LABELS + tuple(labels))


def build_catalog(scalar_gauges=None, scalar_counters=None, labeled_gauges=None, labeled_counters=None):
    return Catalog(descriptors(SCALAR_GAUGES if scalar_gauges is None else scalar_gauges,
                               SCALAR_COUNTERS if scalar_counters is None else scalar_counters,
                               LABELED_GAUGES if labeled_gauges is None else labeled_gauges,
                               LABELED_COUNTERS if labeled_counters is None else labeled_counters))


def list_metrics(catalog, namespace, out):
    out.write("Available metrics:\n\n")
    rows = [["{}_{}".format(namespace, d.name), d.kind.prometheus_type, ",".join(d.label_names), d.help]
            for d in catalog]
    out.write(tabulate.tabulate(rows, ["Name", "Type", "Labels", "Description"]))
    out.write("\n")
