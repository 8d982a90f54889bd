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
import logging
from enum import Enum

from esexporter import exceptions
from esexporter.stats import ClusterHealth, NodeStatsResponse, UNKNOWN, ms_to_seconds


class CycleState(Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    PARSING = "parsing"
    RESETTING = "resetting"
    POPULATING = "populating"
    EXPOSING = "exposing"
    FAILED = "failed"


CycleResult = collections.namedtuple("CycleResult", ["up", "snapshot"])


class CollectionCycle:
    """
    Fetches the statistics documents and rebuilds the registry from them.

    Each call to ``run`` holds the registry lock from the reset until the snapshot has been taken, so concurrent
    scrapes queue up behind each other and every scrape sees the values of exactly one fetch.
    """

    def __init__(self, cfg, client, registry):
        self.logger = logging.getLogger(__name__)
        self.cfg = cfg
        self.client = client
        self.registry = registry
        self.state = CycleState.IDLE

    def _transition(self, state):
        self.logger.debug("Collection cycle: [%s] -> [%s].", self.state.value, state.value)
        self.state = state

    def run(self):
        with self.registry.lock:
            try:
                self._transition(CycleState.RESETTING)
                self.registry.reset()
                up = self._collect()
                self._transition(CycleState.EXPOSING)
                return CycleResult(up, self.registry.snapshot())
            finally:
                self._transition(CycleState.IDLE)

    def _collect(self):
        node_stats = self._fetch(self.client.node_stats, NodeStatsResponse.from_dict, "node stats")
        if node_stats is None:
            self._transition(CycleState.FAILED)
            return False

        if not self.cfg.all_nodes and len(node_stats.nodes) != 1:
            self.logger.warning("Expected stats for exactly one node but got [%d].", len(node_stats.nodes))

        self._transition(CycleState.POPULATING)
        for node in node_stats.nodes:
            self.populate_node(node_stats.cluster_name, node)

        health = self._fetch(self.client.cluster_health, ClusterHealth.from_dict, "cluster health")
        if health is not None:
            self._transition(CycleState.POPULATING)
            self.populate_health(health)
        return True

    def _fetch(self, fetch, parse, what):
        self._transition(CycleState.FETCHING)
        try:
            doc = fetch()
            self._transition(CycleState.PARSING)
            return parse(doc)
        except exceptions.UpstreamError:
            self.logger.exception("Could not retrieve %s.", what)
            return None

    def populate_health(self, health):
        labels = (health.cluster_name, UNKNOWN)
        self.registry.set("cluster_health_status", labels, health.status_ordinal)
        self.registry.set("cluster_health_timed_out", labels, 1 if health.timed_out else 0)
        self.registry.set("cluster_number_of_nodes_total", labels, health.number_of_nodes)
        self.registry.set("cluster_number_of_data_nodes_total", labels, health.number_of_data_nodes)

    def populate_node(self, cluster_name, node):
        labels = (cluster_name, node.host)
        r = self.registry

        for collector, gc in node.gc_collectors.items():
            r.set("jvm_gc_collections_total", labels + (collector,), gc.collection_count)
            r.set("jvm_gc_collection_seconds_total", labels + (collector,), ms_to_seconds(gc.collection_time_ms))

        for breaker, stats in node.breakers.items():
            r.set("breakers_estimated_size_bytes", labels + (breaker,), stats.estimated_size)
            r.set("breakers_limit_size_bytes", labels + (breaker,), stats.limit_size)

        for pool, stats in node.thread_pools.items():
            r.set("thread_pool_completed_total", labels + (pool,), stats.completed)
            r.set("thread_pool_rejected_total", labels + (pool,), stats.rejected)
            r.set("thread_pool_active_count", labels + (pool,), stats.active)
            r.set("thread_pool_threads_count", labels + (pool,), stats.threads)
            r.set("thread_pool_largest_count", labels + (pool,), stats.largest)
            r.set("thread_pool_queue_count", labels + (pool,), stats.queue)

        mem = node.jvm_memory
        r.set("jvm_memory_committed_bytes", labels + ("heap",), mem.heap_committed)
        r.set("jvm_memory_used_bytes", labels + ("heap",), mem.heap_used)
        r.set("jvm_memory_max_bytes", labels + ("heap",), mem.heap_max)
        r.set("jvm_memory_committed_bytes", labels + ("non-heap",), mem.non_heap_committed)
        r.set("jvm_memory_used_bytes", labels + ("non-heap",), mem.non_heap_used)

        idx = node.indices
        r.set("indices_fielddata_memory_size_bytes", labels, idx.fielddata.memory_size)
        r.set("indices_fielddata_evictions_total", labels, idx.fielddata.evictions)
        r.set("indices_filter_cache_memory_size_bytes", labels, idx.filter_cache.memory_size)
        r.set("indices_filter_cache_evictions_total", labels, idx.filter_cache.evictions)
        r.set("indices_query_cache_memory_size_bytes", labels, idx.query_cache.memory_size)
        r.set("indices_query_cache_evictions_total", labels, idx.query_cache.evictions)
        r.set("indices_request_cache_memory_size_bytes", labels, idx.request_cache.memory_size)
        r.set("indices_request_cache_evictions_total", labels, idx.request_cache.evictions)

        r.set("indices_docs", labels, idx.docs_count)
        r.set("indices_docs_deleted", labels, idx.docs_deleted)
        r.set("indices_segments_memory_bytes", labels, idx.segments_memory)
        r.set("indices_segments_count", labels, idx.segments_count)
        r.set("indices_store_size_bytes", labels, idx.store_size)
        r.set("indices_store_throttle_time_ms_total", labels, idx.store_throttle_time_ms)

        r.set("indices_flush_total", labels, idx.flush_total)
        r.set("indices_flush_time_ms_total", labels, idx.flush_time_ms)
        r.set("indices_indexing_index_total", labels, idx.indexing_index_total)
        r.set("indices_indexing_index_time_ms_total", labels, idx.indexing_index_time_ms)
        r.set("indices_merges_total", labels, idx.merges_total)
        r.set("indices_merges_total_docs_total", labels, idx.merges_total_docs)
        r.set("indices_merges_total_size_bytes_total", labels, idx.merges_total_size)
        r.set("indices_merges_total_time_ms_total", labels, idx.merges_total_time_ms)
        r.set("indices_refresh_total", labels, idx.refresh_total)
        r.set("indices_refresh_total_time_ms_total", labels, idx.refresh_total_time_ms)

        transport = node.transport
        r.set("transport_rx_packets_total", labels, transport.rx_count)
        r.set("transport_rx_size_bytes_total", labels, transport.rx_size)
        r.set("transport_tx_packets_total", labels, transport.tx_count)
        r.set("transport_tx_size_bytes_total", labels, transport.tx_size)

        process = node.process
        r.set("process_cpu_percent", labels, process.cpu_percent)
        r.set("process_mem_resident_size_bytes", labels, process.mem_resident)
        r.set("process_mem_share_size_bytes", labels, process.mem_share)
        r.set("process_mem_virtual_size_bytes", labels, process.mem_total_virtual)
        r.set("process_open_files_count", labels, process.open_file_descriptors)
        r.set("process_max_files_count", labels, process.max_file_descriptors)
        r.set("process_cpu_time_seconds_total", labels + ("total",), ms_to_seconds(process.cpu_total_ms))
        r.set("process_cpu_time_seconds_total", labels + ("sys",), ms_to_seconds(process.cpu_sys_ms))
        r.set("process_cpu_time_seconds_total", labels + ("user",), ms_to_seconds(process.cpu_user_ms))
