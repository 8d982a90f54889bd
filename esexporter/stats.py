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

"""
Typed views of the statistics documents returned by ``/_nodes/stats`` and ``/_cluster/health``.

Decoding follows the leniency of the cluster API: absent numbers decode as ``0.0`` and absent sections as empty,
but a value of the wrong JSON type is treated as a malformed document.
"""

import collections

from esexporter import exceptions

UNKNOWN = "unknown"

HEALTH_STATUS_ORDINALS = {
    "green": 0,
    "yellow": 1,
    "red": 2,
}


def ms_to_seconds(value):
    return value / 1000.0


def extract_section(doc, path):
    """
    Walks ``path`` down a nested dict.

    :param doc: The document to walk.
    :param path: A sequence of keys.
    :return: The section found at ``path``, or an empty dict if any key on the way is absent.
    """
    section = doc
    for k in path:
        if not isinstance(section, dict):
            raise exceptions.DecodeError("Expected an object at [{}] but got {}.".format(".".join(path), type(section).__name__))
        section = section.get(k)
        if section is None:
            return {}
    if not isinstance(section, dict):
        raise exceptions.DecodeError("Expected an object at [{}] but got {}.".format(".".join(path), type(section).__name__))
    return section


def extract_number(doc, key):
    value = doc.get(key)
    if value is None:
        return 0.0
    # bool is a subclass of int but never a valid statistic
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise exceptions.DecodeError("Expected a number for [{}] but got {!r}.".format(key, value))
    return float(value)


def extract_string(doc, key, fallback=""):
    value = doc.get(key)
    if value is None:
        return fallback
    if not isinstance(value, str):
        raise exceptions.DecodeError("Expected a string for [{}] but got {!r}.".format(key, value))
    return value


def extract_bool(doc, key):
    value = doc.get(key)
    if value is None:
        return False
    if not isinstance(value, bool):
        raise exceptions.DecodeError("Expected a boolean for [{}] but got {!r}.".format(key, value))
    return value


def _named_sections(doc, path, parse):
    return {name: parse(extract_section(doc, path + [name])) for name in extract_section(doc, path)}


class GcCollectorStats(collections.namedtuple("GcCollectorStats", ["collection_count", "collection_time_ms"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(extract_number(doc, "collection_count"), extract_number(doc, "collection_time_in_millis"))


class BreakerStats(collections.namedtuple("BreakerStats", ["estimated_size", "limit_size"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(extract_number(doc, "estimated_size_in_bytes"), extract_number(doc, "limit_size_in_bytes"))


class ThreadPoolStats(collections.namedtuple("ThreadPoolStats", ["threads", "queue", "active", "rejected", "largest",
                                                                 "completed"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(*(extract_number(doc, field) for field in cls._fields))


class JvmMemoryStats(collections.namedtuple("JvmMemoryStats", ["heap_used", "heap_committed", "heap_max",
                                                               "non_heap_used", "non_heap_committed"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(*(extract_number(doc, field + "_in_bytes") for field in cls._fields))


class CacheStats(collections.namedtuple("CacheStats", ["memory_size", "evictions"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(extract_number(doc, "memory_size_in_bytes"), extract_number(doc, "evictions"))


IndicesStats = collections.namedtuple("IndicesStats", [
    "fielddata", "filter_cache", "query_cache", "request_cache",
    "docs_count", "docs_deleted",
    "segments_count", "segments_memory",
    "store_size", "store_throttle_time_ms",
    "flush_total", "flush_time_ms",
    "indexing_index_total", "indexing_index_time_ms",
    "merges_total", "merges_total_docs", "merges_total_size", "merges_total_time_ms",
    "refresh_total", "refresh_total_time_ms",
])


def parse_indices_stats(doc):
    docs = extract_section(doc, ["docs"])
    segments = extract_section(doc, ["segments"])
    store = extract_section(doc, ["store"])
    flush = extract_section(doc, ["flush"])
    indexing = extract_section(doc, ["indexing"])
    merges = extract_section(doc, ["merges"])
    refresh = extract_section(doc, ["refresh"])
    return IndicesStats(
        fielddata=CacheStats.from_dict(extract_section(doc, ["fielddata"])),
        filter_cache=CacheStats.from_dict(extract_section(doc, ["filter_cache"])),
        query_cache=CacheStats.from_dict(extract_section(doc, ["query_cache"])),
        request_cache=CacheStats.from_dict(extract_section(doc, ["request_cache"])),
        docs_count=extract_number(docs, "count"),
        docs_deleted=extract_number(docs, "deleted"),
        segments_count=extract_number(segments, "count"),
        segments_memory=extract_number(segments, "memory_in_bytes"),
        store_size=extract_number(store, "size_in_bytes"),
        store_throttle_time_ms=extract_number(store, "throttle_time_in_millis"),
        flush_total=extract_number(flush, "total"),
        flush_time_ms=extract_number(flush, "total_time_in_millis"),
        indexing_index_total=extract_number(indexing, "index_total"),
        indexing_index_time_ms=extract_number(indexing, "index_time_in_millis"),
        merges_total=extract_number(merges, "total"),
        merges_total_docs=extract_number(merges, "total_docs"),
        merges_total_size=extract_number(merges, "total_size_in_bytes"),
        merges_total_time_ms=extract_number(merges, "total_time_in_millis"),
        refresh_total=extract_number(refresh, "total"),
        refresh_total_time_ms=extract_number(refresh, "total_time_in_millis"),
    )


class TransportStats(collections.namedtuple("TransportStats", ["rx_count", "rx_size", "tx_count", "tx_size"])):
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        return cls(extract_number(doc, "rx_count"), extract_number(doc, "rx_size_in_bytes"),
                   extract_number(doc, "tx_count"), extract_number(doc, "tx_size_in_bytes"))


ProcessStats = collections.namedtuple("ProcessStats", [
    "cpu_percent", "cpu_sys_ms", "cpu_user_ms", "cpu_total_ms",
    "mem_resident", "mem_share", "mem_total_virtual",
    "open_file_descriptors", "max_file_descriptors",
])


def parse_process_stats(doc):
    cpu = extract_section(doc, ["cpu"])
    mem = extract_section(doc, ["mem"])
    return ProcessStats(
        cpu_percent=extract_number(cpu, "percent"),
        cpu_sys_ms=extract_number(cpu, "sys_in_millis"),
        cpu_user_ms=extract_number(cpu, "user_in_millis"),
        cpu_total_ms=extract_number(cpu, "total_in_millis"),
        mem_resident=extract_number(mem, "resident_in_bytes"),
        mem_share=extract_number(mem, "share_in_bytes"),
        mem_total_virtual=extract_number(mem, "total_virtual_in_bytes"),
        open_file_descriptors=extract_number(doc, "open_file_descriptors"),
        max_file_descriptors=extract_number(doc, "max_file_descriptors"),
    )


NodeStats = collections.namedtuple("NodeStats", ["node_id", "host", "gc_collectors", "breakers", "thread_pools",
                                                 "jvm_memory", "indices", "transport", "process"])


def parse_node_stats(node_id, doc):
    if not isinstance(doc, dict):
        raise exceptions.DecodeError("Expected an object for node [{}] but got {}.".format(node_id, type(doc).__name__))
    host = extract_string(doc, "host") or extract_string(doc, "name") or UNKNOWN
    return NodeStats(
        node_id=node_id,
        host=host,
        gc_collectors=_named_sections(doc, ["jvm", "gc", "collectors"], GcCollectorStats.from_dict),
        breakers=_named_sections(doc, ["breakers"], BreakerStats.from_dict),
        thread_pools=_named_sections(doc, ["thread_pool"], ThreadPoolStats.from_dict),
        jvm_memory=JvmMemoryStats.from_dict(extract_section(doc, ["jvm", "mem"])),
        indices=parse_indices_stats(extract_section(doc, ["indices"])),
        transport=TransportStats.from_dict(extract_section(doc, ["transport"])),
        process=parse_process_stats(extract_section(doc, ["process"])),
    )


class NodeStatsResponse(collections.namedtuple("NodeStatsResponse", ["cluster_name", "nodes"])):
    """
    The decoded response of ``/_nodes/stats`` (or ``/_nodes/_local/stats``).
    """
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        if not isinstance(doc, dict):
            raise exceptions.DecodeError("Expected a node stats object but got {}.".format(type(doc).__name__))
        nodes = extract_section(doc, ["nodes"])
        return cls(extract_string(doc, "cluster_name"),
                   [parse_node_stats(node_id, node) for node_id, node in nodes.items()])


class ClusterHealth(collections.namedtuple("ClusterHealth", ["cluster_name", "status", "timed_out", "number_of_nodes",
                                                             "number_of_data_nodes"])):
    """
    The decoded response of ``/_cluster/health``.
    """
    __slots__ = ()

    @classmethod
    def from_dict(cls, doc):
        if not isinstance(doc, dict):
            raise exceptions.DecodeError("Expected a cluster health object but got {}.".format(type(doc).__name__))
        return cls(extract_string(doc, "cluster_name"),
                   extract_string(doc, "status"),
                   extract_bool(doc, "timed_out"),
                   extract_number(doc, "number_of_nodes"),
                   extract_number(doc, "number_of_data_nodes"))

    @property
    def status_ordinal(self):
        # unrecognized states are reported like green
        return HEALTH_STATUS_ORDINALS.get(self.status, 0)
