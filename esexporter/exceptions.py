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


class ExporterError(Exception):
    """
    Base class for all exporter exceptions
    """

    def __init__(self, message, cause=None):
        super().__init__(message, cause)
        self.message = message
        self.cause = cause

    def __repr__(self):
        return self.message

    def __str__(self):
        return self.message


class SystemSetupError(ExporterError):
    """
    Thrown when the exporter is misconfigured, e.g. an invalid metric catalog or command line option.
    """


class InvalidMetricError(ExporterError):
    """
    Thrown when a value is recorded for an unknown metric or with the wrong number of label values.
    """


class UpstreamError(ExporterError):
    """
    Thrown when the cluster statistics could not be obtained.
    """


class FetchError(UpstreamError):
    """
    Thrown when a statistics endpoint could not be reached (connection refused, timeout, TLS, error status).
    """


class DecodeError(UpstreamError):
    """
    Thrown when a statistics document is not valid JSON or does not have the expected shape.
    """
