# SPDX-License-Identifier: MIT
"""Integration tests for edge-replica.

INTEGRATION TEST FILE: This directory contains tests that drive several
components together through the public API. The control plane and the synced
connection are in-memory doubles, so no network access is needed.
"""
