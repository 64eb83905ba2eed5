# SPDX-License-Identifier: MIT
"""Adapters for external systems (version control)."""
