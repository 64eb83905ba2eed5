# SPDX-License-Identifier: MIT
"""Shared infrastructure for monodeps: errors, logging, settings, Problem Details."""
