# ModelMuxer (c) 2025 Ajay Rajput
# Licensed under Business Source License 1.1 – see LICENSE for details.
"""Availability reporting for the gateway's backends."""

from .availability import probe_availability

__all__ = ["probe_availability"]
