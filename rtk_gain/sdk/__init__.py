"""
SDK for rtk-gain.

Provides programmatic access to savings tracking and reporting.
"""

from rtk_gain.core.token_counter import estimate_tokens

from .tracker import GainTracker, track, track_tokens

__all__ = ["GainTracker", "estimate_tokens", "track", "track_tokens"]
