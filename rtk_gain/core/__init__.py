"""
Core modules for rtk-gain.

This package contains token accounting, retention policy, savings
aggregation and export formatting.
"""
