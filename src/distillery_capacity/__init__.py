"""
Distillery production capacity analysis and planning engine.

Computes capacity, utilization, bottlenecks, plan validation, forecasts and
what-if scenarios from equipment, allocation and constraint records read
through a CapacityDataSource. Nothing in this package writes to storage.
"""

__version__ = "0.1.0"
