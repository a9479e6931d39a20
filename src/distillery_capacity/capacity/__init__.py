"""Capacity aggregation, utilization analysis and bottleneck detection."""
