"""
Visitor analytics: page-view event store and time-windowed aggregation.
"""
