"""Aggregate Interface Counters Test.

Configures a link aggregation group on a device under test over gNMI,
mirrors it on an Open Traffic Generator, waits for both sides to converge
and checks that the aggregate reports its interface and IP counters.
Static and LACP aggregates are supported.
"""

__version__ = "1.0.0"
