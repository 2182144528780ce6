"""YAML testbed inventory for the aggregate counters test.

Provides the testbed loader feeding port lists, connection parameters,
deviation overrides, and workflow settings into the test runners.
"""

from .testbed import Testbed, TestbedLoader, WorkflowSettings

__all__ = ["Testbed", "TestbedLoader", "WorkflowSettings"]
