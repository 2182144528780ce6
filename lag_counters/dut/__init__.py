"""Device-under-test configuration for the aggregate counters test."""

from .configurator import DeviceConfigurator

__all__ = ["DeviceConfigurator"]
