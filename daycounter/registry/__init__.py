"""Counter registry package."""

from daycounter.registry.counter_registry import CounterRegistryService

__all__ = ["CounterRegistryService"]
