"""Daily aggregate package."""

from daycounter.aggregates.resolver import DailyAggregateResolver

__all__ = ["DailyAggregateResolver"]
