"""
Core Data Models for Day Counter

These models define the schemas for counter data flowing through the system.
They are designed to:
1. Give stored documents a typed shape once they leave the store
2. Apply the malformed-value rules in exactly one place
3. Be serializable for logging

DESIGN DECISION: Documents in the store stay plain dicts (the store is
schemaless). Conversion into these models happens when data is read,
and anything malformed is coerced rather than rejected.
"""

from datetime import datetime
from typing import Any, Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# VALUE COERCION
# =============================================================================

def coerce_count(value: Any) -> int:
    """
    Read a stored count.

    Only real integers count. bool is an int subclass in Python but never
    a count; floats, strings and None are malformed and read as zero.
    """
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return 0


def coerce_counts(data: Optional[dict[str, Any]]) -> dict[str, int]:
    """Coerce every field of a stored day document into a count."""
    if not data:
        return {}
    return {str(name): coerce_count(value) for name, value in data.items()}


def coerce_names(value: Any) -> list[str]:
    """
    Read a stored counter name list.

    Non-string entries and repeats are dropped; order is kept.
    """
    if not isinstance(value, (list, tuple)):
        return []
    names: list[str] = []
    for item in value:
        if isinstance(item, str) and item.strip() and item not in names:
            names.append(item)
    return names


def is_blank(name: Optional[str]) -> bool:
    """True when a counter name is missing, empty or only whitespace."""
    return not isinstance(name, str) or not name.strip()


# =============================================================================
# COUNTER MODELS
# =============================================================================

class CounterRegistry(BaseModel):
    """
    The ordered list of counters a user tracks.

    Order is rendering order. Names are case-sensitive and unique.
    The registry only ever grows.
    """
    model_config = ConfigDict(frozen=True)

    user: str = Field(
        ...,
        min_length=1,
        description="Owner of the registry"
    )
    names: list[str] = Field(
        default_factory=list,
        description="Counter names in insertion order"
    )

    @field_validator('names', mode='before')
    @classmethod
    def clean_names(cls, v: Any) -> list[str]:
        return coerce_names(v)

    def __contains__(self, name: object) -> bool:
        return name in self.names

    def with_name(self, name: str) -> "CounterRegistry":
        """Return the registry with `name` appended (unchanged if present)."""
        if name in self.names:
            return self
        return CounterRegistry(user=self.user, names=[*self.names, name])


class DailyAggregate(BaseModel):
    """Stored counts for one user on one day."""
    model_config = ConfigDict(frozen=True)

    user: str = Field(..., min_length=1)
    day_key: str = Field(
        ...,
        pattern=r"^\d{4}-\d{2}-\d{2}$",
        description="Calendar day as YYYY-MM-DD"
    )
    counts: dict[str, int] = Field(default_factory=dict)

    @field_validator('counts', mode='before')
    @classmethod
    def clean_counts(cls, v: Any) -> dict[str, int]:
        return coerce_counts(v if isinstance(v, dict) else None)

    def count_of(self, name: str) -> int:
        return self.counts.get(name, 0)

    def resolved_for(self, names: list[str]) -> dict[str, int]:
        """
        Project the stored counts onto a registry.

        The result holds exactly `names`, in order. Missing counters
        read as zero and counters the registry doesn't know are dropped.
        """
        return {name: self.count_of(name) for name in names}


class DateEntry(BaseModel):
    """
    One day of history, exactly as stored.

    Unlike today's view, history is never backfilled from the registry:
    a counter registered after this day simply doesn't appear.
    """
    model_config = ConfigDict(frozen=True)

    date: str = Field(
        ...,
        description="Day key (YYYY-MM-DD)"
    )
    counters: dict[str, int] = Field(default_factory=dict)

    @field_validator('counters', mode='before')
    @classmethod
    def clean_counters(cls, v: Any) -> dict[str, int]:
        return coerce_counts(v if isinstance(v, dict) else None)


class CounterFailure(BaseModel):
    """
    A store failure the service swallowed.

    Published on the service's failure channel so a presentation layer
    can show something better than "nothing happened".
    """
    model_config = ConfigDict(frozen=True)

    operation: str = Field(
        ...,
        description="Service operation that failed (e.g. 'adjust_counter')"
    )
    user: Optional[str] = None
    counter_name: Optional[str] = None
    error_message: str
    occurred_at: datetime = Field(default_factory=datetime.now)
