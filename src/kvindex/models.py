"""Aggregation query and result models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field


class StatsQuery(BaseModel):
    """How records in a window are reduced to statistics.

    Attributes:
        category_field: Field whose value is counted per category
        status_field: Field holding the success/failure outcome
        success_values: Status values counted as success
        failure_values: Status values counted as failure
        numeric_field: Field averaged across the window
        sample_size: Number of most recent records returned as samples
    """

    category_field: str = Field(default="service", min_length=1)
    status_field: str = Field(default="status", min_length=1)
    success_values: frozenset[str] = Field(default=frozenset({"up"}))
    failure_values: frozenset[str] = Field(default=frozenset({"down"}))
    numeric_field: str = Field(default="responseTime", min_length=1)
    sample_size: int = Field(default=100, ge=0)

    class Config:
        """Pydantic config."""

        frozen = True


class WindowStats(BaseModel):
    """Statistics over the records in a time window.

    Not snapshot-consistent: a window read concurrently with inserts may
    include only some of them.

    Attributes:
        total_count: Records found in the window
        per_category_counts: Count per category value
        success_count: Records whose status is a success value
        failure_count: Records whose status is a failure value
        average: Mean of the numeric field, None when no record carries one
        window_start: Inclusive start of the window
        samples: Most recent records, oldest first, each with its "id"
    """

    total_count: int = 0
    per_category_counts: dict[str, int] = Field(default_factory=dict)
    success_count: int = 0
    failure_count: int = 0
    average: Optional[float] = None
    window_start: datetime
    samples: list[dict[str, str]] = Field(default_factory=list)

    @property
    def has_data(self) -> bool:
        """True if at least one record fell inside the window."""
        return self.total_count > 0

    @property
    def success_rate(self) -> Optional[float]:
        """Share of classified records that succeeded, None if none were classified."""
        classified = self.success_count + self.failure_count
        if classified == 0:
            return None
        return self.success_count / classified
