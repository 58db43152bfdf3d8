"""Daily summary delivery interface."""

from typing import Protocol

from cadence.core.summary import DailySummary


class SummarySink(Protocol):
    """Receives daily summaries for rendering and delivery elsewhere."""

    def deliver(self, summary: DailySummary) -> None:
        """Hand over one person's summary."""
        ...
