"""Ports - interfaces/protocols for external dependencies."""

from .task_store import TaskStore
from .working_day_store import WorkingDayStore
from .summary_sink import SummarySink

__all__ = [
    "TaskStore",
    "WorkingDayStore",
    "SummarySink",
]
