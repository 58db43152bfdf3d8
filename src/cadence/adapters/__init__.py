"""Adapters - I/O implementations of ports."""

from .json_store import JsonFileStore
from .postgrest import PostgrestStore
from .summary_outbox import FileSummaryOutbox

__all__ = [
    "JsonFileStore",
    "PostgrestStore",
    "FileSummaryOutbox",
]
