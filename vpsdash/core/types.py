"""Shared type definitions for the application."""

from collections.abc import Awaitable, Callable, Mapping
from datetime import datetime
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vpsdash.core.models import LogSnapshot, ProgressView, TargetRef

# Callable type aliases for dependency injection
type Clock = Callable[[], datetime]
type IdGenerator = Callable[[], str]

# Fetches the log text and status field of a target. Raw mappings such as
# {"logs": "...", "status": "running"} are accepted as well.
type LogFetcher = Callable[
    ["TargetRef"], Awaitable["LogSnapshot | Mapping[str, Any]"]
]

# Fetches only the status field, when it is not part of the log response
type StatusFetcher = Callable[["TargetRef"], Awaitable[str]]

# Receives a fresh snapshot after every write to a progress model
type ViewListener = Callable[["ProgressView"], None]
