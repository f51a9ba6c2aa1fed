"""Service layer for listing extraction and monitoring."""

from .monitor import MonitorEngine, find_new, next_run_time, should_run
from .orchestrator import FallbackOrchestrator, build_orchestrator

__all__ = [
    "FallbackOrchestrator",
    "MonitorEngine",
    "build_orchestrator",
    "find_new",
    "next_run_time",
    "should_run",
]
