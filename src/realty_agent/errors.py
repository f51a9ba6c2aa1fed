"""Exceptions raised inside the extraction pipeline and monitor engine."""

from __future__ import annotations

from typing import Any, Optional


class RealtyAgentError(Exception):
    """Base exception for realty_agent."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class TierFailure(RealtyAgentError):
    """A single extraction tier could not produce a result."""

    pass


class SourceError(TierFailure):
    """Upstream source call failed or returned a malformed payload."""

    pass


class RenderError(TierFailure):
    """Browser rendering produced no content."""

    pass


class MonitorPollError(RealtyAgentError):
    """One monitor's poll failed; its stored state is left untouched."""

    pass


class MonitorNotFound(RealtyAgentError):
    def __init__(self, monitor_id: str):
        super().__init__(f"Monitor with ID {monitor_id} not found.", {"monitor_id": monitor_id})
        self.monitor_id = monitor_id
