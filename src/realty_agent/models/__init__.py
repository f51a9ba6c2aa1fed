"""Pydantic models shared across the extraction pipeline and monitors."""

from .criteria import MonitorCriteria, PropertyType, SearchCriteria, SourceId
from .listing import (
    ADDRESS_NOT_SPECIFIED,
    NOT_SPECIFIED,
    PRICE_NOT_SPECIFIED,
    ExtractionResult,
    Listing,
)
from .monitor import Frequency, MonitorConfig, MonitorRequest, Notification, SweepResult

__all__ = [
    "ADDRESS_NOT_SPECIFIED",
    "NOT_SPECIFIED",
    "PRICE_NOT_SPECIFIED",
    "ExtractionResult",
    "Frequency",
    "Listing",
    "MonitorConfig",
    "MonitorCriteria",
    "MonitorRequest",
    "Notification",
    "PropertyType",
    "SearchCriteria",
    "SourceId",
    "SweepResult",
]
