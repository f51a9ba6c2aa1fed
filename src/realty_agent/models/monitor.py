"""Data models for persisted listing monitors."""

from __future__ import annotations

from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, field_validator
from pydantic.alias_generators import to_camel

from .criteria import MonitorCriteria


Frequency = Literal["daily", "weekly", "realtime"]


class MonitorRequest(MonitorCriteria):
    """Input for creating a monitor: criteria plus scheduling options."""

    monitor_id: Optional[str] = None
    frequency: Frequency = "daily"
    notification_email: Optional[EmailStr] = None

    def criteria(self) -> MonitorCriteria:
        return MonitorCriteria(
            location=self.location,
            min_price=self.min_price,
            max_price=self.max_price,
            property_type=self.property_type,
            bedrooms=self.bedrooms,
            bathrooms=self.bathrooms,
        )


class MonitorConfig(BaseModel):
    """A monitor as persisted in the key-value store under its ``id``."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    created_at: datetime
    criteria: MonitorCriteria
    # Validated on creation; stored configs are read back leniently.
    frequency: str = "daily"
    notification_email: Optional[str] = None
    last_checked: Optional[datetime] = None
    # JSON of the last ExtractionResult, kept verbatim between polls.
    last_results: Optional[str] = None
    next_run: Optional[datetime] = None

    @field_validator("frequency", mode="before")
    @classmethod
    def _default_frequency(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return "daily"
        return value

    def to_store(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class SweepResult(BaseModel):
    processed: int = 0
    updated: int = 0


class Notification(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    sent_to: str
    count: int
    monitor_id: str
