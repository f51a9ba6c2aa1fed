"""Search criteria accepted at the system boundary."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


PropertyType = Literal["house", "apartment", "condo", "townhouse", "land", "any"]
SourceId = Literal["zillow", "realtor", "redfin", "any"]


class MonitorCriteria(BaseModel):
    """Criteria stored on a monitor: where to look and what to match."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        str_strip_whitespace=True,
    )

    location: str = Field(min_length=1)
    min_price: Optional[int] = Field(default=None, ge=0)
    max_price: Optional[int] = Field(default=None, ge=0)
    property_type: PropertyType = "any"
    bedrooms: Optional[int] = Field(default=None, ge=0)
    bathrooms: Optional[int] = Field(default=None, ge=0)

    @model_validator(mode="after")
    def _check_price_range(self) -> "MonitorCriteria":
        if (
            self.min_price is not None
            and self.max_price is not None
            and self.min_price > self.max_price
        ):
            raise ValueError("minPrice must not exceed maxPrice")
        return self


class SearchCriteria(MonitorCriteria):
    """Full criteria for a single extraction run."""

    max_results: int = Field(default=10, gt=0)
    source: SourceId = "any"
    force_fallback: bool = False
