"""Data models for normalized listings and extraction results."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field
from pydantic.alias_generators import to_camel


NOT_SPECIFIED = "Not specified"
PRICE_NOT_SPECIFIED = "Price not specified"
ADDRESS_NOT_SPECIFIED = "Address not specified"


class Listing(BaseModel):
    """A single listing in the common schema, whatever tier produced it.

    Prices, room counts and areas stay free-form strings: sources disagree on
    formats and frequently report nothing at all.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    title: str
    price: str = PRICE_NOT_SPECIFIED
    address: str = ADDRESS_NOT_SPECIFIED
    bedrooms: str = NOT_SPECIFIED
    bathrooms: str = NOT_SPECIFIED
    square_feet: str = NOT_SPECIFIED
    description: str = ""
    # Identity key for novelty diffs; empty when the tier could not find one.
    url: str = ""
    source: str
    image_url: Optional[str] = None
    listing_agent: Optional[str] = None
    listing_status: Optional[str] = None


class ExtractionResult(BaseModel):
    """Outcome of one extraction run.

    ``count`` is always derived from ``listings``. A result with ``error`` set
    is the terminal output of a run where every tier failed.
    """

    model_config = ConfigDict(populate_by_name=True)

    listings: List[Listing] = Field(default_factory=list)
    note: Optional[str] = None
    error: Optional[str] = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def count(self) -> int:
        return len(self.listings)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    @classmethod
    def from_json(cls, raw: str) -> "ExtractionResult":
        return cls.model_validate_json(raw)

    @classmethod
    def failed(cls, error: str) -> "ExtractionResult":
        return cls(listings=[], error=error)
