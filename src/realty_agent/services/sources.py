"""Upstream source adapters: request shapes, search URLs and item mapping."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from realty_agent.errors import SourceError
from realty_agent.models import (
    ADDRESS_NOT_SPECIFIED,
    NOT_SPECIFIED,
    PRICE_NOT_SPECIFIED,
    Listing,
    SearchCriteria,
)


ACTORS = {
    "zillow": "maxcopell/zillow-scraper",
    "redfin": "dtrungtin/redfin-scraper",
    "realtor": "dtrungtin/realtor-scraper",
}
# Used when the caller does not pick a source.
COMPREHENSIVE_ACTOR = "scrapestorm/zillow-search-scraper-all-in-one"

PREMIUM_SOURCES = ("redfin", "realtor")

# Waited for after rendering; the default covers zillow and generic card markup.
CONTENT_SELECTORS = {
    "zillow": 'article[data-test="property-card"]',
    "realtor": 'div[data-testid="property-card"]',
    "redfin": "div.HomeCard",
}
DEFAULT_CONTENT_SELECTOR = 'article[data-test="property-card"], div.property-card'
DEFAULT_CARD_SELECTOR = 'article[data-test="property-card"]'

# Ordered candidate keys per field, first present wins.
ITEM_FIELDS: Tuple[Tuple[str, Sequence[str], str], ...] = (
    ("title", ("name", "address"), "Property Listing"),
    ("price", ("price", "listPrice"), PRICE_NOT_SPECIFIED),
    ("address", ("address", "streetAddress"), ADDRESS_NOT_SPECIFIED),
    ("bedrooms", ("bedrooms", "beds"), NOT_SPECIFIED),
    ("bathrooms", ("bathrooms", "baths"), NOT_SPECIFIED),
    ("square_feet", ("livingArea", "sqft"), NOT_SPECIFIED),
    ("description", ("description",), ""),
    ("url", ("detailUrl", "url"), ""),
    ("image_url", ("imgSrc", "imageUrl"), ""),
    ("listing_agent", ("brokerName", "agent"), NOT_SPECIFIED),
    ("listing_status", ("homeStatus", "status"), "For Sale"),
)


@dataclass
class UpstreamRequest:
    actor_id: str
    payload: dict[str, Any] = field(default_factory=dict)


def first_present(item: Mapping[str, Any], keys: Iterable[str]) -> Any:
    """Return the value of the first key whose value is not None or empty."""
    for key in keys:
        val = item.get(key)
        if val is None:
            continue
        if isinstance(val, str) and not val.strip():
            continue
        return val
    return None


def as_text(value: Any) -> str:
    """Render an upstream value as listing text.

    Structured addresses (``{"streetAddress": ..., "city": ...}``) are
    flattened to ``"street, city, ST zip"``.
    """
    if isinstance(value, Mapping):
        street = value.get("streetAddress") or value.get("line") or ""
        city = value.get("city") or ""
        region = " ".join(
            str(p) for p in (value.get("state"), value.get("zipcode") or value.get("postalCode")) if p
        )
        return ", ".join(str(p) for p in (street, city, region) if p)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _drop_none(d: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in d.items() if v is not None}


def _location_path(location: str) -> str:
    # Matches browser encodeURIComponent: commas and spaces escaped.
    return quote(location, safe="!'()*~")


def redfin_city_url(location: str) -> str:
    return f"https://www.redfin.com/city/{_location_path(location)}"


def build_request(criteria: SearchCriteria, source: Optional[str] = None) -> UpstreamRequest:
    """Build the upstream actor call for ``source`` (defaults to ``criteria.source``)."""
    src = source or criteria.source
    home_type = [criteria.property_type.upper()] if criteria.property_type != "any" else None

    if src == "zillow":
        filters: dict[str, Any] = {
            "isForSale": True,
            "price": _drop_none({"min": criteria.min_price, "max": criteria.max_price}),
        }
        if criteria.bedrooms:
            filters["beds"] = {"min": criteria.bedrooms}
        if criteria.bathrooms:
            filters["baths"] = {"min": criteria.bathrooms}
        if home_type:
            filters["homeType"] = home_type
        payload = {
            "searchTerms": [criteria.location],
            "filters": filters,
            "maxItems": criteria.max_results,
        }
    elif src == "redfin":
        payload = {
            "startUrls": [{"url": redfin_city_url(criteria.location)}],
            "maxItems": criteria.max_results,
            "includeFilters": True,
            "filters": _drop_none(
                {
                    "minPrice": criteria.min_price,
                    "maxPrice": criteria.max_price,
                    "minBeds": criteria.bedrooms,
                    "minBaths": criteria.bathrooms,
                }
            ),
        }
    elif src == "realtor":
        payload = {
            "search": criteria.location,
            "maxItems": criteria.max_results,
            "filters": _drop_none(
                {
                    "minPrice": criteria.min_price,
                    "maxPrice": criteria.max_price,
                    "minBeds": criteria.bedrooms,
                    "minBaths": criteria.bathrooms,
                }
            ),
        }
    else:
        payload = {
            "searchTerms": [criteria.location],
            "filters": _drop_none(
                {
                    "minPrice": criteria.min_price,
                    "maxPrice": criteria.max_price,
                    "beds": criteria.bedrooms,
                    "baths": criteria.bathrooms,
                    "homeType": home_type,
                }
            ),
            "maxItems": criteria.max_results,
        }
    return UpstreamRequest(actor_id=ACTORS.get(src, COMPREHENSIVE_ACTOR), payload=payload)


def map_item(item: Any, source: str) -> Listing:
    if not isinstance(item, Mapping):
        raise SourceError(
            f"Malformed item from {source}: expected an object, got {type(item).__name__}",
            {"source": source},
        )
    values: dict[str, str] = {}
    for name, keys, placeholder in ITEM_FIELDS:
        val = first_present(item, keys)
        values[name] = as_text(val) if val is not None else placeholder
    return Listing(source=source, **values)


def map_items(items: Iterable[Any], source: str) -> List[Listing]:
    """Map upstream items to listings in upstream order."""
    return [map_item(it, source) for it in items]


def search_url(criteria: SearchCriteria) -> str:
    """Deterministic search page URL for the rendered and plain HTTP tiers."""
    loc = _location_path(criteria.location)
    if criteria.source == "redfin":
        # Redfin filters live in path segments we cannot derive; city page only.
        return redfin_city_url(criteria.location)
    params = urlencode(
        [
            (key, val)
            for key, val in (
                ("price_min", criteria.min_price),
                ("price_max", criteria.max_price),
                ("beds_min", criteria.bedrooms),
                ("baths_min", criteria.bathrooms),
            )
            if val
        ]
    )
    if criteria.source == "realtor":
        return f"https://www.realtor.com/realestateandhomes-search/{loc}?{params}"
    return f"https://www.zillow.com/homes/{loc}_rb/?{params}"


def content_selector(source: str) -> str:
    return CONTENT_SELECTORS.get(source, DEFAULT_CONTENT_SELECTOR)


def card_selector(source: str) -> str:
    return CONTENT_SELECTORS.get(source, DEFAULT_CARD_SELECTOR)
