"""Text-level listing extraction helpers.

Everything here is pure: the functions take page text, model output or static
HTML and return listings without touching the network. The orchestrator owns
the single model call and feeds its answer to :func:`parse_model_response`.
"""

from __future__ import annotations

import json
import logging
import re
from typing import Any, List, Mapping, Sequence, Tuple
from urllib.parse import urljoin

from scrapy.selector import Selector

from realty_agent.models import (
    ADDRESS_NOT_SPECIFIED,
    NOT_SPECIFIED,
    PRICE_NOT_SPECIFIED,
    Listing,
    MonitorCriteria,
)

from .sources import as_text, first_present


logger = logging.getLogger(__name__)

SIMPLE_NOT_SPECIFIED = "Not specified in simple parsing"
# Pattern extraction always considers at least this many slots per field.
MIN_PATTERN_SLOTS = 10

PRICE_RE = re.compile(r"\$([0-9]{1,3}(,[0-9]{3})*(\.[0-9]+)?)")
ADDRESS_RE = re.compile(
    r"\d+\s+[\w\s]+(?:Avenue|Ave|Boulevard|Blvd|Circle|Cir|Court|Ct|Drive|Dr|Lane|Ln"
    r"|Place|Pl|Road|Rd|Square|Sq|Street|St|Way)(?:\s+[A-Z][a-z]+)?(?:,\s+[A-Z]{2}\s+\d{5})?",
    re.IGNORECASE,
)
BEDROOM_RE = re.compile(r"(\d+)\s*(?:bd|bed|beds|bedrooms)", re.IGNORECASE)
BATHROOM_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:ba|bath|baths|bathrooms)", re.IGNORECASE)
SQFT_RE = re.compile(r"(\d+(?:,\d+)?)\s*(?:sqft|sq ft|sq\. ft\.|square feet|sf)", re.IGNORECASE)

FENCED_JSON_RE = re.compile(r"```(?:json)?[ \t]*\r?\n([\s\S]*?)\r?\n?```")
ARRAY_START_RE = re.compile(r'\[\s*\{\s*".*?"\s*:', re.DOTALL)

MODEL_FIELDS: Tuple[Tuple[str, Sequence[str], str], ...] = (
    ("title", ("title", "address"), "Property Listing"),
    ("price", ("price",), PRICE_NOT_SPECIFIED),
    ("address", ("address",), ADDRESS_NOT_SPECIFIED),
    ("bedrooms", ("bedrooms", "beds"), NOT_SPECIFIED),
    ("bathrooms", ("bathrooms", "baths"), NOT_SPECIFIED),
    ("square_feet", ("squareFeet", "sqft", "area"), NOT_SPECIFIED),
    ("description", ("description",), ""),
    ("url", ("url", "link"), ""),
)


def describe_criteria(criteria: MonitorCriteria) -> str:
    parts = [
        f"Minimum price: ${criteria.min_price}" if criteria.min_price else "",
        f"Maximum price: ${criteria.max_price}" if criteria.max_price else "",
        f"Property type: {criteria.property_type}" if criteria.property_type != "any" else "",
        f"Minimum bedrooms: {criteria.bedrooms}" if criteria.bedrooms else "",
        f"Minimum bathrooms: {criteria.bathrooms}" if criteria.bathrooms else "",
    ]
    return ", ".join(p for p in parts if p)


def build_model_prompt(content: str, criteria: MonitorCriteria, limit: int = 12000) -> str:
    return f"""Extract real estate listings from the following webpage content.
Search criteria: {describe_criteria(criteria)}

For each property listing, extract:
1. Property address
2. Price
3. Number of bedrooms
4. Number of bathrooms
5. Square footage
6. URL of the listing (if available)

Output the results as a JSON array of property objects with fields:
title, address, price, bedrooms, bathrooms, squareFeet, description, url.

Webpage content:
{content[:limit]}
"""


def _decode_answer(text: str) -> Any:
    """Decode the first JSON value in a model answer.

    Raises ``ValueError`` when the answer holds no decodable JSON.
    """
    fenced = FENCED_JSON_RE.search(text)
    if fenced:
        candidate, start = fenced.group(1).strip(), 0
    else:
        match = ARRAY_START_RE.search(text)
        if not match:
            raise ValueError("no JSON listings in model response")
        candidate, start = text.rstrip(), match.start()
    decoder = json.JSONDecoder()
    try:
        return decoder.raw_decode(candidate, start)[0]
    except json.JSONDecodeError as e:
        # Only an array that runs out before its closing bracket is repaired.
        if e.pos < len(candidate) or not candidate.startswith("[", start):
            raise
        return decoder.raw_decode(candidate + "]", start)[0]


def parse_model_response(text: str, source: str) -> List[Listing]:
    """Parse listings out of a model answer.

    Looks for a fenced JSON block first, then for a bare array of objects
    and decodes just that value, ignoring any prose after it. An array cut
    off before its closing bracket gets one appended. Returns an empty list
    when nothing parses.
    """
    try:
        parsed = _decode_answer(text or "")
    except ValueError as e:
        logger.warning("Could not parse JSON from model response: %s", e)
        return []
    items = parsed if isinstance(parsed, list) else [parsed]
    tag = f"{source or 'real-estate-site'} (model extraction)"
    listings: List[Listing] = []
    for item in items:
        if not isinstance(item, Mapping):
            continue
        listings.append(Listing(source=tag, **_map_fields(item, MODEL_FIELDS)))
    return listings


def _map_fields(item: Mapping[str, Any], fields: Sequence[Tuple[str, Sequence[str], str]]) -> dict[str, str]:
    out: dict[str, str] = {}
    for name, keys, placeholder in fields:
        val = first_present(item, keys)
        out[name] = as_text(val) if val is not None else placeholder
    return out


def extract_with_patterns(content: str, source: str) -> List[Listing]:
    """Build listings from independent regex scans of page text.

    Prices, addresses, room counts and areas are matched separately and then
    zipped by position, so a listing may pair one card's price with another
    card's address. The number of listings is bounded by the price matches;
    the other fields pad with placeholders.
    """
    prices = [m.group(0) for m in PRICE_RE.finditer(content)]
    addresses = [m.group(0) for m in ADDRESS_RE.finditer(content)]
    bedrooms = [m.group(1) for m in BEDROOM_RE.finditer(content)]
    bathrooms = [m.group(1) for m in BATHROOM_RE.finditer(content)]
    sqfts = [m.group(1) for m in SQFT_RE.finditer(content)]

    total = min(
        len(prices),
        max(len(addresses), MIN_PATTERN_SLOTS),
        max(len(bedrooms), MIN_PATTERN_SLOTS),
        max(len(bathrooms), MIN_PATTERN_SLOTS),
        max(len(sqfts), MIN_PATTERN_SLOTS),
    )
    logger.debug(
        "Pattern scan: %d prices, %d addresses, %d beds, %d baths, %d sqft",
        len(prices), len(addresses), len(bedrooms), len(bathrooms), len(sqfts),
    )

    def _at(values: List[str], i: int, placeholder: str = NOT_SPECIFIED) -> str:
        return values[i] if i < len(values) else placeholder

    area = source or "listed area"
    return [
        Listing(
            title=f"Property in {area}",
            price=_at(prices, i, PRICE_NOT_SPECIFIED),
            address=_at(addresses, i, ADDRESS_NOT_SPECIFIED),
            bedrooms=_at(bedrooms, i),
            bathrooms=_at(bathrooms, i),
            square_feet=_at(sqfts, i),
            description=f"Property extracted from {source or 'real estate website'} using pattern matching.",
            url="",
            source=f"{source or 'real-estate-site'} (pattern extraction)",
        )
        for i in range(total)
    ]


def parse_listing_cards(html: str, selector: str, base_url: str, source: str) -> List[Listing]:
    """Pull title, price and link out of listing cards in static HTML."""
    sel = Selector(text=html)
    listings: List[Listing] = []
    for card in sel.css(selector):
        link = card.css("a")
        first = link[0] if link else None
        title = (first.xpath("string()").get() or "").strip() if first is not None else ""
        price = PRICE_RE.search(card.xpath("string()").get() or "")
        href = first.attrib.get("href") if first is not None else None
        listings.append(
            Listing(
                title=title or "Property Listing",
                price=price.group(0) if price else PRICE_NOT_SPECIFIED,
                address=SIMPLE_NOT_SPECIFIED,
                bedrooms=SIMPLE_NOT_SPECIFIED,
                bathrooms=SIMPLE_NOT_SPECIFIED,
                square_feet=SIMPLE_NOT_SPECIFIED,
                description=SIMPLE_NOT_SPECIFIED,
                url=urljoin(base_url, href) if href else "",
                source=f"{source} (simple parsing fallback)",
            )
        )
    return listings
