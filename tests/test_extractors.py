from __future__ import annotations

from realty_agent.models import SearchCriteria
from realty_agent.services.extractors import (
    SIMPLE_NOT_SPECIFIED,
    build_model_prompt,
    describe_criteria,
    extract_with_patterns,
    parse_listing_cards,
    parse_model_response,
)


PAGE_TEXT = (
    "Listing A: $450,000. 12 Oak Ave.\n"
    "Listing B: $525,000. 34 Pine Rd.\n"
    "Listing C: $610,500. 56 Elm Way.\n"
    "Also nearby: 78 Lake Dr. 90 Hill Ln.\n"
)

CARDS_HTML = """
<html>
  <body>
    <article data-test="property-card">
      <a href="/homedetails/123-Main-St/1_zpid/"><span>123 Main St</span></a>
      <span class="price">$799,000</span>
    </article>
    <article data-test="property-card">
      <a href="https://www.zillow.com/homedetails/2_zpid/">456 Pine Ave</a>
    </article>
    <div class="ad">$1 per month</div>
  </body>
</html>
"""


def test_patterns_bounded_by_price_matches() -> None:
    listings = extract_with_patterns(PAGE_TEXT, "zillow")

    assert len(listings) == 3
    assert [l.price for l in listings] == ["$450,000", "$525,000", "$610,500"]
    assert listings[0].address == "12 Oak Ave"
    assert listings[2].address == "56 Elm Way"
    assert all(l.bedrooms == "Not specified" for l in listings)
    assert all(l.url == "" for l in listings)
    assert listings[0].source == "zillow (pattern extraction)"
    assert listings[0].title == "Property in zillow"


def test_patterns_pick_up_room_counts_and_area() -> None:
    listings = extract_with_patterns("$1,250,000 3 bd 2.5 ba 1,800 sqft", "redfin")

    assert len(listings) == 1
    only = listings[0]
    assert only.price == "$1,250,000"
    assert only.bedrooms == "3"
    assert only.bathrooms == "2.5"
    assert only.square_feet == "1,800"
    assert only.address == "Address not specified"


def test_patterns_cap_at_ten_when_other_fields_are_sparse() -> None:
    text = " | ".join(f"${100 + i},000" for i in range(12))

    assert len(extract_with_patterns(text, "any")) == 10


def test_patterns_without_prices_yield_nothing() -> None:
    assert extract_with_patterns("3 bd 2 ba 12 Oak Ave", "zillow") == []


def test_model_response_in_fenced_block() -> None:
    text = (
        "Here are the listings:\n"
        "```json\n"
        '[{"address": "1 Main St", "price": "$500,000", "beds": 3, "baths": 2, '
        '"sqft": 1400, "link": "https://example.com/1"}]\n'
        "```\n"
        "Let me know if you need more."
    )

    listings = parse_model_response(text, "zillow")

    assert len(listings) == 1
    l = listings[0]
    assert l.title == "1 Main St"
    assert l.bedrooms == "3"
    assert l.bathrooms == "2"
    assert l.square_feet == "1400"
    assert l.url == "https://example.com/1"
    assert l.source == "zillow (model extraction)"


def test_model_response_bare_array() -> None:
    text = 'Sure. [{"title": "A", "price": "$1"}, {"title": "B", "price": "$2"}]\nDone.'

    listings = parse_model_response(text, "realtor")

    assert [l.title for l in listings] == ["A", "B"]
    assert listings[1].price == "$2"
    assert listings[0].address == "Address not specified"


def test_model_response_unterminated_array_is_closed() -> None:
    text = 'Listings: [{"title": "A", "price": "$1"}, {"title": "B", "price": "$2"}'

    listings = parse_model_response(text, "zillow")

    assert [l.title for l in listings] == ["A", "B"]


def test_model_response_ignores_brackets_in_trailing_prose() -> None:
    text = 'Here you go: [{"title": "A", "price": "$1"}]\nSources: [1] zillow.com'

    listings = parse_model_response(text, "zillow")

    assert [l.title for l in listings] == ["A"]


def test_model_response_unterminated_array_with_nested_lists() -> None:
    text = '[{"title": "A", "photos": ["p1"]}, {"title": "B", "price": "$2"}'

    listings = parse_model_response(text, "zillow")

    assert [l.title for l in listings] == ["A", "B"]
    assert listings[1].price == "$2"


def test_model_response_truncated_mid_object() -> None:
    assert parse_model_response('[{"title": "A"}, {"title": "B", "pri', "zillow") == []


def test_model_response_single_object() -> None:
    text = '```\n{"title": "Loft", "price": "$300,000"}\n```'

    listings = parse_model_response(text, "any")

    assert len(listings) == 1
    assert listings[0].title == "Loft"


def test_model_response_without_json() -> None:
    assert parse_model_response("I could not find any listings on this page.", "zillow") == []
    assert parse_model_response("", "zillow") == []


def test_listing_cards_resolve_links_against_page_url() -> None:
    listings = parse_listing_cards(
        CARDS_HTML,
        'article[data-test="property-card"]',
        "https://www.zillow.com/homes/Austin%2C%20TX_rb/",
        "zillow",
    )

    assert len(listings) == 2
    first, second = listings
    assert first.title == "123 Main St"
    assert first.price == "$799,000"
    assert first.url == "https://www.zillow.com/homedetails/123-Main-St/1_zpid/"
    assert first.address == SIMPLE_NOT_SPECIFIED
    assert first.source == "zillow (simple parsing fallback)"
    assert second.price == "Price not specified"
    assert second.url == "https://www.zillow.com/homedetails/2_zpid/"


def test_listing_cards_none_on_page() -> None:
    assert parse_listing_cards("<html><body></body></html>", "div.HomeCard", "https://x", "redfin") == []


def test_model_prompt_includes_criteria_and_truncates_content() -> None:
    criteria = SearchCriteria(location="Seattle, WA", min_price=700000, max_price=1200000, bedrooms=2)

    prompt = build_model_prompt("Z" * 20000, criteria, limit=12000)

    assert "Minimum price: $700000" in prompt
    assert "Maximum price: $1200000" in prompt
    assert "Minimum bedrooms: 2" in prompt
    assert prompt.count("Z") == 12000


def test_describe_criteria_skips_unset_fields() -> None:
    assert describe_criteria(SearchCriteria(location="Austin, TX")) == ""
    assert describe_criteria(SearchCriteria(location="Austin, TX", property_type="condo")) == "Property type: condo"
