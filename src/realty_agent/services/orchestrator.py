"""Tiered listing extraction.

Tiers run in a fixed order, from the most structured source to the most
resilient one:

1. specialized upstream scraper (skipped with ``force_fallback``)
2. rendered browser page, whose text feeds
3. model extraction, then
4. pattern extraction
5. plain HTTP fetch with card selectors, only when rendering failed

The chain is a tuple of :class:`Tier` entries walked by one driver loop. A tier
returns a result to stop, ``None`` to pass on, or raises to record a failure
and pass on. :meth:`FallbackOrchestrator.extract` never raises.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional, Tuple

from realty_agent.config import Settings
from realty_agent.errors import RenderError, SourceError
from realty_agent.models import ExtractionResult, SearchCriteria

from .billing import ChargeSink, make_charge_sink, safe_charge
from .extractors import build_model_prompt, extract_with_patterns, parse_listing_cards, parse_model_response
from .http_fetch import HttpClient, RequestsHttpClient
from .llm import ModelClient, get_model_client
from .renderer import Renderer, RenderOptions, SeleniumRenderer, lazy_load_hook
from .sources import PREMIUM_SOURCES, build_request, card_selector, content_selector, map_items, search_url
from .upstream import UpstreamClient, make_upstream_client


logger = logging.getLogger(__name__)

CHARGE_BATCH_SIZE = 100
MAX_LISTING_CHARGES = 20


@dataclass
class ExtractionContext:
    search_url: str
    page_text: Optional[str] = None
    failures: List[str] = field(default_factory=list)


TierFn = Callable[[SearchCriteria, ExtractionContext], Optional[ExtractionResult]]
Predicate = Callable[[SearchCriteria, ExtractionContext], bool]


def _always(criteria: SearchCriteria, ctx: ExtractionContext) -> bool:
    return True


def _not_forced(criteria: SearchCriteria, ctx: ExtractionContext) -> bool:
    return not criteria.force_fallback


def _has_page_text(criteria: SearchCriteria, ctx: ExtractionContext) -> bool:
    return ctx.page_text is not None


def _render_failed(criteria: SearchCriteria, ctx: ExtractionContext) -> bool:
    return ctx.page_text is None


@dataclass(frozen=True)
class Tier:
    name: str
    run: TierFn
    applies: Predicate = _always


class FallbackOrchestrator:
    def __init__(
        self,
        upstream: UpstreamClient,
        renderer: Renderer,
        http: HttpClient,
        model: Optional[ModelClient] = None,
        charges: Optional[ChargeSink] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.upstream = upstream
        self.renderer = renderer
        self.http = http
        self.model = model
        self.charges = charges
        self.settings = settings or Settings()
        self.tiers: Tuple[Tier, ...] = (
            Tier("specialized source", self.specialized_source, _not_forced),
            Tier("rendered browser", self.rendered_browser),
            Tier("model extraction", self.model_extraction, _has_page_text),
            Tier("pattern extraction", self.pattern_extraction, _has_page_text),
            Tier("simple http", self.simple_http, _render_failed),
        )

    def extract(self, criteria: SearchCriteria) -> ExtractionResult:
        ctx = ExtractionContext(search_url=search_url(criteria))
        logger.info(
            "Searching listings in %s (source=%s, force_fallback=%s)",
            criteria.location, criteria.source, criteria.force_fallback,
        )
        if criteria.force_fallback:
            logger.info("Force fallback flag is set, skipping specialized sources")
        for tier in self.tiers:
            if not tier.applies(criteria, ctx):
                continue
            try:
                result = tier.run(criteria, ctx)
            except Exception as e:
                logger.warning("Tier %s failed: %s", tier.name, e)
                ctx.failures.append(f"{tier.name}: {e}")
                continue
            if result is not None:
                logger.info("Tier %s produced %d listings", tier.name, result.count)
                return result
        return ExtractionResult.failed("All extraction tiers failed. " + "; ".join(ctx.failures))

    def specialized_source(self, criteria: SearchCriteria, ctx: ExtractionContext) -> ExtractionResult:
        try:
            request = build_request(criteria)
            response = self.upstream.call(criteria.source, request)
            listings = map_items(response.items, criteria.source)
            if not listings:
                raise SourceError(f"Actor {request.actor_id} returned no items", {"source": criteria.source})
        except Exception:
            safe_charge(self.charges, "fallback-extraction")
            raise
        self._charge_for_items(len(listings), criteria.source)
        return ExtractionResult(listings=listings)

    def _charge_for_items(self, n: int, source: str) -> None:
        safe_charge(self.charges, "data-volume", times=math.ceil(n / CHARGE_BATCH_SIZE))
        if source in PREMIUM_SOURCES:
            safe_charge(self.charges, "premium-source")
        safe_charge(self.charges, "listing-found", times=min(n, MAX_LISTING_CHARGES))

    def rendered_browser(self, criteria: SearchCriteria, ctx: ExtractionContext) -> None:
        logger.info("Rendering %s", ctx.search_url)
        options = RenderOptions(
            navigation_timeout=self.settings.render_timeout_secs,
            headless=True,
            after_load=lazy_load_hook(content_selector(criteria.source), self.settings.selector_timeout_secs),
        )
        page = self.renderer.render(ctx.search_url, options)
        if not page.text or not page.text.strip():
            raise RenderError("No content was loaded from the page")
        ctx.page_text = page.text
        return None

    def model_extraction(self, criteria: SearchCriteria, ctx: ExtractionContext) -> Optional[ExtractionResult]:
        if self.model is None:
            logger.info("No model client configured, skipping model extraction")
            return None
        prompt = build_model_prompt(ctx.page_text or "", criteria, self.settings.model_text_limit)
        response = self.model.complete(prompt)
        listings = parse_model_response(response.text, criteria.source)
        if not listings:
            return None
        return ExtractionResult(
            listings=listings,
            note="Results extracted from the rendered page with model processing",
        )

    def pattern_extraction(self, criteria: SearchCriteria, ctx: ExtractionContext) -> ExtractionResult:
        listings = extract_with_patterns(ctx.page_text or "", criteria.source)
        return ExtractionResult(listings=listings, note="Results extracted using pattern matching")

    def simple_http(self, criteria: SearchCriteria, ctx: ExtractionContext) -> ExtractionResult:
        headers = {
            "User-Agent": self.settings.user_agent,
            "Accept-Language": "en-US,en;q=0.9",
        }
        page = self.http.get(ctx.search_url, headers)
        listings = parse_listing_cards(
            page.html, card_selector(criteria.source), page.url or ctx.search_url, criteria.source
        )
        return ExtractionResult(
            listings=listings,
            note="Results from simple parsing fallback may be limited in detail",
        )


def build_orchestrator(settings: Optional[Settings] = None, charges: Optional[ChargeSink] = None) -> FallbackOrchestrator:
    cfg = settings or Settings.from_env()
    return FallbackOrchestrator(
        upstream=make_upstream_client(cfg),
        renderer=SeleniumRenderer(),
        http=RequestsHttpClient(),
        model=get_model_client(cfg),
        charges=charges if charges is not None else make_charge_sink(cfg),
        settings=cfg,
    )
