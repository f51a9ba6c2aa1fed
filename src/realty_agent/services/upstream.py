from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, List, Optional

import requests

from realty_agent.config import Settings
from realty_agent.errors import SourceError

from .sources import UpstreamRequest


logger = logging.getLogger(__name__)


@dataclass
class UpstreamResponse:
    items: List[Any] = field(default_factory=list)


class UpstreamClient:
    """Runs a specialized upstream scraper and returns its raw items."""

    def call(self, source: str, request: UpstreamRequest) -> UpstreamResponse:
        raise NotImplementedError


class ApifyClient(UpstreamClient):
    """Thin client for Apify actors.

    Uses the synchronous ``run-sync-get-dataset-items`` endpoint so one HTTP
    call runs the actor and returns its dataset.
    """

    def __init__(self, settings: Settings | None = None, timeout: float = 300.0) -> None:
        self.settings = settings or Settings.from_env()
        self.timeout = timeout

    def _endpoint(self, actor_id: str) -> str:
        base = self.settings.apify_base_url.rstrip("/")
        return f"{base}/v2/acts/{actor_id.replace('/', '~')}/run-sync-get-dataset-items"

    def call(self, source: str, request: UpstreamRequest) -> UpstreamResponse:
        if not self.settings.apify_token:
            raise SourceError("APIFY_TOKEN is not configured", {"source": source})
        logger.info("Running Apify actor %s for %s", request.actor_id, source)
        try:
            resp = requests.post(
                self._endpoint(request.actor_id),
                params={"token": self.settings.apify_token},
                json=request.payload,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            payload: Any = resp.json()
        except (requests.RequestException, ValueError) as e:
            raise SourceError(f"Actor {request.actor_id} failed: {e}", {"source": source}) from e
        if isinstance(payload, dict):
            payload = payload.get("items")
        if not isinstance(payload, list):
            raise SourceError(
                f"Actor {request.actor_id} returned a malformed dataset", {"source": source}
            )
        return UpstreamResponse(items=payload)


def make_upstream_client(settings: Optional[Settings] = None) -> UpstreamClient:
    return ApifyClient(settings)
