"""Charge events for pay-per-event billing.

Charging is fire-and-forget: :func:`safe_charge` logs failures and never
raises, so billing can never block a search or a monitor sweep.
"""

from __future__ import annotations

import logging
from typing import List, Optional

import requests

from realty_agent.config import Settings


logger = logging.getLogger(__name__)


class ChargeSink:
    def charge(self, event_name: str) -> None:
        raise NotImplementedError


class LoggingChargeSink(ChargeSink):
    def __init__(self) -> None:
        self.events: List[str] = []

    def charge(self, event_name: str) -> None:
        self.events.append(event_name)
        logger.info("Charge event: %s", event_name)


class ApifyChargeSink(ChargeSink):
    """Charges events against the current Apify actor run."""

    def __init__(self, token: str, run_id: str, base_url: str = "https://api.apify.com",
                 timeout: float = 15.0) -> None:
        self.token = token
        self.run_id = run_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def charge(self, event_name: str) -> None:
        resp = requests.post(
            f"{self.base_url}/v2/actor-runs/{self.run_id}/charge",
            params={"token": self.token},
            json={"eventName": event_name, "count": 1},
            timeout=self.timeout,
        )
        resp.raise_for_status()


def safe_charge(sink: Optional[ChargeSink], event_name: str, times: int = 1) -> None:
    if sink is None:
        return
    for _ in range(times):
        try:
            sink.charge(event_name)
        except Exception as e:
            logger.error("Failed to charge %s event: %s", event_name, e)
            return


def make_charge_sink(settings: Optional[Settings] = None) -> ChargeSink:
    cfg = settings or Settings.from_env()
    if cfg.apify_token and cfg.actor_run_id:
        return ApifyChargeSink(cfg.apify_token, cfg.actor_run_id, base_url=cfg.apify_base_url)
    return LoggingChargeSink()
