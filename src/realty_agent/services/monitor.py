"""Monitor lifecycle: creation, eligibility, novelty diffing and rescheduling.

A sweep walks the ids in ``monitors-list`` one at a time. For each monitor that
is due it runs a search, diffs the listings against the previous poll by URL,
notifies when something new shows up, and writes back ``lastChecked``,
``lastResults`` and ``nextRun``. A monitor whose poll fails keeps its previous
state and is retried on the next sweep.
"""

from __future__ import annotations

import logging
import random
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, List, Optional

from pydantic import ValidationError

from realty_agent.config import Settings
from realty_agent.errors import MonitorNotFound, MonitorPollError
from realty_agent.models import (
    ExtractionResult,
    Listing,
    MonitorConfig,
    MonitorRequest,
    Notification,
    SearchCriteria,
    SweepResult,
)
from realty_agent.repositories import MONITORS_LIST_KEY, KeyValueStore

from .billing import ChargeSink, safe_charge
from .orchestrator import FallbackOrchestrator


logger = logging.getLogger(__name__)

DEFAULT_FREQUENCY = "daily"
FREQUENCY_HOURS = {"realtime": 0.25, "daily": 24.0, "weekly": 168.0}
FREQUENCY_INTERVALS = {
    "realtime": timedelta(minutes=15),
    "daily": timedelta(days=1),
    "weekly": timedelta(days=7),
}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _aware(dt: datetime) -> datetime:
    return dt if dt.tzinfo is not None else dt.replace(tzinfo=timezone.utc)


def should_run(config: MonitorConfig, now: datetime) -> bool:
    """True when the monitor has never run or its frequency interval has elapsed."""
    if config.last_checked is None:
        return True
    elapsed_hours = (_aware(now) - _aware(config.last_checked)).total_seconds() / 3600
    threshold = FREQUENCY_HOURS.get(config.frequency, FREQUENCY_HOURS[DEFAULT_FREQUENCY])
    return elapsed_hours >= threshold


def next_run_time(frequency: str, now: datetime) -> datetime:
    return _aware(now) + FREQUENCY_INTERVALS.get(frequency, FREQUENCY_INTERVALS[DEFAULT_FREQUENCY])


def find_new(current: Iterable[Listing], previous: Optional[Iterable[Listing]]) -> List[Listing]:
    """Listings in ``current`` not seen in ``previous``, in ``current`` order.

    Identity is the URL. Listings without a URL cannot be matched and are
    always reported as new; with no previous poll everything is new.
    """
    current = list(current)
    previous = list(previous or [])
    if not previous:
        return current
    seen = {l.url for l in previous if l.url}
    return [l for l in current if not l.url or l.url not in seen]


def previous_listings(config: MonitorConfig) -> List[Listing]:
    if not config.last_results:
        return []
    try:
        return ExtractionResult.from_json(config.last_results).listings
    except ValidationError as e:
        logger.warning("Ignoring unreadable lastResults on monitor %s: %s", config.id, e)
        return []


def generate_monitor_id(now: Optional[datetime] = None) -> str:
    ts = _aware(now or utcnow())
    return f"monitor-{int(ts.timestamp() * 1000)}-{random.randint(0, 9999)}"


def notify_user(config: MonitorConfig, new_listings: List[Listing], charges: Optional[ChargeSink] = None) -> Notification:
    """Stand-in for email/webhook delivery: logs the alert and charges for it."""
    recipient = config.notification_email or "console"
    logger.info("Would notify %s about %d new listings", config.notification_email or "user", len(new_listings))
    safe_charge(charges, "monitor-alert")
    if config.notification_email:
        logger.info("Email would be sent to: %s", config.notification_email)
    if new_listings:
        first = new_listings[0]
        logger.info("Example new listing: %s | %s | %s", first.title, first.price, first.url or "-")
    return Notification(sent_to=recipient, count=len(new_listings), monitor_id=config.id)


def format_status(config: MonitorConfig) -> str:
    c = config.criteria
    return "\n".join(
        [
            f"Monitor status for {config.id}:",
            f"- Location: {c.location}",
            f"- Property type: {c.property_type}",
            f"- Price range: ${c.min_price or 'any'} - ${c.max_price or 'any'}",
            f"- Frequency: {config.frequency}",
            f"- Last checked: {config.last_checked.isoformat() if config.last_checked else 'Never'}",
            f"- Next run: {config.next_run.isoformat() if config.next_run else 'Not scheduled'}",
            f"- Email notifications: {config.notification_email or 'Not set up'}",
        ]
    )


def describe_setup(config: MonitorConfig) -> str:
    when = "as soon as" if config.frequency == "realtime" else config.frequency
    return (
        f"Successfully set up monitoring for real estate listings in {config.criteria.location}. "
        f"You will be notified at {config.notification_email or 'your registered email'} "
        f"{when} new matching properties become available. Your monitor ID is: {config.id}"
    )


class MonitorEngine:
    def __init__(
        self,
        store: KeyValueStore,
        orchestrator: Optional[FallbackOrchestrator],
        charges: Optional[ChargeSink] = None,
        settings: Optional[Settings] = None,
        clock: Callable[[], datetime] = utcnow,
    ) -> None:
        self.store = store
        self.orchestrator = orchestrator
        self.charges = charges
        self.settings = settings or Settings()
        self.clock = clock

    def create_monitor(self, request: MonitorRequest) -> MonitorConfig:
        now = self.clock()
        config = MonitorConfig(
            id=request.monitor_id or generate_monitor_id(now),
            created_at=now,
            criteria=request.criteria(),
            frequency=request.frequency,
            notification_email=request.notification_email,
            next_run=next_run_time(request.frequency, now),
        )
        logger.info("Setting up %s monitor %s for %s", config.frequency, config.id, config.criteria.location)
        self.save(config)
        ids = list(self.store.get(MONITORS_LIST_KEY) or [])
        if config.id not in ids:
            ids.append(config.id)
            self.store.set(MONITORS_LIST_KEY, ids)
        safe_charge(self.charges, "monitor-created")
        return config

    def load(self, monitor_id: str) -> Optional[MonitorConfig]:
        raw = self.store.get(monitor_id)
        if raw is None:
            return None
        return MonitorConfig.model_validate(raw)

    def save(self, config: MonitorConfig) -> None:
        self.store.set(config.id, config.to_store())

    def get_status(self, monitor_id: str) -> MonitorConfig:
        config = self.load(monitor_id)
        if config is None:
            raise MonitorNotFound(monitor_id)
        safe_charge(self.charges, "task-completed")
        return config

    def criteria_for(self, config: MonitorConfig) -> SearchCriteria:
        return SearchCriteria(
            **config.criteria.model_dump(),
            max_results=self.settings.monitor_max_results,
            source="any",
        )

    def poll(self, config: MonitorConfig, now: datetime) -> List[Listing]:
        """Run one search for ``config`` and persist the outcome.

        Returns the new listings. Raises :class:`MonitorPollError` without
        touching the stored config when extraction failed.
        """
        if self.orchestrator is None:
            raise MonitorPollError("No extraction pipeline configured", {"monitor_id": config.id})
        result = self.orchestrator.extract(self.criteria_for(config))
        if result.error:
            raise MonitorPollError(
                f"Extraction failed for monitor {config.id}: {result.error}", {"monitor_id": config.id}
            )
        new_listings = find_new(result.listings, previous_listings(config))
        config.last_checked = _aware(now)
        config.last_results = result.to_json()
        config.next_run = next_run_time(config.frequency, now)
        self.save(config)
        return new_listings

    def process_all_monitors(self, now: Optional[datetime] = None) -> SweepResult:
        now = now or self.clock()
        ids = self.store.get(MONITORS_LIST_KEY) or []
        if not ids:
            logger.info("No active monitors found")
            return SweepResult()
        logger.info("Found %d active monitors to process", len(ids))

        outcome = SweepResult()
        for monitor_id in ids:
            try:
                config = self.load(monitor_id)
                if config is None:
                    logger.warning("Monitor %s not found but was in the list", monitor_id)
                    continue
                if not should_run(config, now):
                    logger.info("Skipping monitor %s as it's not scheduled to run yet", monitor_id)
                    continue
                logger.info("Processing monitor %s for %s", monitor_id, config.criteria.location)
                new_listings = self.poll(config, now)
                outcome.processed += 1
                if new_listings:
                    logger.info("Found %d new listings for monitor %s", len(new_listings), monitor_id)
                    notify_user(config, new_listings, self.charges)
                    outcome.updated += 1
                else:
                    logger.info("No new listings found for monitor %s", monitor_id)
            except Exception:
                logger.exception("Error processing monitor %s", monitor_id)
        logger.info(
            "Completed processing monitors. Processed: %d, Updated: %d", outcome.processed, outcome.updated
        )
        return outcome
