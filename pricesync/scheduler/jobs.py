"""APScheduler jobs — deferred Odoo pushes with retry/backoff and an optional periodic pull."""

import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional, Sequence

import pytz
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from apscheduler.triggers.interval import IntervalTrigger

from pricesync.config import get_settings
from pricesync.domain.repositories.product_repository import PushDispatcher
from pricesync.infrastructure.database import SessionLocal

settings = get_settings()
logger = logging.getLogger(__name__)
tz = pytz.timezone(settings.TIMEZONE)

scheduler = AsyncIOScheduler(timezone=tz)


def run_push(product_id: int, session_factory: Callable = SessionLocal, client=None):
    """Push one product in its own session. Exceptions propagate to the dispatcher."""
    from pricesync.application.services.sync_service import build_sync_service

    db = session_factory()
    service = None
    try:
        service = build_sync_service(db, client=client)
        return service.push_by_id(product_id)
    finally:
        # a client built here is ours to close
        if service is not None and client is None:
            service.client.close()
        db.close()


class SchedulerPushDispatcher(PushDispatcher):
    """Runs pushes as one-shot scheduler jobs.

    A push that raises is scheduled again after ``backoff[attempt - 1]``
    seconds until ``attempts`` runs happened. A push Odoo rejected
    (``ok=False``) is final and not retried.
    """

    def __init__(
        self,
        scheduler=scheduler,
        runner: Callable[[int], object] = run_push,
        attempts: Optional[int] = None,
        backoff: Optional[Sequence[int]] = None,
    ):
        self.scheduler = scheduler
        self.runner = runner
        self.attempts = attempts or settings.SYNC_MAX_ATTEMPTS
        self.backoff = list(backoff or settings.SYNC_RETRY_BACKOFF)

    def enqueue_push(self, product_id: int, attempt: int = 1, delay: int = 0) -> None:
        run_date = datetime.now(tz) + timedelta(seconds=delay)
        self.scheduler.add_job(
            self.run,
            trigger=DateTrigger(run_date=run_date, timezone=tz),
            args=[product_id, attempt],
            id=f"push_product_{product_id}_{uuid.uuid4().hex[:8]}",
            name=f"Odoo push #{product_id} (attempt {attempt})",
            misfire_grace_time=None,
        )

    def run(self, product_id: int, attempt: int = 1) -> None:
        try:
            self.runner(product_id)
        except Exception as e:
            if attempt >= self.attempts:
                logger.error(f"Odoo push for product {product_id} gave up after {attempt} attempts: {e}")
                return

            delay = self.backoff[min(attempt - 1, len(self.backoff) - 1)] if self.backoff else 0
            logger.warning(f"Odoo push for product {product_id} failed (attempt {attempt}), retrying in {delay}s: {e}")
            self.enqueue_push(product_id, attempt=attempt + 1, delay=delay)


class InlinePushDispatcher(PushDispatcher):
    """Pushes right away in the calling thread. Single attempt."""

    def __init__(self, runner: Callable[[int], object] = run_push):
        self.runner = runner

    def enqueue_push(self, product_id: int) -> None:
        try:
            self.runner(product_id)
        except Exception as e:
            # failed state and sync log are already stored by the sync service
            logger.error(f"Inline Odoo push for product {product_id} failed: {e}")


_dispatcher: Optional[PushDispatcher] = None


def get_push_dispatcher() -> PushDispatcher:
    """Dispatcher selected by SYNC_DISPATCH_MODE ("queue" or "inline")."""
    global _dispatcher
    if _dispatcher is None:
        if settings.SYNC_DISPATCH_MODE == "inline":
            _dispatcher = InlinePushDispatcher()
        else:
            _dispatcher = SchedulerPushDispatcher()
    return _dispatcher


def periodic_pull_job(session_factory: Callable = SessionLocal, client=None):
    """Periodic job: import products changed in Odoo since roughly the last run."""
    from pricesync.application.services.sync_service import build_sync_service
    from pricesync.domain.schemas.sync import PullFilters, PullOptions

    interval = settings.ODOO_PULL_INTERVAL_MINUTES
    logger.info(f"Running periodic Odoo pull at {datetime.now(tz).strftime('%Y-%m-%d %H:%M')}")

    db = session_factory()
    service = None
    try:
        service = build_sync_service(db, client=client)
        # twice the interval so a late run does not leave a gap
        filters = PullFilters(updated_after=datetime.now(timezone.utc) - timedelta(minutes=2 * interval))
        summary = service.pull_products(filters, PullOptions(limit=settings.ODOO_PULL_LIMIT))
        logger.info(f"Odoo pull result: {summary.model_dump(exclude={'errors'})}, errors={len(summary.errors)}")
    except Exception as e:
        logger.error(f"Odoo pull job failed: {e}")
    finally:
        if service is not None and client is None:
            service.client.close()
        db.close()


def start_scheduler():
    """Start the scheduler; register the periodic pull when ODOO_PULL_INTERVAL_MINUTES > 0."""
    if settings.ODOO_PULL_INTERVAL_MINUTES > 0:
        scheduler.add_job(
            periodic_pull_job,
            trigger=IntervalTrigger(minutes=settings.ODOO_PULL_INTERVAL_MINUTES, timezone=tz),
            id="periodic_odoo_pull",
            name=f"Odoo Pull (Every {settings.ODOO_PULL_INTERVAL_MINUTES} mins)",
            replace_existing=True,
        )

    scheduler.start()
    logger.info(
        f"Scheduler started — dispatch mode {settings.SYNC_DISPATCH_MODE}, "
        f"pull interval {settings.ODOO_PULL_INTERVAL_MINUTES or 'off'} ({settings.TIMEZONE})"
    )


def stop_scheduler():
    """Stop the scheduler gracefully."""
    if scheduler.running:
        scheduler.shutdown(wait=False)
        logger.info("Scheduler stopped")
