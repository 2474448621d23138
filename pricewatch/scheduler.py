"""Sequential, rate-limited refresh of tracked products."""

import logging
import threading
import time
from collections import deque
from datetime import datetime

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from pricewatch.errors import ProductNotFoundError
from pricewatch.fetchers.base import QuoteOracle
from pricewatch.models import Competitor, NotificationType, Product
from pricewatch.refresh import refresh_competitor
from pricewatch.settings import Settings
from pricewatch.tracker import PriceTracker

logger = logging.getLogger(__name__)

AUTO_REFRESH_JOB_ID = "auto_refresh"


class UpdateScheduler:
    """
    Drives competitor refreshes through one FIFO queue and one worker.

    The quote service is rate limited, so oracle calls are never concurrent:
    each competitor lookup is preceded by settings.competitor_delay and each
    product of a batch is followed by settings.product_delay. A product
    already waiting in the queue is not queued twice.

    sleep and now are injectable so tests can run on a virtual clock.
    """

    def __init__(
        self,
        tracker: PriceTracker,
        oracle: QuoteOracle,
        settings: Settings,
        sleep=time.sleep,
        now=datetime.now,
    ):
        self.tracker = tracker
        self.oracle = oracle
        self.settings = settings
        self._sleep = sleep
        self._now = now
        self._queue: deque[tuple[str, float]] = deque()
        self._pending: set[str] = set()
        self._refreshed: dict[str, int] = {}
        self._queue_lock = threading.Lock()
        self._worker_lock = threading.Lock()
        self._stop = threading.Event()
        self._scheduler: BackgroundScheduler | None = None

    # ── Queue ───────────────────────────────────────────────────────────────
    def _enqueue(self, product_ids: list[str], delay_after: float) -> dict[str, int]:
        """Queue product_ids and return their completed-refresh counts as of now."""
        with self._queue_lock:
            seen = {product_id: self._refreshed.get(product_id, 0) for product_id in product_ids}
            self._stop.clear()
            for product_id in product_ids:
                if product_id in self._pending:
                    logger.debug("Product %s already queued", product_id)
                    continue
                self._pending.add(product_id)
                self._queue.append((product_id, delay_after))
            return seen

    def _next(self) -> tuple[str, float] | None:
        with self._queue_lock:
            if self._stop.is_set():
                if self._queue:
                    logger.info("Stop requested; dropping %d queued products", len(self._queue))
                self._queue.clear()
                self._pending.clear()
                return None
            if not self._queue:
                return None
            entry = self._queue.popleft()
            self._pending.discard(entry[0])
            return entry

    def _drain(self) -> None:
        """Work the queue until it is empty or a stop is requested."""
        with self._worker_lock:
            while (entry := self._next()) is not None:
                product_id, delay_after = entry
                if self._run_product(product_id) is not None:
                    with self._queue_lock:
                        self._refreshed[product_id] = self._refreshed.get(product_id, 0) + 1
                if delay_after:
                    self._sleep(delay_after)

    def pending(self) -> list[str]:
        with self._queue_lock:
            return [product_id for product_id, _ in self._queue]

    def request_stop(self) -> None:
        """Stop before the next queued product. The current one finishes."""
        self._stop.set()

    # ── Refresh operations ──────────────────────────────────────────────────
    def _run_product(self, product_id: str) -> Product | None:
        try:
            product = self.tracker.get_product(product_id)
            self.tracker.set_loading(product_id, True)
        except ProductNotFoundError:
            logger.info("Product %s no longer tracked; skipping", product_id)
            return None

        logger.info("Refreshing %s (%d competitors)", product.name[:50], len(product.competitors))
        refreshed: list[Competitor] = []
        try:
            for competitor in product.competitors:
                self._sleep(self.settings.competitor_delay)
                refreshed.append(
                    refresh_competitor(
                        product.name, competitor, self.oracle, self.tracker.notifications, now=self._now
                    )
                )
        except Exception:
            logger.exception("Refresh of %s stopped after %d competitors", product.name[:50], len(refreshed))
        return self.tracker.apply_refresh(product_id, refreshed)

    def refresh_product(self, product_id: str) -> Product | None:
        """Refresh every competitor of one product, then recompute its suggestion."""
        self._enqueue([product_id], 0)
        self._drain()
        try:
            return self.tracker.get_product(product_id)
        except ProductNotFoundError:
            return None

    def refresh_all(self, subset_ids: list[str] | None = None) -> int:
        """Refresh all products, or only those in subset_ids. Returns the count processed."""
        wanted = set(subset_ids) if subset_ids is not None else None
        targets = [p.id for p in self.tracker.products if wanted is None or p.id in wanted]
        self.tracker.last_global_update = self._now()

        before = self._enqueue(targets, self.settings.product_delay)
        self._drain()
        # Targets another caller had already queued count once their refresh lands.
        with self._queue_lock:
            count = sum(1 for product_id in targets if self._refreshed.get(product_id, 0) > before[product_id])

        self.tracker.notifications.emit(
            NotificationType.SUCCESS, f"Đã hoàn tất quét giá {count} sản phẩm."
        )
        return count

    # ── Auto-refresh ────────────────────────────────────────────────────────
    def run_auto_refresh(self) -> None:
        """Scheduled job body: refresh everything, never raise into the scheduler."""
        try:
            count = self.refresh_all()
            logger.info("Auto-refresh finished: %d products", count)
        except Exception:
            logger.exception("Auto-refresh failed")

    def add_auto_refresh_job(self, scheduler) -> None:
        scheduler.add_job(
            self.run_auto_refresh,
            trigger=IntervalTrigger(minutes=self.settings.auto_refresh_minutes),
            id=AUTO_REFRESH_JOB_ID,
            max_instances=1,          # Never overlap two batches
            coalesce=True,
            misfire_grace_time=300,
            replace_existing=True,
        )

    def start_auto_refresh(self) -> BackgroundScheduler:
        """Run refresh_all on a background interval."""
        if self._scheduler is None:
            self._scheduler = BackgroundScheduler()
            self.add_auto_refresh_job(self._scheduler)
            self._scheduler.start()
            logger.info("Auto-refresh every %g min", self.settings.auto_refresh_minutes)
        return self._scheduler

    def shutdown(self) -> None:
        self.request_stop()
        if self._scheduler is not None:
            self._scheduler.shutdown(wait=False)
            self._scheduler = None
