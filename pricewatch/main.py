"""Entry point and auto-refresh loop for the price tracker."""

import logging
import sys
from pathlib import Path

from dotenv import load_dotenv

# Load .env from project root
load_dotenv(Path(__file__).resolve().parents[1] / ".env")

from apscheduler.schedulers.blocking import BlockingScheduler

from pricewatch.errors import StorageError
from pricewatch.fetchers.quote_api import HttpQuoteOracle
from pricewatch.notifiers.telegram import TelegramForwarder
from pricewatch.scheduler import UpdateScheduler
from pricewatch.settings import Settings
from pricewatch.tracker import PriceTracker

logger = logging.getLogger(__name__)


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )


def build(settings: Settings) -> tuple[PriceTracker, UpdateScheduler]:
    """Wire tracker, oracle, notifiers and scheduler from settings."""
    tracker = PriceTracker(settings.db_path)
    forwarder = TelegramForwarder(settings.telegram_bot_token, settings.telegram_chat_id)
    if forwarder.enabled:
        tracker.notifications.subscribe(forwarder)
    else:
        logger.info("Telegram forwarding disabled (TELEGRAM_BOT_TOKEN / TELEGRAM_CHAT_ID not set)")

    oracle = HttpQuoteOracle(settings.quote_api_url, settings.quote_api_key, settings.quote_timeout)
    return tracker, UpdateScheduler(tracker, oracle, settings)


def main() -> None:
    """Load state, refresh once immediately, then refresh on the configured interval."""
    settings = Settings.from_env()
    configure_logging(settings.log_level)

    if not settings.quote_api_url:
        logger.error("QUOTE_API_URL not set, nothing to refresh against")
        sys.exit(1)

    tracker, updater = build(settings)
    try:
        tracker.load()
    except StorageError as e:
        logger.error("Cannot load state: %s", e)
        sys.exit(1)

    logger.info("🚀 Price tracker started with %d products", len(tracker.products))
    logger.info(
        "Delays: %gs between competitors, %gs between products; auto-refresh every %g min",
        settings.competitor_delay, settings.product_delay, settings.auto_refresh_minutes,
    )

    updater.run_auto_refresh()

    scheduler = BlockingScheduler()
    updater.add_auto_refresh_job(scheduler)
    try:
        scheduler.start()
    except (KeyboardInterrupt, SystemExit):
        updater.request_stop()
        tracker.save()
        logger.info("Stopped")


if __name__ == "__main__":
    main()
