"""Refresh of a single competitor from one quote lookup."""

import logging
from datetime import datetime

from pricewatch.fetchers.base import QuoteOracle
from pricewatch.models import (
    MAX_HISTORY,
    Competitor,
    NotificationType,
    PricePoint,
    StockStatus,
    TrendStatus,
)
from pricewatch.notifiers.log import NotificationLog

logger = logging.getLogger(__name__)

NOT_FOUND_ERROR = "Không tìm thấy giá"


def trend_status(previous: float | None, price: float) -> TrendStatus:
    """Compare a new price against the previous current price."""
    if previous is not None:
        if price > previous:
            return TrendStatus.INCREASED
        if price < previous:
            return TrendStatus.DECREASED
    return TrendStatus.STABLE


def append_history(history: list[PricePoint], previous: float | None, point: PricePoint) -> list[PricePoint]:
    """Return history with point appended when the price moved, capped at MAX_HISTORY."""
    history = list(history)
    if previous != point.price or not history:
        history.append(point)
    return history[-MAX_HISTORY:]


def refresh_competitor(
    product_name: str,
    competitor: Competitor,
    oracle: QuoteOracle,
    notifications: NotificationLog,
    now=datetime.now,
) -> Competitor:
    """
    Look up competitor's current quote and return the updated competitor.

    A missing quote only sets the error marker. The given competitor is
    never mutated.
    """
    quote = oracle.fetch_quote(product_name, competitor.url, competitor.name)
    if quote is None:
        logger.info("No quote: %s @ %s", product_name[:50], competitor.name)
        return competitor.copy(error=NOT_FOUND_ERROR)

    timestamp = now()
    previous = competitor.current_price
    status = trend_status(previous, quote.price)

    if status == TrendStatus.DECREASED:
        notifications.emit(
            NotificationType.WARNING,
            f"Đối thủ {competitor.name} vừa GIẢM giá sản phẩm {product_name} "
            f"xuống {quote.price:,.0f}đ",
        )
    if competitor.stock_status == StockStatus.IN_STOCK and quote.stock_status == StockStatus.OUT_OF_STOCK:
        notifications.emit(
            NotificationType.INFO,
            f"Đối thủ {competitor.name} vừa HẾT HÀNG sản phẩm {product_name}",
        )

    logger.debug("%s @ %s: %s -> %s (%s)", product_name[:50], competitor.name, previous, quote.price, status.value)
    return competitor.copy(
        current_price=quote.price,
        stock_status=quote.stock_status,
        promotion=quote.promotion,
        last_updated=timestamp,
        price_history=append_history(
            competitor.price_history, previous, PricePoint(date=timestamp, price=quote.price)
        ),
        status=status,
        error=None,
    )
