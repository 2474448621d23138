"""Suggested-price computation from strategy, market and guardrails."""

from collections.abc import Iterable

from pricewatch.models import Competitor, Product, StockStatus, Strategy

STRATEGY_OFFSETS = {
    Strategy.MATCH_LOWEST: 0,
    Strategy.BEAT_LOWEST_5K: 5000,
    Strategy.BEAT_LOWEST_10K: 10000,
}


def market_prices(competitors: Iterable[Competitor]) -> list[float]:
    """Prices of competitors that can actually sell right now."""
    return [
        c.current_price
        for c in competitors
        if c.stock_status == StockStatus.IN_STOCK and c.current_price is not None
    ]


def price_floor(product: Product) -> float:
    """Highest configured guardrail, or 0 when none is set."""
    guardrails = [g for g in (product.min_price, product.cost_price) if g]
    return max(guardrails) if guardrails else 0


def suggest_price(product: Product, competitors: Iterable[Competitor]) -> float | None:
    """
    Suggested selling price for product against competitors.

    Returns None for manual pricing or when no in-stock competitor has a
    price. The result never goes below the product's floor price.
    """
    if product.strategy == Strategy.MANUAL:
        return None

    prices = market_prices(competitors)
    if not prices:
        return None

    raw = min(prices) - STRATEGY_OFFSETS[product.strategy]
    return max(raw, price_floor(product))
