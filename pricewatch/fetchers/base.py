"""Contracts for the external quote and search services."""

from typing import Protocol

from pricewatch.models import Quote, SearchResult


class QuoteOracle(Protocol):
    def fetch_quote(
        self, product_name: str, competitor_url: str, competitor_name: str
    ) -> Quote | None:
        """Return the competitor's current quote, or None when unavailable.

        May take seconds. Retries and rate-limit backoff happen inside the
        service; callers never retry.
        """
        ...


class SearchOracle(Protocol):
    def search_products(self, query: str) -> list[SearchResult] | None:
        """Return listings matching query, or None on failure."""
        ...
