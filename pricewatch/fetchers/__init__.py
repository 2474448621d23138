"""Clients for the external quote and search services."""

from pricewatch.fetchers.base import QuoteOracle, SearchOracle
from pricewatch.fetchers.quote_api import HttpQuoteOracle, HttpSearchOracle

__all__ = ["QuoteOracle", "SearchOracle", "HttpQuoteOracle", "HttpSearchOracle"]
