"""HTTP clients for the quote and search services."""

import json
import logging
import math
import re

import requests

from pricewatch.models import Quote, SearchResult, StockStatus, parse_enum

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?")


def _extract_json(text: str, open_char: str, close_char: str):
    """Pull the outermost JSON object/array out of free text.

    The services answer with model-generated text, which may wrap the JSON in
    markdown fences or prose.
    """
    text = _FENCE_RE.sub("", text).strip()
    start = text.find(open_char)
    end = text.rfind(close_char)
    if start == -1 or end == -1 or end < start:
        return None
    try:
        return json.loads(text[start : end + 1])
    except ValueError:
        logger.warning("Could not parse service response: %s", text[:200])
        return None


def _response_payload(resp: requests.Response, open_char: str, close_char: str):
    try:
        data = resp.json()
    except ValueError:
        data = resp.text
    if isinstance(data, str):
        return _extract_json(data, open_char, close_char)
    return data


def parse_quote(data) -> Quote | None:
    """Validate a decoded quote payload."""
    if not isinstance(data, dict):
        return None
    price = data.get("price")
    if isinstance(price, bool) or not isinstance(price, (int, float)):
        return None
    if not math.isfinite(price) or price <= 0:
        return None
    return Quote(
        price=float(price),
        stock_status=parse_enum(StockStatus, data.get("stockStatus", data.get("stock_status")), StockStatus.UNKNOWN),
        promotion=data.get("promotion") or None,
    )


def parse_search_results(data) -> list[SearchResult]:
    if not isinstance(data, list):
        return []
    results: list[SearchResult] = []
    for item in data:
        if not isinstance(item, dict) or not item.get("name"):
            continue
        try:
            price = float(item.get("price") or 0)
        except (TypeError, ValueError):
            price = 0.0
        if not math.isfinite(price):
            price = 0.0
        results.append(
            SearchResult(
                name=str(item["name"]),
                price=price,
                url=str(item.get("url") or ""),
                sku=item.get("sku") or None,
                category=item.get("category") or None,
            )
        )
    return results


class HttpQuoteOracle:
    """Quote oracle backed by a JSON-over-HTTP lookup service."""

    def __init__(self, api_url: str, api_key: str = "", timeout: float = 30.0):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    def _headers(self) -> dict:
        return {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}

    def fetch_quote(
        self, product_name: str, competitor_url: str, competitor_name: str
    ) -> Quote | None:
        payload = {
            "product_name": product_name,
            "url": competitor_url,
            "competitor_name": competitor_name,
        }
        try:
            logger.debug("Quote: %s @ %s", product_name[:50], competitor_name)
            resp = requests.post(
                self.api_url, json=payload, headers=self._headers(), timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Quote request failed for %s: %s", competitor_url, e)
            return None

        quote = parse_quote(_response_payload(resp, "{", "}"))
        if quote is None:
            logger.info("Quote: no usable price for %s", competitor_url)
        return quote


class HttpSearchOracle:
    """Search oracle used to originate new product records."""

    def __init__(self, api_url: str, api_key: str = "", timeout: float = 30.0):
        self.api_url = api_url
        self.api_key = api_key
        self.timeout = timeout

    def search_products(self, query: str) -> list[SearchResult] | None:
        query = query.strip()
        if not query:
            return []
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        try:
            resp = requests.get(
                self.api_url, params={"q": query}, headers=headers, timeout=self.timeout
            )
            resp.raise_for_status()
        except requests.RequestException as e:
            logger.warning("Search request failed for %r: %s", query, e)
            return None
        return parse_search_results(_response_payload(resp, "[", "]"))
