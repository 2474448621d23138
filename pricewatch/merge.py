"""Reconciliation of incoming product records with tracked products.

Records are matched on their normalized SKU. A match updates the tracked
product in place and keeps every competitor whose URL is unchanged, together
with its id and price history, so re-importing a catalogue never loses
history. Records without a matching SKU become new products at the front of
the collection.
"""

import logging

from pricewatch.models import Competitor, CompetitorInput, NewProductData, Product, new_id

logger = logging.getLogger(__name__)


def normalize_sku(sku: str | None) -> str:
    return sku.strip().upper() if sku else ""


def find_by_sku(products: list[Product], sku: str | None) -> int:
    """Index of the product whose normalized SKU matches, or -1."""
    key = normalize_sku(sku)
    if not key:
        return -1
    for index, product in enumerate(products):
        if normalize_sku(product.sku) == key:
            return index
    return -1


def merge_competitors(existing: list[Competitor], incoming: list[CompetitorInput]) -> list[Competitor]:
    """Build the competitor list for an updated product.

    Rows whose URL matches an existing competitor keep that competitor and
    only take the new display name. Other rows start fresh. A later row
    repeating the URL of an already kept competitor is dropped.
    """
    merged: list[Competitor] = []
    claimed: set[str] = set()
    for row in incoming:
        url = row.url.strip()
        match = next((c for c in existing if c.url.strip() == url), None)
        if match is not None and match.id in claimed:
            logger.warning("Duplicate competitor URL %s; keeping the first row", url)
            continue
        if match is not None:
            claimed.add(match.id)
            merged.append(match.copy(name=row.name or match.name))
        else:
            merged.append(Competitor.create(row.name, row.url))
    return merged


def _apply_fields(product: Product, data: NewProductData) -> None:
    product.name = data.name
    product.my_price = data.my_price
    product.my_promotion = data.my_promotion
    product.cost_price = data.cost_price
    product.min_price = data.min_price
    product.strategy = data.strategy
    product.category = data.category


def upsert(data: NewProductData, products: list[Product]) -> tuple[list[Product], Product, bool]:
    """
    Merge one incoming record into products.

    Returns (updated collection, affected product, is_new). The input list is
    not modified; the matched product keeps its position.
    """
    index = find_by_sku(products, data.sku)
    if index > -1:
        existing = products[index]
        updated = Product(
            id=existing.id,
            name=existing.name,
            my_price=existing.my_price,
            sku=existing.sku,
            loading=existing.loading,
            competitors=merge_competitors(existing.competitors, data.competitors),
        )
        _apply_fields(updated, data)
        result = list(products)
        result[index] = updated
        logger.debug("Merged SKU %s into product %s", normalize_sku(data.sku), existing.id)
        return result, updated, False

    created = Product(
        id=new_id(),
        name=data.name,
        my_price=data.my_price,
        sku=data.sku or None,
        competitors=[Competitor.create(row.name, row.url) for row in data.competitors],
    )
    _apply_fields(created, data)
    logger.debug("Created product %s (SKU %s)", created.id, created.sku or "-")
    return [created, *products], created, True


def bulk_upsert(
    records: list[NewProductData], products: list[Product]
) -> tuple[list[Product], list[tuple[Product, bool]]]:
    """Apply upsert to each record in order, folding into the running collection.

    Later records can match SKUs introduced earlier in the same batch.
    Returns the final collection and (product, is_new) per record.
    """
    current = products
    outcomes: list[tuple[Product, bool]] = []
    for data in records:
        current, target, is_new = upsert(data, current)
        outcomes.append((target, is_new))
    return current, outcomes
