"""Tracked product state and the operations exposed to the presentation layer."""

import logging
import threading
from dataclasses import replace
from datetime import datetime
from pathlib import Path

from pricewatch import storage
from pricewatch.errors import ProductNotFoundError, ValidationError
from pricewatch.merge import bulk_upsert, normalize_sku, upsert
from pricewatch.models import (
    MAX_COMPETITORS,
    Category,
    Competitor,
    CompetitorInput,
    NewProductData,
    Notification,
    NotificationType,
    Product,
    SearchResult,
    StockStatus,
    Strategy,
)
from pricewatch.notifiers.log import NotificationLog
from pricewatch.records import (
    PLACEHOLDER_NAME,
    product_to_report_row,
    product_to_row,
    row_to_product_data,
    search_result_to_product_data,
)
from pricewatch.repricing import suggest_price

logger = logging.getLogger(__name__)


def _clean_competitors(rows: list[CompetitorInput]) -> list[CompetitorInput]:
    """Drop rows missing a name or URL."""
    return [
        replace(row, name=row.name.strip(), url=row.url.strip())
        for row in rows
        if row.name.strip() and row.url.strip()
    ]


def validate_product_data(data: NewProductData, require_competitors: bool = False) -> NewProductData:
    """Return a cleaned copy of a manually entered record or raise ValidationError."""
    name = (data.name or "").strip()
    if not name:
        raise ValidationError("Product name is required")
    for label, value in (("my_price", data.my_price), ("cost_price", data.cost_price), ("min_price", data.min_price)):
        if value is not None and value < 0:
            raise ValidationError(f"{label} must not be negative")

    competitors = _clean_competitors(data.competitors)
    if len(competitors) > MAX_COMPETITORS:
        raise ValidationError(f"At most {MAX_COMPETITORS} competitors per product")
    if require_competitors and not competitors:
        raise ValidationError("At least one competitor with name and URL is required")

    return replace(
        data,
        name=name,
        sku=(data.sku or "").strip() or None,
        cost_price=data.cost_price or None,
        min_price=data.min_price or None,
        competitors=competitors,
    )


def _merge_refresh(current: Competitor, refreshed: Competitor | None) -> Competitor:
    if refreshed is None or refreshed.url.strip() != current.url.strip():
        return current
    return current.copy(
        current_price=refreshed.current_price,
        stock_status=refreshed.stock_status,
        promotion=refreshed.promotion,
        last_updated=refreshed.last_updated,
        price_history=list(refreshed.price_history),
        status=refreshed.status,
        error=refreshed.error,
    )


def _clean_bulk_record(data: NewProductData) -> NewProductData:
    competitors = _clean_competitors(data.competitors)
    if len(competitors) > MAX_COMPETITORS:
        logger.warning("%s: keeping the first %d competitors", data.name, MAX_COMPETITORS)
        competitors = competitors[:MAX_COMPETITORS]
    return replace(
        data,
        name=(data.name or "").strip() or PLACEHOLDER_NAME,
        sku=(data.sku or "").strip() or None,
        my_price=max(data.my_price or 0, 0),
        cost_price=data.cost_price if data.cost_price and data.cost_price > 0 else None,
        min_price=data.min_price if data.min_price and data.min_price > 0 else None,
        competitors=competitors,
    )


class PriceTracker:
    """
    Owner of the tracked product collection and notification log.

    Every mutation runs under one lock and is written through to the SQLite
    state at db_path. suggested_price is recomputed here whenever its inputs
    change and is never set from outside.
    """

    def __init__(self, db_path: Path, notifications: NotificationLog | None = None):
        self.db_path = Path(db_path)
        self.notifications = notifications or NotificationLog()
        self.notifications.subscribe(self._persist_notification)
        self.last_global_update: datetime | None = None
        self._products: list[Product] = []
        self._lock = threading.RLock()
        storage.init_db(self.db_path)

    # ── Lifecycle ───────────────────────────────────────────────────────────
    def load(self) -> None:
        """Read durable state. Called once at process start."""
        with self._lock:
            self._products = storage.load_products(self.db_path)
            self.notifications.restore(storage.load_notifications(self.db_path))
        logger.info("Loaded %d products from %s", len(self._products), self.db_path)

    def save(self) -> None:
        with self._lock:
            storage.save_products(self.db_path, self._products)
            storage.save_notifications(self.db_path, self.notifications.all())

    def _commit(self, products: list[Product]) -> None:
        self._products = products
        storage.save_products(self.db_path, products)

    def _persist_notification(self, notification: Notification) -> None:
        with self._lock:
            storage.save_notifications(self.db_path, self.notifications.all())

    # ── Reads ───────────────────────────────────────────────────────────────
    @property
    def products(self) -> list[Product]:
        with self._lock:
            return list(self._products)

    def get_product(self, product_id: str) -> Product:
        with self._lock:
            return self._products[self._index(product_id)]

    def _index(self, product_id: str) -> int:
        for index, product in enumerate(self._products):
            if product.id == product_id:
                return index
        raise ProductNotFoundError(product_id)

    def has_product(self, product_id: str) -> bool:
        with self._lock:
            return any(p.id == product_id for p in self._products)

    def stats(self) -> dict:
        with self._lock:
            cheaper = sum(
                1
                for p in self._products
                for c in p.competitors
                if c.current_price and c.current_price < p.my_price and c.stock_status == StockStatus.IN_STOCK
            )
            out_of_stock = sum(
                1 for p in self._products for c in p.competitors if c.stock_status == StockStatus.OUT_OF_STOCK
            )
            return {
                "total": len(self._products),
                "cheaper_competitors": cheaper,
                "out_of_stock_competitors": out_of_stock,
                "last_global_update": self.last_global_update,
            }

    def export_rows(self) -> list[dict]:
        return [product_to_row(p) for p in self.products]

    def report_rows(self) -> list[dict]:
        return [product_to_report_row(p) for p in self.products]

    # ── Adds and merges ─────────────────────────────────────────────────────
    def add_product(self, data: NewProductData, require_competitors: bool = False) -> tuple[Product, bool]:
        """Add a manually entered product, or update the one sharing its SKU."""
        data = validate_product_data(data, require_competitors)
        with self._lock:
            products, target, is_new = upsert(data, self._products)
            target.suggested_price = suggest_price(target, target.competitors)
            self._commit(products)
        if not is_new:
            self.notifications.emit(
                NotificationType.INFO, f"Đã cập nhật thông tin sản phẩm SKU: {normalize_sku(data.sku)}"
            )
        return target, is_new

    def add_products(self, records: list[NewProductData]) -> list[Product]:
        """Bulk add. Returns the distinct affected products in record order."""
        records = [_clean_bulk_record(r) for r in records]
        if not records:
            return []
        with self._lock:
            products, outcomes = bulk_upsert(records, self._products)
            by_id = {p.id: p for p in products}
            affected_ids = list(dict.fromkeys(target.id for target, _ in outcomes))
            # Untouched products are shared with the previous list.
            affected = [by_id[i] for i in affected_ids if i in by_id]
            for product in affected:
                product.suggested_price = suggest_price(product, product.competitors)
            self._commit(products)
        self.notifications.emit(
            NotificationType.INFO, f"Bắt đầu xử lý {len(affected)} sản phẩm từ file..."
        )
        return affected

    def import_rows(self, rows: list[dict]) -> list[Product]:
        """Bulk add from spreadsheet rows."""
        return self.add_products([row_to_product_data(row) for row in rows])

    def import_search_results(self, results: list[SearchResult]) -> list[Product]:
        return self.add_products([search_result_to_product_data(r) for r in results])

    # ── Edits and deletes ───────────────────────────────────────────────────
    def edit_product(
        self,
        product_id: str,
        *,
        name: str | None = None,
        my_price: float | None = None,
        my_promotion: str | None = None,
        category: Category | None = None,
        cost_price: float | None = None,
        min_price: float | None = None,
        strategy: Strategy | None = None,
        competitors: list[CompetitorInput] | None = None,
    ) -> Product:
        """
        Edit a product's fields and competitor rows. None leaves a field as is.

        Competitor rows carrying the id of an existing competitor keep that
        competitor's price data; rows without an id start fresh.
        """
        if name is not None and not name.strip():
            raise ValidationError("Product name is required")
        for label, value in (("my_price", my_price), ("cost_price", cost_price), ("min_price", min_price)):
            if value is not None and value < 0:
                raise ValidationError(f"{label} must not be negative")
        if competitors is not None:
            competitors = _clean_competitors(competitors)
            if len(competitors) > MAX_COMPETITORS:
                raise ValidationError(f"At most {MAX_COMPETITORS} competitors per product")

        with self._lock:
            index = self._index(product_id)
            product = replace(self._products[index], competitors=list(self._products[index].competitors))
            if name is not None:
                product.name = name.strip()
            if my_price is not None:
                product.my_price = my_price
            if my_promotion is not None:
                product.my_promotion = my_promotion or None
            if category is not None:
                product.category = Category(category)
            if cost_price is not None:
                product.cost_price = cost_price or None
            if min_price is not None:
                product.min_price = min_price or None
            if strategy is not None:
                product.strategy = Strategy(strategy)
            if competitors is not None:
                # Each existing competitor can be claimed by one row only.
                unclaimed = {c.id: c for c in product.competitors}
                product.competitors = [
                    unclaimed.pop(row.id).copy(name=row.name, url=row.url)
                    if row.id in unclaimed
                    else Competitor.create(row.name, row.url)
                    for row in competitors
                ]
            product.suggested_price = suggest_price(product, product.competitors)

            products = list(self._products)
            products[index] = product
            self._commit(products)
            return product

    def delete_product(self, product_id: str) -> Product:
        """Remove a product. Confirmation is the caller's job."""
        with self._lock:
            index = self._index(product_id)
            products = list(self._products)
            removed = products.pop(index)
            self._commit(products)
        logger.info("Deleted product %s (%s)", removed.id, removed.name[:50])
        return removed

    def delete_products(self, product_ids: list[str]) -> int:
        ids = set(product_ids)
        with self._lock:
            products = [p for p in self._products if p.id not in ids]
            removed = len(self._products) - len(products)
            self._commit(products)
        logger.info("Deleted %d products", removed)
        return removed

    # ── Refresh bookkeeping (used by the update scheduler) ──────────────────
    def set_loading(self, product_id: str, loading: bool) -> None:
        with self._lock:
            index = self._index(product_id)
            products = list(self._products)
            products[index] = replace(products[index], loading=loading)
            self._commit(products)

    def apply_refresh(self, product_id: str, refreshed: list[Competitor]) -> Product | None:
        """
        Store refreshed price data, recompute the suggestion and clear loading.

        Only the fields a refresh owns are copied, onto the competitor as it is
        now, so edits made while the refresh ran are kept. Competitors removed
        or given a new URL in the meantime keep no refresh result. Returns None
        if the product itself is gone.
        """
        with self._lock:
            try:
                index = self._index(product_id)
            except ProductNotFoundError:
                logger.info("Product %s deleted during refresh; discarding result", product_id)
                return None
            by_id = {c.id: c for c in refreshed}
            current = self._products[index]
            competitors = [_merge_refresh(c, by_id.get(c.id)) for c in current.competitors]
            product = replace(
                current,
                competitors=competitors,
                suggested_price=suggest_price(current, competitors),
                loading=False,
            )
            products = list(self._products)
            products[index] = product
            self._commit(products)
            return product
