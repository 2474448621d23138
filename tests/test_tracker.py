import pytest

from pricewatch.errors import ProductNotFoundError, ValidationError
from pricewatch.models import (
    Category,
    CompetitorInput,
    NewProductData,
    NotificationType,
    SearchResult,
    StockStatus,
    Strategy,
)
from pricewatch.notifiers.log import MAX_NOTIFICATIONS
from pricewatch.records import PLACEHOLDER_NAME
from pricewatch import tracker as tracker_module
from pricewatch.tracker import PriceTracker


def _data(name="Dell G15", sku="ABC-1", competitors=(("GearVN", "https://gearvn/g15"),), **kwargs):
    return NewProductData(
        name=name,
        sku=sku,
        my_price=kwargs.pop("my_price", 25_000_000),
        competitors=[CompetitorInput(n, u) for n, u in competitors],
        **kwargs,
    )


def test_add_persists_write_through(tracker, settings):
    product, is_new = tracker.add_product(_data())

    assert is_new
    reloaded = PriceTracker(settings.db_path)
    reloaded.load()
    assert [p.to_dict() for p in reloaded.products] == [product.to_dict()]


@pytest.mark.parametrize(
    "data",
    [
        _data(name="   "),
        _data(my_price=-1),
        _data(cost_price=-5),
        _data(competitors=[(f"Shop {i}", f"https://{i}") for i in range(6)]),
    ],
)
def test_invalid_manual_add_rejected(tracker, data):
    with pytest.raises(ValidationError):
        tracker.add_product(data)
    assert tracker.products == []


def test_competitors_required_when_asked(tracker):
    with pytest.raises(ValidationError):
        tracker.add_product(_data(competitors=[("", "https://x"), ("Shop", " ")]), require_competitors=True)
    assert tracker.products == []


def test_blank_competitor_rows_dropped_and_zero_guardrails_unset(tracker):
    product, _ = tracker.add_product(
        _data(competitors=[("GearVN", "https://g"), ("", "")], cost_price=0, min_price=0)
    )
    assert len(product.competitors) == 1
    assert product.cost_price is None
    assert product.min_price is None


def test_existing_sku_update_emits_info(tracker):
    first, _ = tracker.add_product(_data())
    second, is_new = tracker.add_product(_data(name="Dell G15 (2024)", sku="abc-1 "))

    assert not is_new
    assert second.id == first.id
    assert len(tracker.products) == 1
    latest = tracker.notifications.all()[0]
    assert latest.type == NotificationType.INFO
    assert "ABC-1" in latest.message


def test_bulk_add_rows(tracker):
    products = tracker.import_rows(
        [
            {"SKU": "A-1", "ProductName": "A", "MyPrice": 100, "Competitor1_Name": "X", "Competitor1_URL": "https://x"},
            {"SKU": "B-1", "MyPrice": "n/a", "Category": "Laptop"},
            {"SKU": "a-1", "ProductName": "A again", "MyPrice": 120},
        ]
    )

    assert [p.sku for p in products] == ["A-1", "B-1"]
    assert products[0].name == "A again"
    assert products[1].name == PLACEHOLDER_NAME
    assert products[1].category == Category.LAPTOP
    assert len(tracker.products) == 2
    assert tracker.notifications.all()[0].type == NotificationType.INFO


def test_import_search_results(tracker):
    [product] = tracker.import_search_results(
        [SearchResult(name="Màn hình LG 27", price=4_990_000, url="https://anphat/lg27", category="Màn hình")]
    )
    assert product.category == Category.MONITOR
    assert product.strategy == Strategy.MANUAL
    assert product.competitors == []


def test_edit_keeps_history_for_known_competitor_ids(tracker):
    product, _ = tracker.add_product(_data(strategy=Strategy.MATCH_LOWEST))
    comp = product.competitors[0]
    priced = comp.copy(current_price=20_000_000, stock_status=StockStatus.IN_STOCK)
    tracker.apply_refresh(product.id, [priced])

    edited = tracker.edit_product(
        product.id,
        my_price=21_000_000,
        min_price=20_500_000,
        category=Category.LAPTOP,
        competitors=[
            CompetitorInput("GearVN HN", "https://gearvn/g15", id=comp.id),
            CompetitorInput("Hacom", "https://hacom/g15"),
        ],
    )

    assert edited.my_price == 21_000_000
    assert edited.category == Category.LAPTOP
    assert edited.competitors[0].id == comp.id
    assert edited.competitors[0].name == "GearVN HN"
    assert edited.competitors[0].current_price == 20_000_000
    assert edited.competitors[1].current_price is None
    assert edited.suggested_price == 20_500_000
    assert tracker.get_product(product.id) == edited


def test_edit_unknown_product(tracker):
    with pytest.raises(ProductNotFoundError):
        tracker.edit_product("nope", my_price=1)


def test_bulk_add_leaves_other_products_alone(tracker, monkeypatch):
    kept, _ = tracker.add_product(_data(sku="KEEP-1", strategy=Strategy.MATCH_LOWEST))
    held = tracker.get_product(kept.id)
    priced = []
    real_suggest = tracker_module.suggest_price

    def spy(product, competitors):
        priced.append(product.sku)
        return real_suggest(product, competitors)

    monkeypatch.setattr(tracker_module, "suggest_price", spy)

    tracker.add_products([_data(name="New", sku="NEW-1"), _data(name="New again", sku="new-1")])

    assert priced == ["NEW-1"]
    assert tracker.get_product(kept.id) is held


def test_edit_with_repeated_competitor_id(tracker):
    product, _ = tracker.add_product(_data())
    comp = product.competitors[0]

    edited = tracker.edit_product(
        product.id,
        competitors=[
            CompetitorInput("GearVN", "https://gearvn/g15", id=comp.id),
            CompetitorInput("GearVN copy", "https://gearvn/copy", id=comp.id),
        ],
    )

    first, second = edited.competitors
    assert first.id == comp.id
    assert second.id != comp.id
    assert (second.name, second.url, second.current_price) == ("GearVN copy", "https://gearvn/copy", None)


def test_delete_single_and_bulk(tracker, settings):
    a, _ = tracker.add_product(_data(sku="A"))
    b, _ = tracker.add_product(_data(sku="B"))
    c, _ = tracker.add_product(_data(sku="C"))

    tracker.delete_product(b.id)
    assert tracker.delete_products([a.id, c.id, "missing"]) == 2

    reloaded = PriceTracker(settings.db_path)
    reloaded.load()
    assert reloaded.products == []
    with pytest.raises(ProductNotFoundError):
        tracker.delete_product(a.id)


def test_notification_log_capped_and_persisted(tracker, settings):
    for i in range(MAX_NOTIFICATIONS + 5):
        tracker.notifications.emit(NotificationType.INFO, f"message {i}")

    messages = [n.message for n in tracker.notifications.all()]
    assert len(messages) == MAX_NOTIFICATIONS
    assert messages[0] == f"message {MAX_NOTIFICATIONS + 4}"
    assert messages[-1] == "message 5"

    reloaded = PriceTracker(settings.db_path)
    reloaded.load()
    assert [n.message for n in reloaded.notifications.all()] == messages
    assert reloaded.notifications.unread_count() == MAX_NOTIFICATIONS
    reloaded.notifications.mark_all_read()
    assert reloaded.notifications.unread_count() == 0


def test_stats(tracker):
    product, _ = tracker.add_product(
        _data(competitors=[("A", "https://a"), ("B", "https://b"), ("C", "https://c")], my_price=1_000)
    )
    a, b, c = product.competitors
    tracker.apply_refresh(
        product.id,
        [
            a.copy(current_price=900, stock_status=StockStatus.IN_STOCK),
            b.copy(current_price=800, stock_status=StockStatus.OUT_OF_STOCK),
            c.copy(current_price=1_100, stock_status=StockStatus.IN_STOCK),
        ],
    )

    stats = tracker.stats()
    assert stats["total"] == 1
    assert stats["cheaper_competitors"] == 1
    assert stats["out_of_stock_competitors"] == 1


def test_export_rows(tracker):
    tracker.add_product(_data())
    [row] = tracker.export_rows()
    assert row["SKU"] == "ABC-1"
    assert row["Competitor1_URL"] == "https://gearvn/g15"
    [report] = tracker.report_rows()
    assert report["Suggested Price"] == 0
