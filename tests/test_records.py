from pricewatch.models import Category, Competitor, Product, SearchResult, Strategy
from pricewatch.records import (
    COLUMNS,
    PLACEHOLDER_NAME,
    guess_category,
    product_to_report_row,
    product_to_row,
    row_to_product_data,
    search_result_to_product_data,
)


def test_full_row():
    data = row_to_product_data(
        {
            "SKU": "DELL-G15-5515",
            "ProductName": "Laptop Gaming Dell G15",
            "MyPrice": 25000000,
            "MyPromotion": "Tặng Balo + Chuột",
            "CostPrice": "22000000",
            "MinPrice": 23000000,
            "Category": "Laptop",
            "Competitor1_Name": "Phong Vũ",
            "Competitor1_URL": "https://phongvu.vn/g15",
            "Competitor2_Name": "GearVN",
            "Competitor2_URL": "",
            "Competitor3_Name": "Hacom",
            "Competitor3_URL": "https://hacom.vn/g15",
        }
    )

    assert data.sku == "DELL-G15-5515"
    assert data.my_price == 25_000_000
    assert data.cost_price == 22_000_000
    assert data.min_price == 23_000_000
    assert data.category == Category.LAPTOP
    assert data.strategy == Strategy.MANUAL
    assert [(c.name, c.url) for c in data.competitors] == [
        ("Phong Vũ", "https://phongvu.vn/g15"),
        ("Hacom", "https://hacom.vn/g15"),
    ]


def test_sparse_row_defaults():
    data = row_to_product_data({"MyPrice": "abc", "Category": "Phones"})
    assert data.name == PLACEHOLDER_NAME
    assert data.sku is None
    assert data.my_price == 0
    assert data.cost_price is None
    assert data.min_price is None
    assert data.category == Category.OTHER
    assert data.competitors == []


def test_guess_category_from_free_text():
    assert guess_category("Gaming Laptop") == Category.LAPTOP
    assert guess_category("Mouse") == Category.OTHER
    assert guess_category(None) == Category.OTHER


def test_search_result_becomes_manual_record():
    data = search_result_to_product_data(
        SearchResult(name="Chuột Logitech G102", price=399_000, url="https://anphat/g102", sku="MULG0094")
    )
    assert data.name == "Chuột Logitech G102"
    assert data.my_price == 399_000
    assert data.sku == "MULG0094"
    assert data.strategy == Strategy.MANUAL
    assert data.competitors == []


def test_backup_row_reimports_to_same_record():
    product = Product(
        id="p1",
        name="Dell G15",
        sku="ABC-1",
        my_price=25_000_000,
        min_price=23_000_000,
        category=Category.LAPTOP,
        competitors=[Competitor.create("GearVN", "https://gearvn/g15")],
    )
    row = product_to_row(product)
    assert list(row) == COLUMNS
    assert row["CostPrice"] == 0

    data = row_to_product_data(row)
    assert data.sku == "ABC-1"
    assert data.min_price == 23_000_000
    assert data.cost_price is None
    assert [(c.name, c.url) for c in data.competitors] == [("GearVN", "https://gearvn/g15")]


def test_report_row_lowest_competitor():
    a = Competitor.create("A", "https://a")
    a.current_price = 900
    b = Competitor.create("B", "https://b")
    b.current_price = 800
    product = Product(id="p1", name="X", my_price=1_000, suggested_price=795, competitors=[a, b])

    row = product_to_report_row(product)

    assert row["Lowest Competitor"] == 800
    assert row["Suggested Price"] == 795
    assert row["Competitor 2 Price"] == 800
