"""Row shape shared with the spreadsheet import/export layer."""

from pricewatch.models import (
    MAX_COMPETITORS,
    Category,
    CompetitorInput,
    NewProductData,
    Product,
    SearchResult,
    Strategy,
)

PLACEHOLDER_NAME = "Unknown Product"

BASE_COLUMNS = ["SKU", "ProductName", "MyPrice", "MyPromotion", "CostPrice", "MinPrice", "Category"]
COLUMNS = BASE_COLUMNS + [
    f"Competitor{i}_{part}" for i in range(1, MAX_COMPETITORS + 1) for part in ("Name", "URL")
]


def _number(value) -> float:
    """Numeric cell value; absent or non-numeric cells read as 0."""
    if isinstance(value, bool) or value is None:
        return 0
    try:
        number = float(str(value).strip())
    except ValueError:
        return 0
    return number if number == number else 0  # NaN


def _text(value) -> str:
    return str(value).strip() if value is not None else ""


def parse_category(value) -> Category:
    try:
        return Category(_text(value))
    except ValueError:
        return Category.OTHER


def guess_category(text: str | None) -> Category:
    """First fixed category named inside free text, else the catch-all."""
    if text:
        for category in Category:
            if category.value in text:
                return category
    return Category.OTHER


def row_to_product_data(row: dict) -> NewProductData:
    """Convert one import row into an incoming product record."""
    competitors = []
    for i in range(1, MAX_COMPETITORS + 1):
        name = _text(row.get(f"Competitor{i}_Name"))
        url = _text(row.get(f"Competitor{i}_URL"))
        if name and url:
            competitors.append(CompetitorInput(name=name, url=url))

    return NewProductData(
        name=_text(row.get("ProductName")) or PLACEHOLDER_NAME,
        sku=_text(row.get("SKU")) or None,
        my_price=_number(row.get("MyPrice")),
        my_promotion=_text(row.get("MyPromotion")) or None,
        cost_price=_number(row.get("CostPrice")) or None,
        min_price=_number(row.get("MinPrice")) or None,
        strategy=Strategy.MANUAL,
        category=parse_category(row.get("Category")),
        competitors=competitors,
    )


def search_result_to_product_data(result: SearchResult) -> NewProductData:
    return NewProductData(
        name=result.name,
        sku=result.sku or None,
        my_price=result.price,
        strategy=Strategy.MANUAL,
        category=guess_category(result.category),
    )


def product_to_row(product: Product) -> dict:
    """Backup row in the import shape, so it can be re-imported as is."""
    row = {
        "SKU": product.sku or "",
        "ProductName": product.name,
        "MyPrice": product.my_price,
        "MyPromotion": product.my_promotion or "",
        "CostPrice": product.cost_price or 0,
        "MinPrice": product.min_price or 0,
        "Category": product.category.value,
    }
    for i in range(1, MAX_COMPETITORS + 1):
        competitor = product.competitors[i - 1] if i <= len(product.competitors) else None
        row[f"Competitor{i}_Name"] = competitor.name if competitor else ""
        row[f"Competitor{i}_URL"] = competitor.url if competitor else ""
    return row


def product_to_report_row(product: Product) -> dict:
    """Price report row with the suggestion and the lowest competitor price."""
    row = {
        "Category": product.category.value,
        "SKU": product.sku or "",
        "Product Name": product.name,
        "My Price": product.my_price,
        "My Promotion": product.my_promotion or "",
        "Cost Price": product.cost_price or 0,
        "Min Price": product.min_price or 0,
        "Suggested Price": product.suggested_price or 0,
        "Lowest Competitor": product.lowest_competitor_price() or 0,
    }
    for i in (1, 2):
        competitor = product.competitors[i - 1] if i <= len(product.competitors) else None
        row[f"Competitor {i} Name"] = competitor.name if competitor else ""
        row[f"Competitor {i} Price"] = competitor.current_price if competitor and competitor.current_price else ""
    return row
