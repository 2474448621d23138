"""Data models for competitor price tracking."""

import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum

MAX_COMPETITORS = 5
MAX_HISTORY = 30


class StockStatus(str, Enum):
    """Competitor stock state as reported by the quote oracle."""

    IN_STOCK = "in_stock"
    OUT_OF_STOCK = "out_of_stock"
    CONTACT = "contact"
    UNKNOWN = "unknown"


class TrendStatus(str, Enum):
    """Price movement since the previous refresh."""

    STABLE = "stable"
    INCREASED = "increased"
    DECREASED = "decreased"
    UNKNOWN = "unknown"


class Strategy(str, Enum):
    """Repricing rule."""

    MANUAL = "manual"
    MATCH_LOWEST = "match_lowest"
    BEAT_LOWEST_5K = "beat_lowest_5k"
    BEAT_LOWEST_10K = "beat_lowest_10k"


class Category(str, Enum):
    """Fixed product categories. OTHER is the catch-all."""

    LAPTOP = "Laptop"
    PC_DESKTOP = "PC Desktop"
    MONITOR = "Màn hình"
    PC_COMPONENTS = "Linh kiện PC"
    MOUSE_KEYBOARD = "Chuột & Bàn phím"
    AUDIO = "Tai nghe & Loa"
    NETWORKING = "Thiết bị mạng"
    OTHER = "Khác"


class NotificationType(str, Enum):
    INFO = "info"
    WARNING = "warning"
    DANGER = "danger"
    SUCCESS = "success"


def new_id(prefix: str = "") -> str:
    """Allocate a fresh unique identifier."""
    return f"{prefix}{uuid.uuid4().hex}"


def parse_enum(enum_cls, value, default):
    """Coerce a raw value into enum_cls, falling back to default."""
    try:
        return enum_cls(value)
    except ValueError:
        return default


def _parse_dt(value: str | None) -> datetime | None:
    return datetime.fromisoformat(value) if value else None


@dataclass(frozen=True)
class PricePoint:
    """One recorded competitor price."""

    date: datetime
    price: float

    def to_dict(self) -> dict:
        return {"date": self.date.isoformat(), "price": self.price}

    @classmethod
    def from_dict(cls, data: dict) -> "PricePoint":
        return cls(date=datetime.fromisoformat(data["date"]), price=float(data["price"]))


@dataclass
class Competitor:
    """A competitor listing tracked for one product."""

    id: str
    name: str
    url: str
    current_price: float | None = None
    stock_status: StockStatus = StockStatus.UNKNOWN
    promotion: str | None = None
    last_updated: datetime | None = None
    price_history: list[PricePoint] = field(default_factory=list)
    status: TrendStatus = TrendStatus.UNKNOWN
    error: str | None = None

    @classmethod
    def create(cls, name: str, url: str) -> "Competitor":
        """New competitor with no price data yet."""
        return cls(id=new_id("comp-"), name=name, url=url)

    def copy(self, **changes) -> "Competitor":
        changes.setdefault("price_history", list(self.price_history))
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "url": self.url,
            "current_price": self.current_price,
            "stock_status": self.stock_status.value,
            "promotion": self.promotion,
            "last_updated": self.last_updated.isoformat() if self.last_updated else None,
            "price_history": [p.to_dict() for p in self.price_history],
            "status": self.status.value,
            "error": self.error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Competitor":
        price = data.get("current_price")
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            url=data.get("url", ""),
            current_price=float(price) if price is not None else None,
            stock_status=parse_enum(StockStatus, data.get("stock_status"), StockStatus.UNKNOWN),
            promotion=data.get("promotion"),
            last_updated=_parse_dt(data.get("last_updated")),
            price_history=[PricePoint.from_dict(p) for p in data.get("price_history", [])],
            status=parse_enum(TrendStatus, data.get("status"), TrendStatus.UNKNOWN),
            error=data.get("error"),
        )


@dataclass
class Product:
    """A tracked product of ours and its competitor listings."""

    id: str
    name: str
    my_price: float
    sku: str | None = None
    my_promotion: str | None = None
    cost_price: float | None = None
    min_price: float | None = None
    strategy: Strategy = Strategy.MANUAL
    category: Category = Category.OTHER
    competitors: list[Competitor] = field(default_factory=list)
    suggested_price: float | None = None
    loading: bool = False

    def lowest_competitor_price(self) -> float | None:
        """Lowest known competitor price regardless of stock state."""
        prices = [c.current_price for c in self.competitors if c.current_price]
        return min(prices) if prices else None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "sku": self.sku,
            "my_price": self.my_price,
            "my_promotion": self.my_promotion,
            "cost_price": self.cost_price,
            "min_price": self.min_price,
            "strategy": self.strategy.value,
            "category": self.category.value,
            "competitors": [c.to_dict() for c in self.competitors],
            "suggested_price": self.suggested_price,
            "loading": self.loading,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Product":
        """Build a Product, defaulting fields that older records lack."""
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            my_price=float(data.get("my_price") or 0),
            sku=data.get("sku"),
            my_promotion=data.get("my_promotion"),
            cost_price=data.get("cost_price"),
            min_price=data.get("min_price"),
            strategy=parse_enum(Strategy, data.get("strategy"), Strategy.MANUAL),
            category=parse_enum(Category, data.get("category"), Category.OTHER),
            competitors=[Competitor.from_dict(c) for c in data.get("competitors", [])],
            suggested_price=data.get("suggested_price"),
            # A refresh never survives a restart.
            loading=False,
        )


@dataclass
class Notification:
    """User-facing alert."""

    id: str
    type: NotificationType
    message: str
    timestamp: datetime
    read: bool = False

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "type": self.type.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "read": self.read,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Notification":
        return cls(
            id=data["id"],
            type=parse_enum(NotificationType, data.get("type"), NotificationType.INFO),
            message=data.get("message", ""),
            timestamp=datetime.fromisoformat(data["timestamp"]),
            read=bool(data.get("read", False)),
        )


@dataclass(frozen=True)
class Quote:
    """Price/stock snapshot for one competitor, as returned by the oracle."""

    price: float
    stock_status: StockStatus = StockStatus.UNKNOWN
    promotion: str | None = None


@dataclass(frozen=True)
class SearchResult:
    """One listing found by the search oracle."""

    name: str
    price: float
    url: str
    sku: str | None = None
    category: str | None = None


@dataclass
class CompetitorInput:
    """Competitor row of an incoming record. id is only set when editing."""

    name: str
    url: str
    id: str | None = None


@dataclass
class NewProductData:
    """Incoming product record (manual entry, bulk import, search import)."""

    name: str
    my_price: float = 0
    sku: str | None = None
    my_promotion: str | None = None
    cost_price: float | None = None
    min_price: float | None = None
    strategy: Strategy = Strategy.MANUAL
    category: Category = Category.OTHER
    competitors: list[CompetitorInput] = field(default_factory=list)
