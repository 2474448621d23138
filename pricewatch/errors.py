"""Typed failures returned across the tracker boundary."""


class PricewatchError(Exception):
    """Base class for pricewatch failures."""


class ValidationError(PricewatchError):
    """Incoming record rejected before it touched tracked state."""


class ProductNotFoundError(PricewatchError):
    """No tracked product with the given id."""

    def __init__(self, product_id: str):
        super().__init__(f"Product not found: {product_id}")
        self.product_id = product_id


class StorageError(PricewatchError):
    """Durable state could not be read."""
