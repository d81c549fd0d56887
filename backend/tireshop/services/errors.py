# Overview: Domain errors raised while pricing and settling a sale.


class SaleError(Exception):
    """Raised for sale operation errors."""
    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ProductNotFound(SaleError):
    """A catalog line references a product that does not exist or is deleted."""
    def __init__(self, product_id: int):
        super().__init__(
            f"Product not found: {product_id}",
            details={"product_id": product_id},
        )
        self.product_id = product_id


class InsufficientStock(SaleError):
    """Requested quantity exceeds what is on the shelf."""
    def __init__(self, product_id: int, product_name: str, requested: int, available: int):
        super().__init__(
            f"Insufficient stock for {product_name}. Available: {available}",
            details={
                "product_id": product_id,
                "requested_quantity": requested,
                "available": available,
            },
        )
        self.product_id = product_id
        self.product_name = product_name
        self.requested = requested
        self.available = available


class InvoiceNumberConflict(SaleError):
    """Generated invoice number already exists. Retry with a new suffix."""
    retryable = True


class CommitFailure(SaleError):
    """Persistence failed mid-settlement; everything was rolled back."""
