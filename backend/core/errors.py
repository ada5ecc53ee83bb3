"""Error taxonomy shared by the inventory engine and its collaborators."""


class DataError(ValueError):
    """Raised when an input row cannot be used even after coercion."""


class MissingIdentifierError(DataError):
    """Raised when an order/sale record carries neither a SKU nor a product id."""

    def __init__(self, record_index: int | None = None):
        self.record_index = record_index
        where = f" at index {record_index}" if record_index is not None else ""
        super().__init__(f"Order record{where} has neither 'sku' nor 'product_id'")


class PersistenceError(RuntimeError):
    """Raised when a write to the persistence collaborator fails."""

    def __init__(self, message: str, product_id: str | None = None):
        self.product_id = product_id
        super().__init__(message)


class InvalidSettingsError(DataError):
    """Raised when a stored app_settings row fails policy validation."""

    def __init__(self, customer_id: str, detail: str):
        self.customer_id = customer_id
        super().__init__(f"Stored settings for customer {customer_id} are invalid: {detail}")
