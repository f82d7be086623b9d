class StagingError(Exception):
    """Base class for staging workflow errors."""


class InvalidTransition(StagingError):
    """Raised when a record's status does not allow the requested action."""

    def __init__(self, variation_sku: str, status: str | None, action: str):
        super().__init__(f"Cannot {action} {variation_sku} while {status or 'unstaged'}")
        self.variation_sku = variation_sku
        self.status = status
        self.action = action


class RecordNotFound(StagingError):
    """Raised when no staging record exists for a SKU."""

    def __init__(self, variation_sku: str):
        super().__init__(f"No staged price for {variation_sku}")
        self.variation_sku = variation_sku


class MarketplaceUnavailable(StagingError):
    """Raised when a push is requested without a marketplace client."""
