class MarginError(ValueError):
    """Raised when a requested margin modifier cannot be applied."""

    def __init__(self, message: str, margin_pct=None):
        super().__init__(message)
        self.margin_pct = margin_pct


class InvalidMargin(MarginError):
    """Margin outside the accepted 0..max range."""


class UnsolvableMargin(MarginError):
    """Margin higher than the fee structure leaves room for."""
