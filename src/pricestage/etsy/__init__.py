class EtsyApiError(Exception):
    """Raised when an Etsy Open API call fails."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code
