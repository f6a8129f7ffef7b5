class MarketplaceError(Exception):
    """Base class for every failure raised by the marketplace."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidInput(MarketplaceError):
    pass


class Unauthorized(MarketplaceError):
    pass


class NotFound(MarketplaceError):
    pass


class AlreadyFinalized(MarketplaceError):
    pass


class InsufficientFunds(MarketplaceError):
    pass


class TransferFailed(MarketplaceError):
    pass


class ConfigError(InvalidInput):
    """Configuration file or value is invalid."""
