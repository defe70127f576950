class MarketplaceError(Exception):
    """Base exception for marketplace errors."""


class ExternalServiceError(MarketplaceError):
    """Raised when a payment processor call fails."""


class PaymentProviderNotConfiguredError(MarketplaceError):
    """Raised when a payment method is selected but its processor has no credentials."""


class PetUnavailableError(MarketplaceError):
    """Raised when a pet does not exist or can no longer be adopted."""


class CartItemNotFoundError(MarketplaceError):
    """Raised when a cart operation targets a pet that is not in the cart."""


class EmptyCartError(MarketplaceError):
    """Raised when checkout is attempted with nothing in the cart."""


class OrderNotFoundError(MarketplaceError):
    """Raised when an order reference does not match any order."""


class InvalidProofTransitionError(MarketplaceError):
    """Raised when a payment proof cannot move to the requested state."""


class PaymentConfirmationError(MarketplaceError):
    """Raised when a processor payment cannot mark its order as paid."""


class ShippingUnavailableError(MarketplaceError):
    """Raised when a cart line's shipping can no longer be quoted at checkout."""
