# app/core/errors.py
"""
Domain exceptions for the licensing services.

Validation outcomes are never raised (see LicenseValidationResult); these
exceptions cover issuance and lookups that routers translate into HTTP errors.
"""


class LicenseError(Exception):
    """Base class for licensing failures."""

    code = "LICENSE_ERROR"


class LicenseKeyCollisionError(LicenseError):
    """No unused key could be drawn within the retry budget."""

    code = "KEY_GENERATION_COLLISION"


class LicenseIssuanceError(LicenseError):
    """Issuing licenses for a paid order failed; nothing was committed."""

    code = "LICENSE_ISSUANCE_FAILED"

    def __init__(self, order_id, message: str = "License issuance failed"):
        super().__init__(message)
        self.order_id = order_id


class OrderNotFoundError(LicenseError):
    code = "ORDER_NOT_FOUND"

    def __init__(self, order_id):
        super().__init__(f"Order {order_id} not found")
        self.order_id = order_id
