"""
Services Module

Business logic behind the API routers:
- License keys: key drawing and hardware fingerprints
- Issuer: licenses for paid orders
- Validator: key checks, lazy expiry, hardware binding
- Sweeper: scheduled expiry and expiry warnings
- Notifications / Mailer: in-app notifications with email copies
- Payment: gateway callback signature verification
"""

from .license_keys import (
    generate_license_key,
    hardware_fingerprint,
    mint_unique_key,
)
from .license_issuer import (
    IssuanceResult,
    create_license,
    issue_licenses_for_order,
    mark_order_failed,
)
from .license_validator import (
    LicenseValidationResult,
    ValidationReason,
    validate_license,
)
from .license_sweeper import (
    SweepSummary,
    run_license_sweep,
)
from .payment import verify_callback_signature

__all__ = [
    # License keys
    "generate_license_key",
    "hardware_fingerprint",
    "mint_unique_key",
    # Issuer
    "IssuanceResult",
    "create_license",
    "issue_licenses_for_order",
    "mark_order_failed",
    # Validator
    "LicenseValidationResult",
    "ValidationReason",
    "validate_license",
    # Sweeper
    "SweepSummary",
    "run_license_sweep",
    # Payment
    "verify_callback_signature",
]
