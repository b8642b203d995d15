"""
Payment gateway callback verification.

The gateway signs callbacks with md5(merchantCode + amount + merchantOrderId + apiKey).
Only verification lives here; creating payment requests is handled elsewhere.
"""
import hashlib
import hmac

from app.config import settings


def callback_signature(merchant_code: str, amount: str, merchant_order_id: str, api_key: str) -> str:
    raw = f"{merchant_code}{amount}{merchant_order_id}{api_key}"
    return hashlib.md5(raw.encode("utf-8")).hexdigest()


def verify_callback_signature(merchant_code: str, amount: str, merchant_order_id: str, signature: str) -> bool:
    """
    Check a callback signature against the configured merchant credentials.

    Always False when the gateway credentials are not configured or the
    merchant code does not match ours.
    """
    if not settings.payment_api_key or not settings.payment_merchant_code:
        return False
    if merchant_code != settings.payment_merchant_code:
        return False
    expected = callback_signature(merchant_code, amount, merchant_order_id, settings.payment_api_key)
    return hmac.compare_digest(expected.encode("utf-8"), (signature or "").lower().encode("utf-8"))
