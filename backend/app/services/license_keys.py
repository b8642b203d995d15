"""
License key and hardware fingerprint generation.
"""
import hashlib
import logging
import secrets
import string
from typing import Mapping, Optional

from app.core.errors import LicenseKeyCollisionError
from app.models.license import License

logger = logging.getLogger("uvicorn.error")

KEY_ALPHABET = string.ascii_uppercase + string.digits
KEY_GROUPS = 4
KEY_GROUP_SIZE = 4
MAX_KEY_ATTEMPTS = 10

# Order matters: the fingerprint is the sha256 of these values joined by "|"
HARDWARE_FIELDS = ("cpuId", "motherboardId", "diskId", "macAddress", "systemUuid")


def generate_license_key() -> str:
    """
    Draw a fresh key like ``7QK2-M9XD-4HBA-ZP3C``.

    16 characters over a 36-symbol alphabet (~82 bits), drawn from ``secrets``.
    """
    groups = [
        "".join(secrets.choice(KEY_ALPHABET) for _ in range(KEY_GROUP_SIZE))
        for __ in range(KEY_GROUPS)
    ]
    return "-".join(groups)


async def mint_unique_key(max_attempts: int = MAX_KEY_ATTEMPTS, using_db=None) -> str:
    """
    Return a key that is not present in the license table.

    Every retry draws new randomness. The unique index on ``license_key`` still
    guards the insert itself against a concurrent writer.

    Raises:
        LicenseKeyCollisionError: if every attempt hit an existing key
    """
    for attempt in range(max_attempts):
        key = generate_license_key()
        if not await License.filter(license_key=key).using_db(using_db).exists():
            return key
        logger.warning("[license] key collision on attempt %d, redrawing", attempt + 1)
    raise LicenseKeyCollisionError(f"no unused license key after {max_attempts} attempts")


def hardware_fingerprint(hardware_info: Optional[Mapping[str, Optional[str]]]) -> Optional[str]:
    """
    Hash the presented machine components into a stable fingerprint.

    Returns None when nothing was presented (no dict, or every component empty).
    """
    if not hardware_info:
        return None
    parts = [(hardware_info.get(name) or "").strip() for name in HARDWARE_FIELDS]
    if not any(parts):
        return None
    return hashlib.sha256("|".join(parts).encode("utf-8")).hexdigest()
