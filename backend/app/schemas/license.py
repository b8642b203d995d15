# app/schemas/license.py
"""
Pydantic schemas for license validation and license administration endpoints.
"""
from __future__ import annotations

import datetime as dt
import uuid
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, constr


class HardwareInfoIn(BaseModel):
    """
    Machine components reported by the client application.
    Missing components are hashed as empty strings.
    """
    cpuId: Optional[str] = None
    motherboardId: Optional[str] = None
    diskId: Optional[str] = None
    macAddress: Optional[str] = None
    systemUuid: Optional[str] = None


class ValidateLicenseIn(BaseModel):
    """Request body for POST /license/validate."""
    licenseKey: constr(min_length=1, max_length=64)  # Exact key; matched case-sensitively
    productId: Optional[str] = None  # Product the client expects the key to unlock
    hardwareInfo: Optional[HardwareInfoIn] = None


class ProductSummaryOut(BaseModel):
    name: str
    version: str


class UserSummaryOut(BaseModel):
    name: str
    email: Optional[str] = None


class LicenseSummaryOut(BaseModel):
    """License view returned by a successful POST validation."""
    id: str
    licenseKey: str
    status: str
    productId: str
    expiresAt: Optional[str] = None
    product: ProductSummaryOut
    user: UserSummaryOut


class ValidateLicenseOut(BaseModel):
    valid: bool
    license: Optional[LicenseSummaryOut] = None
    reason: Optional[str] = None  # Machine-readable code, e.g. "WRONG_PRODUCT"
    error: Optional[str] = None  # Human-readable reason
    message: str


class LicenseCheckOut(BaseModel):
    """Reduced projection for GET /license/validate: no key, no user id."""
    productName: str
    userName: str
    expiresAt: Optional[str] = None
    status: str


class SimpleValidateOut(BaseModel):
    valid: bool
    reason: Optional[str] = None
    error: Optional[str] = None
    license: Optional[LicenseCheckOut] = None


# ========== Admin ==========
class AdminCreateLicenseIn(BaseModel):
    """Manual license issuance by an admin."""
    userId: uuid.UUID
    productId: uuid.UUID
    expiresAt: Optional[dt.datetime] = None  # None means perpetual
    hardwareBinding: bool = False


class AdminRevokeLicenseIn(BaseModel):
    reason: Optional[constr(strip_whitespace=True, max_length=512)] = None


class AdminLicenseOut(BaseModel):
    id: str
    licenseKey: str
    status: Literal["ACTIVE", "EXPIRED", "REVOKED"]
    userId: str
    productId: str
    orderId: Optional[str] = None
    expiresAt: Optional[str] = None
    requiresHardwareBinding: bool
    hardwareBound: bool
    revokedAt: Optional[str] = None
    revocationReason: Optional[str] = None
    createdAt: Optional[str] = None


class AdminLicenseListOut(BaseModel):
    items: List[AdminLicenseOut]
    offset: int
    limit: int
    total: int


class LastDownloadOut(BaseModel):
    date: str
    ipAddress: str


class LicenseStatsOut(BaseModel):
    downloadCount: int
    lastDownload: Optional[LastDownloadOut] = None


class AdminLicenseDetailOut(BaseModel):
    license: AdminLicenseOut
    stats: LicenseStatsOut


class UserLicenseOut(BaseModel):
    """A customer's own license, as shown on their dashboard."""
    id: str
    licenseKey: str
    status: str
    createdAt: Optional[str] = None
    expiresAt: Optional[str] = None
    isExpired: bool
    product: dict = Field(default_factory=dict)
