# app/core/security.py
"""
Security helpers: password hashing, access tokens for the storefront API
and short-lived signed download tokens.
"""
import os
import datetime as dt
import jwt  # PyJWT
from passlib.context import CryptContext
from dotenv import load_dotenv
from pathlib import Path

from app.config import settings

# Load environment variables from project root
ENV_PATH = Path(__file__).resolve().parents[2] / ".env"
load_dotenv(dotenv_path=ENV_PATH)

# Argon2 only; stored hashes are never plain text
pwd_context = CryptContext(
    schemes=["argon2"],
    deprecated="auto",
)

# JWT configuration
JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret")  # Use a strong secret in production
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
JWT_ALG = "HS256"

# Audience claim separating download tokens from access tokens
DOWNLOAD_TOKEN_AUDIENCE = "download"

def hash_password(plain: str) -> str:
    return pwd_context.hash(plain)

def verify_password(plain: str, hashed: str) -> bool:
    return pwd_context.verify(plain, hashed)

def create_access_token(user_id: str, role: str) -> str:
    """
    Create a JWT access token carrying the user id (``sub``) and role, so
    admin checks need no extra query beyond loading the user.
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": now + dt.timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES),
    }
    return jwt.encode(payload, JWT_SECRET, algorithm=JWT_ALG)

def decode_access_token(token: str) -> dict:
    """
    Decode and validate an access token.

    Raises:
        jwt.ExpiredSignatureError: If token has expired
        jwt.InvalidTokenError: If token is invalid or malformed
    """
    return jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])

def create_download_token(license_id: str, user_id: str) -> str:
    """
    Sign a download authorization for one license and its owner.

    The token expires after ``settings.download_token_ttl_minutes`` and is
    signed with ``DOWNLOAD_TOKEN_SECRET``, independent of the login secret.
    """
    now = dt.datetime.now(dt.timezone.utc)
    payload = {
        "lid": license_id,
        "sub": user_id,
        "aud": DOWNLOAD_TOKEN_AUDIENCE,
        "iat": now,
        "exp": now + dt.timedelta(minutes=settings.download_token_ttl_minutes),
    }
    return jwt.encode(payload, settings.download_token_secret, algorithm=JWT_ALG)

def verify_download_token(token: str) -> dict | None:
    """
    Return ``{"licenseId", "userId"}`` for a valid download token, else None.
    """
    try:
        payload = jwt.decode(
            token,
            settings.download_token_secret,
            algorithms=[JWT_ALG],
            audience=DOWNLOAD_TOKEN_AUDIENCE,
        )
    except jwt.InvalidTokenError:
        return None
    return {"licenseId": payload.get("lid"), "userId": payload.get("sub")}
