# app/schemas/auth.py
"""
Pydantic schemas for authentication endpoints.
"""
from typing import Optional

from pydantic import BaseModel

class LoginRequest(BaseModel):
    username: str
    password: str  # Plain text, verified against the stored Argon2 hash

class UserOut(BaseModel):
    id: str
    username: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: str = "user"
