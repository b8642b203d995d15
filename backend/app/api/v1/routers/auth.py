# app/api/v1/routers/auth.py
from fastapi import APIRouter, Depends, HTTPException, Response, status

from app.api.v1.deps import get_current_user
from app.core.security import create_access_token, verify_password
from app.models.user import User
from app.schemas.auth import LoginRequest, UserOut

router = APIRouter(prefix="/auth", tags=["auth"])


def _user_out(user: User) -> dict:
    return UserOut(
        id=str(user.id),
        username=user.username,
        email=user.email,
        name=user.name,
        role=user.role,
    ).model_dump()


@router.post("/login")
async def login(payload: LoginRequest, response: Response):
    """
    Authenticate with username and password.

    The access token is returned in the body and also set as the HttpOnly
    ``accessToken`` cookie for browser clients.

    Raises:
        HTTPException (401): AUTH_INVALID_CREDENTIALS
    """
    user = await User.get_or_none(username=payload.username)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail={"code": "AUTH_INVALID_CREDENTIALS", "message": "Incorrect username or password"},
        )
    token = create_access_token(str(user.id), user.role)
    response.set_cookie("accessToken", token, httponly=True, secure=False, samesite="lax")
    return {"success": True, "data": {"user": _user_out(user), "accessToken": token}}


@router.get("/me")
async def me(user: User = Depends(get_current_user)):
    return {"success": True, "data": _user_out(user)}


@router.post("/logout")
async def logout(response: Response):
    """Clear the access token cookie. The token itself stays valid until it expires."""
    response.delete_cookie("accessToken")
    return {"success": True}
