"""
Authentication API endpoints.

Admin sign-in, sign-out and session info for the admin console.
"""

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from tracking_backend.app.db.session import get_db
from tracking_backend.app.models.user import User
from tracking_backend.app.schemas.auth import UserLogin, TokenResponse, UserResponse
from tracking_backend.app.core.security import verify_password
from tracking_backend.app.core.jwt import create_access_token
from tracking_backend.app.core.dependencies import get_current_user
from tracking_backend.app.core.token_revocation import revoke_token
from tracking_backend.app.services.audit import record_event, AuditAction

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    Sign in an admin and return a JWT token.

    Accepts username or email. Successful and failed attempts are audited.
    """
    ip_address = request.client.host if request.client else None

    result = await db.execute(
        select(User).where(
            or_(User.username == credentials.username, User.email == credentials.username)
        )
    )
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        await record_event(
            db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id if user else None,
            actor_username=credentials.username,
            ip_address=ip_address,
            metadata={"reason": "User not found" if not user else "Invalid password"}
        )
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        await record_event(
            db,
            action=AuditAction.LOGIN_FAILED,
            actor_id=user.id,
            actor_username=user.username,
            ip_address=ip_address,
            metadata={"reason": "Account is inactive"}
        )
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Inactive user account"
        )

    access_token = create_access_token(data={"sub": user.username, "user_id": user.id})
    response = TokenResponse(
        access_token=access_token,
        token_type="bearer",
        user_id=user.id,
        username=user.username,
        email=user.email
    )

    await record_event(
        db,
        action=AuditAction.LOGIN_SUCCESS,
        actor_id=user.id,
        actor_username=user.username,
        ip_address=ip_address
    )

    return response


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT)
async def logout(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Sign out: the presented token is blacklisted until it expires.
    """
    revoked = await revoke_token(current_user["token"], current_user["user_id"])
    if not revoked:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Could not revoke token, try again"
        )

    await record_event(
        db,
        action=AuditAction.LOGOUT,
        actor_id=current_user["user_id"],
        actor_username=current_user.get("sub")
    )


@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Get the signed-in admin.

    Raises:
        404: If user not found in database
    """
    result = await db.execute(select(User).where(User.id == current_user["user_id"]))
    user = result.scalar_one_or_none()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )

    return UserResponse.model_validate(user)
