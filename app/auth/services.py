from typing import Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import CurrentUser, LoginRequest, LoginResponse, UserCreate, UserResponse
from app.auth.security import create_access_token, hash_password, verify_password
from app.core.app_logger import get_logger
from app.core.audit_service import AuditRecorder
from app.core.exceptions import AuthenticationError, AuthorizationError, ConflictError, ServiceError
from app.db.session import utcnow

logger = get_logger("auth")


async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
    result = await db.execute(select(User).where(func.lower(User.email) == email.strip().lower()))
    return result.scalar_one_or_none()


async def create_user(
    db: AsyncSession,
    audit: AuditRecorder,
    payload: UserCreate,
    *,
    performed_by: Optional[CurrentUser] = None,
    action: str = "USER_REGISTER",
) -> UserResponse:
    email = payload.email.strip().lower()
    if await get_user_by_email(db, email):
        raise ConflictError("Email is already in use")

    user = User(
        full_name=payload.full_name.strip(),
        email=email,
        password_hash=hash_password(payload.password),
        role=payload.role.value,
        is_active=True,
    )
    db.add(user)
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        raise ConflictError("Email is already in use") from e
    await db.refresh(user)

    audit.record(
        action,
        "User",
        user.id,
        performed_by=performed_by.id if performed_by else None,
        metadata={"email": user.email, "role": user.role},
    )
    return UserResponse.model_validate(user)


async def login_user(db: AsyncSession, audit: AuditRecorder, payload: LoginRequest) -> LoginResponse:
    # 1. Find user by email (case-insensitive)
    user = await get_user_by_email(db, payload.email)
    if not user:
        logger.warning("Failed login for unknown email %s", payload.email)
        raise AuthenticationError("Invalid credentials")

    # 2. Verify password hash
    if not verify_password(payload.password, user.password_hash):
        logger.warning("Failed login for %s: bad password", user.email)
        raise AuthenticationError("Invalid credentials")

    # 3. Check user status
    if not user.is_active:
        raise AuthorizationError("User is inactive")

    # 4. Generate access token
    token = create_access_token(
        subject={"sub": str(user.id), "role": user.role, "email": user.email}
    )

    user.last_login_at = utcnow()
    try:
        await db.commit()
    except Exception as e:
        await db.rollback()
        raise ServiceError("Failed to persist authentication state") from e
    await db.refresh(user)

    audit.record("USER_LOGIN", "User", user.id, performed_by=user.id)
    return LoginResponse(token=token, user=UserResponse.model_validate(user))
