from uuid import UUID

from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.schemas import CurrentUser
from app.auth.security import decode_access_token
from app.core.exceptions import AuthenticationError
from app.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated principal from the access token.

    Missing token, bad signature, expiry, unknown subject and inactive subject
    all end in 401.
    """
    payload = decode_access_token(token)

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise AuthenticationError()
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise AuthenticationError()

    user = await db.get(User, user_id)
    if not user or not user.is_active:
        raise AuthenticationError()

    return CurrentUser(
        id=user.id,
        role=user.role,
        email=user.email,
        full_name=user.full_name,
        is_active=user.is_active,
    )
