from fastapi import Depends

from app.auth.dependencies import get_current_user
from app.auth.schemas import CurrentUser
from app.core.enums import UserRole
from app.core.exceptions import AuthorizationError


def require_roles(*roles: UserRole):
    """
    Dependency factory to gate an endpoint on the principal's role.

    Example:
        current_user: CurrentUser = Depends(require_roles(*MANAGEMENT_ROLES))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise AuthorizationError("Insufficient permissions")
        return current_user

    return _checker
