from fastapi import APIRouter, Depends
from fastapi import status as http_status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.dependencies import get_current_user
from app.auth.models import User
from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser, LoginRequest, LoginResponse, UserCreate, UserResponse
from app.auth.services import create_user, login_user
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import UserRole
from app.core.exceptions import AuthenticationError
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

router = APIRouter(prefix="/api/v1/auth", tags=["auth"])


@router.post(
    "/login",
    response_model=ApiResponse[LoginResponse],
    status_code=http_status.HTTP_200_OK,
)
async def login(
    payload: LoginRequest,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    result = await login_user(db, audit, payload)
    return ok(result, "Login successful")


@router.post("/login-oauth")
async def login_oauth(
    form_data: OAuth2PasswordRequestForm = Depends(),
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
):
    """Form-based login for the interactive docs' Authorize button."""
    payload = LoginRequest(
        email=form_data.username.strip(),
        password=form_data.password,
    )
    result = await login_user(db, audit, payload)
    return {
        "access_token": result.token,
        "token_type": "bearer",
    }


@router.post(
    "/register",
    response_model=ApiResponse[UserResponse],
    status_code=http_status.HTTP_201_CREATED,
)
async def register(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(require_roles(UserRole.ADMIN)),
):
    user = await create_user(db, audit, payload, performed_by=current_user, action="USER_REGISTER")
    return ok(user, "User registered")


@router.get("/me", response_model=ApiResponse[UserResponse])
async def me(
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
):
    user = await db.get(User, current_user.id)
    if not user:
        raise AuthenticationError()
    return ok(UserResponse.model_validate(user))
