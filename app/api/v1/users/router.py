from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.rbac import require_roles
from app.auth.schemas import CurrentUser, UserCreate, UserResponse, UserUpdate
from app.auth.services import create_user
from app.core.audit_service import AuditRecorder, get_audit_recorder
from app.core.enums import UserRole
from app.core.schemas import ApiResponse, ok
from app.db.session import get_db

from . import service

router = APIRouter(prefix="/api/v1/users", tags=["users"])

admin_only = require_roles(UserRole.ADMIN)


@router.post(
    "",
    response_model=ApiResponse[UserResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create(
    payload: UserCreate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(admin_only),
):
    user = await create_user(db, audit, payload, performed_by=current_user, action="USER_CREATE_ADMIN")
    return ok(user, "User created")


@router.get("", response_model=ApiResponse[List[UserResponse]])
async def list_users(
    role: Optional[UserRole] = Query(None),
    active: Optional[bool] = Query(None),
    search: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only),
):
    return ok(await service.list_users(db, role=role, active=active, search=search))


@router.get("/{user_id}", response_model=ApiResponse[UserResponse])
async def get_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(admin_only),
):
    user = await service.get_user_or_404(db, user_id)
    return ok(UserResponse.model_validate(user))


@router.put("/{user_id}", response_model=ApiResponse[UserResponse])
async def update_user(
    user_id: UUID,
    payload: UserUpdate,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(admin_only),
):
    return ok(await service.update_user(db, audit, current_user, user_id, payload), "User updated")


@router.delete("/{user_id}", response_model=ApiResponse[UserResponse])
async def deactivate_user(
    user_id: UUID,
    db: AsyncSession = Depends(get_db),
    audit: AuditRecorder = Depends(get_audit_recorder),
    current_user: CurrentUser = Depends(admin_only),
):
    return ok(await service.deactivate_user(db, audit, current_user, user_id), "User deactivated")
