"""Admin endpoints: barangay and user account directory (admin only)."""
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, status
from pydantic import BaseModel

from ..core.security import require_role
from ..core.session import SessionContext
from ..models.user import UserRole
from ..services.directory import DirectoryService
from .deps import get_directory

router = APIRouter(prefix="/admin", tags=["admin"])


class BarangayCreate(BaseModel):
    name: str
    municipality: str
    province: str


class BarangayResponse(BaseModel):
    id: str
    name: str
    municipality: str
    province: str
    created_at: Optional[datetime] = None


class UserCreate(BaseModel):
    email: str
    password: str
    full_name: str
    role: str = UserRole.BARANGAY
    barangay_id: Optional[str] = None


class UserResponse(BaseModel):
    id: str
    email: str
    full_name: str
    role: str
    barangay_id: Optional[str]
    barangay: Optional[BarangayResponse] = None
    created_at: Optional[datetime] = None


@router.get("/barangays", response_model=List[BarangayResponse])
def list_barangays(
    directory: DirectoryService = Depends(get_directory),
    ctx: SessionContext = Depends(require_role(UserRole.ADMIN)),
):
    return directory.list_barangays(ctx.scope)


@router.post("/barangays", response_model=BarangayResponse, status_code=status.HTTP_201_CREATED)
def create_barangay(
    req: BarangayCreate,
    directory: DirectoryService = Depends(get_directory),
    ctx: SessionContext = Depends(require_role(UserRole.ADMIN)),
):
    return directory.create_barangay(ctx.scope, req.name, req.municipality, req.province)


@router.get("/users", response_model=List[UserResponse])
def list_users(
    directory: DirectoryService = Depends(get_directory),
    ctx: SessionContext = Depends(require_role(UserRole.ADMIN)),
):
    """All accounts, newest first, with their barangay."""
    return directory.list_accounts(ctx.scope)


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def create_user(
    req: UserCreate,
    directory: DirectoryService = Depends(get_directory),
    ctx: SessionContext = Depends(require_role(UserRole.ADMIN)),
):
    """Issue a sign-in credential and save the directory profile."""
    return directory.create_account(
        ctx.scope,
        email=req.email,
        password=req.password,
        full_name=req.full_name,
        role=req.role,
        barangay_id=req.barangay_id,
    )
