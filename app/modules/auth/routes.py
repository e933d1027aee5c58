from fastapi import APIRouter, Depends, Request
from app.config import settings
from app.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, RefreshRequest,
    MessageResponse, MeResponse
)
from app.modules.auth.service import AuthService
from app.core.dependencies import (
    get_auth_service, get_current_token, get_current_user, get_user_supabase, is_admin
)
from app.core.limiter import limiter
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
@limiter.limit(settings.login_rate_limit)
async def login(
    request: Request,
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    refresh_data: RefreshRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Exchange a refresh token for a new access token"""
    return service.refresh(refresh_data.refresh_token)


@router.post("/logout", response_model=MessageResponse)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return MessageResponse(message="Sesión cerrada correctamente")


@router.get("/me", response_model=MeResponse)
async def get_me(
    current_user: Dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase),
):
    """Get current authenticated user and whether they are an admin (for frontend UI)."""
    return MeResponse(**current_user, is_admin=is_admin(current_user, supabase))
