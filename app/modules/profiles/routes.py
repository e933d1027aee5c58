from fastapi import APIRouter, Depends, Query
from app.database.supabase_client import get_service_supabase, SupabaseClient
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, CoinsUpdate, AdminUpdate, ProfileStats
)
from app.modules.profiles.service import ProfileService
from app.core.dependencies import get_current_user, get_user_supabase, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(
    supabase: Client = Depends(get_user_supabase),
    admin_supabase: Client = Depends(get_service_supabase)
) -> ProfileService:
    return ProfileService(supabase, admin_supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Get the caller's profile, including coin balance"""
    return service.ensure_profile(current_user)


@router.put("/me", response_model=ProfileResponse)
async def update_my_profile(
    profile_data: ProfileUpdate,
    current_user: Dict = Depends(get_current_user),
    service: ProfileService = Depends(get_profile_service)
):
    """Update the caller's name and company"""
    service.ensure_profile(current_user)
    return service.update_profile(current_user["id"], profile_data)


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """List users (admin)"""
    return service.list_profiles(limit=limit, offset=offset)


@router.get("/stats", response_model=ProfileStats)
async def get_profile_stats(
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """User totals and top coin holders (admin)"""
    return service.get_stats()


@router.get("/{user_id}", response_model=ProfileResponse)
async def get_profile(
    user_id: str,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Get any user's profile (admin)"""
    return service.get_profile(user_id)


@router.put("/{user_id}/coins", response_model=ProfileResponse)
async def update_coins(
    user_id: str,
    coins_data: CoinsUpdate,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Add to or set a user's coin balance (admin)"""
    return service.update_coins(user_id, coins_data.amount, coins_data.mode)


@router.put("/{user_id}/admin", response_model=ProfileResponse)
async def set_admin(
    user_id: str,
    admin_data: AdminUpdate,
    user_data: Dict = Depends(require_admin),
    service: ProfileService = Depends(get_profile_service)
):
    """Grant or revoke admin (admin)"""
    return service.set_admin(
        user_id,
        admin_data.is_admin,
        mirror_to_auth=SupabaseClient.has_service_client()
    )
