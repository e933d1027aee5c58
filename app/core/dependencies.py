"""
Core dependencies for route protection and admin checks
"""

from fastapi import Depends, HTTPException, Request, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from app.config.messages import message
from app.database.supabase_client import get_supabase, SupabaseClient
from app.modules.auth.service import AuthService
from supabase import Client
from typing import Dict, Any
import logging

logger = logging.getLogger(__name__)

security = HTTPBearer()

ADMIN_TYPES = ("admin", "super_user")


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase, SupabaseClient.create_session_client)


def get_current_token(
    credentials: HTTPAuthorizationCredentials = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    return credentials.credentials


def get_current_user(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> dict:
    """Extract current user info from JWT token (retries transient auth failures, then 401)"""
    return auth_service.get_current_user(token)


def get_user_supabase(token: str = Depends(get_current_token)) -> Client:
    """Supabase client acting as the caller, for queries that RLS scopes to their rows"""
    return SupabaseClient.create_user_client(token)


def _request_cache(request: Request) -> Dict[str, Any]:
    if not hasattr(request.state, "access_cache"):
        request.state.access_cache = {}
    return request.state.access_cache


def is_admin(user_data: dict, supabase: Client) -> bool:
    """Admin if app_metadata says so (set server-side) or the profile row has is_admin"""
    app_metadata = user_data.get("app_metadata") or {}
    if app_metadata.get("type") in ADMIN_TYPES or app_metadata.get("role") in ADMIN_TYPES:
        return True
    try:
        result = supabase.table("profiles")\
            .select("is_admin")\
            .eq("id", user_data["id"])\
            .maybe_single()\
            .execute()
        return bool(result and result.data and result.data.get("is_admin"))
    except Exception as e:
        logger.error(f"Error checking admin flag for {user_data.get('id')}: {e}")
        return False


def require_admin(
    request: Request,
    user_data: dict = Depends(get_current_user),
    supabase: Client = Depends(get_user_supabase)
) -> dict:
    """Dependency that lets only admins through"""
    cache = _request_cache(request)
    if "is_admin" not in cache:
        cache["is_admin"] = is_admin(user_data, supabase)
    if not cache["is_admin"]:
        logger.warning(f"User {user_data['id']} attempted an admin action without admin role")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=message("AUTH.UNAUTHORIZED")
        )
    return user_data
