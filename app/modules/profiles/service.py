from supabase import Client
from app.config.messages import message, format_api_error
from app.modules.profiles.schemas import (
    ProfileUpdate, ProfileResponse, CoinsMode, ProfileStats, TopUser
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, supabase: Client, admin_supabase: Optional[Client] = None):
        self.supabase = supabase
        # Service role client for coin balance / admin flag writes; falls back to the regular client
        self.admin_supabase = admin_supabase or supabase

    def _fetch(self, user_id: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("profiles")\
            .select("*")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def get_profile(self, user_id: str) -> ProfileResponse:
        """Get profile by user ID"""
        try:
            data = self._fetch(user_id)
            if not data:
                raise HTTPException(status_code=404, detail=message("PROFILE.NOT_FOUND"))
            return ProfileResponse(**data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.FETCH_ERROR")))

    def ensure_profile(self, user_data: Dict[str, Any]) -> ProfileResponse:
        """Return the caller's profile, creating it from the auth user on first access"""
        try:
            data = self._fetch(user_data["id"])
            if data:
                return ProfileResponse(**data)
            metadata = user_data.get("user_metadata") or {}
            insert_data = {
                "id": user_data["id"],
                "email": user_data.get("email"),
                "full_name": metadata.get("full_name"),
                "company_name": metadata.get("company_name"),
                "coins": 0,
                "is_admin": False,
            }
            result = self.supabase.table("profiles").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=message("PROFILE.FETCH_ERROR"))
            logger.info(f"Created profile for user {user_data['id']}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error ensuring profile for {user_data.get('id')}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.FETCH_ERROR")))

    def update_profile(self, user_id: str, profile_data: ProfileUpdate) -> ProfileResponse:
        """Update the editable profile fields"""
        try:
            update_data = profile_data.model_dump(exclude_none=True)
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()

            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail=message("PROFILE.NOT_FOUND"))

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.UPDATE_FAILED")))

    def list_profiles(self, limit: int = 50, offset: int = 0) -> List[ProfileResponse]:
        """List all profiles, newest first (admin)"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [ProfileResponse(**p) for p in result.data or []]
        except Exception as e:
            logger.error(f"Error listing profiles: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.FETCH_ERROR")))

    def update_coins(self, user_id: str, amount: int, mode: CoinsMode = CoinsMode.ADD) -> ProfileResponse:
        """Add to or set the coin balance. Read-then-write; concurrent writers resolve last-write-wins."""
        try:
            current = self.admin_supabase.table("profiles")\
                .select("coins")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            if not current or not current.data:
                raise HTTPException(status_code=404, detail=message("PROFILE.NOT_FOUND"))

            current_coins = current.data.get("coins") or 0
            new_coins = current_coins + amount if mode == CoinsMode.ADD else amount
            if new_coins < 0:
                raise HTTPException(status_code=400, detail=message("ORDERS.INSUFFICIENT_COINS"))

            result = self.admin_supabase.table("profiles")\
                .update({"coins": new_coins, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("PROFILE.NOT_FOUND"))

            logger.info(f"Coins for {user_id}: {current_coins} -> {new_coins}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating coins for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.UPDATE_FAILED")))

    def set_admin(self, user_id: str, is_admin: bool, mirror_to_auth: bool = False) -> ProfileResponse:
        """Grant or revoke admin. Optionally mirrors the flag to auth app_metadata (requires service role key)."""
        try:
            result = self.admin_supabase.table("profiles")\
                .update({"is_admin": is_admin, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", user_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("PROFILE.NOT_FOUND"))

            if mirror_to_auth:
                app_metadata = {"type": "admin"} if is_admin else {}
                self.admin_supabase.auth.admin.update_user_by_id(
                    user_id,
                    {"app_metadata": app_metadata}
                )

            logger.info(f"Admin flag for {user_id} set to {is_admin}")
            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error setting admin flag for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PROFILE.UPDATE_FAILED")))

    def get_stats(self, top: int = 5) -> ProfileStats:
        """User counts and the users with most coins"""
        try:
            total = self.supabase.table("profiles").select("id", count="exact").execute()

            start_of_day = datetime.now(timezone.utc).replace(hour=0, minute=0, second=0, microsecond=0)
            today = self.supabase.table("profiles")\
                .select("id", count="exact")\
                .gte("created_at", start_of_day.isoformat())\
                .execute()

            top_result = self.supabase.table("profiles")\
                .select("id, email, full_name, coins")\
                .order("coins", desc=True)\
                .limit(top)\
                .execute()

            return ProfileStats(
                total_users=total.count or 0,
                new_users_today=today.count or 0,
                top_users=[TopUser(**u) for u in top_result.data or []]
            )
        except Exception as e:
            logger.error(f"Error computing user stats: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))
