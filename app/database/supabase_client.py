from supabase import create_client, Client, ClientOptions
from app.config import settings
from typing import Optional
import logging

logger = logging.getLogger(__name__)


class SupabaseClient:
    """
    Process-wide Supabase clients: one with the anon key, one with the service role key.
    Neither ever holds a user session. Sign-in and per-user queries get their own clients.
    """

    _anon: Optional[Client] = None
    _service: Optional[Client] = None
    _warned_no_service_key = False

    @classmethod
    def get_client(cls) -> Client:
        if cls._anon is None:
            cls._anon = create_client(settings.supabase_url, settings.supabase_key)
        return cls._anon

    @classmethod
    def has_service_client(cls) -> bool:
        return bool(settings.supabase_service_role_key)

    @classmethod
    def get_service_client(cls) -> Client:
        """Bypasses RLS. Used for coin balance, QR redemption and admin flag writes."""
        if not cls.has_service_client():
            if not cls._warned_no_service_key:
                logger.warning("SUPABASE_SERVICE_ROLE_KEY not set; admin writes go through the anon client")
                cls._warned_no_service_key = True
            return cls.get_client()
        if cls._service is None:
            cls._service = create_client(settings.supabase_url, settings.supabase_service_role_key)
        return cls._service

    @classmethod
    def create_user_client(cls, token: str) -> Client:
        """Client for one request, sending the caller's JWT so RLS sees that user"""
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(
                headers={"Authorization": f"Bearer {token}"},
                auto_refresh_token=False,
                persist_session=False
            )
        )

    @classmethod
    def create_session_client(cls) -> Client:
        """Throwaway client for sign-in and refresh, whose session must not leak into shared clients"""
        return create_client(
            settings.supabase_url,
            settings.supabase_key,
            options=ClientOptions(auto_refresh_token=False, persist_session=False)
        )

    @classmethod
    def reset_client(cls):
        cls._anon = None
        cls._service = None
        cls._warned_no_service_key = False


def get_supabase() -> Client:
    return SupabaseClient.get_client()


def get_service_supabase() -> Client:
    return SupabaseClient.get_service_client()
