import hashlib
import logging
import time
from supabase import Client
from app.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from app.config import settings
from app.config.messages import message, format_api_error
from app.core.retry import call_with_backoff
from fastapi import HTTPException
from typing import Callable, Dict, Any, Optional

logger = logging.getLogger(__name__)

# Short-lived cache of verified users, keyed by token hash, to avoid one auth round-trip per request
_AUTH_USER_CACHE: Dict[str, tuple] = {}


class InvalidSessionError(Exception):
    """The token was checked and rejected (expired, malformed, revoked). Not worth retrying."""


class AuthUnavailableError(Exception):
    """The session check itself failed (network, upstream 5xx). Retried with backoff."""


def _token_key(token: str) -> str:
    return hashlib.sha256(token.encode()).hexdigest()


def _is_rejection(exc: Exception) -> bool:
    status = getattr(exc, "status", None)
    if status in (401, 403):
        return True
    error_msg = str(exc)
    return "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower()


def clear_auth_cache():
    _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(
        self,
        supabase: Client,
        session_client: Callable[[], Client],
        sleep: Callable[[float], None] = time.sleep
    ):
        self.supabase = supabase
        # sign-up, sign-in and refresh store a session on the client they run on
        self.session_client = session_client
        self.sleep = sleep

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth"""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name
            if register_data.company_name:
                user_metadata["company_name"] = register_data.company_name

            auth_response = self.session_client().auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise HTTPException(status_code=400, detail=message("AUTH.REGISTRATION_FAILED"))

            logger.info(f"Registered user {auth_response.user.id}")
            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="Usuario registrado correctamente"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e).lower()
            if "already registered" in error_message or "already exists" in error_message:
                raise HTTPException(status_code=400, detail=message("AUTH.EMAIL_IN_USE"))
            logger.error(f"Registration failed: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("AUTH.REGISTRATION_FAILED")))

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.session_client().auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })

            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail=message("AUTH.INVALID_CREDENTIALS"))

            return self._token_response(auth_response, fallback_email=login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e).lower()
            if "invalid" in error_message or "credentials" in error_message:
                raise HTTPException(status_code=401, detail=message("AUTH.INVALID_CREDENTIALS"))
            logger.error(f"Login failed: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new session"""
        try:
            auth_response = self.session_client().auth.refresh_session(refresh_token)
            if not auth_response.user or not auth_response.session:
                raise HTTPException(status_code=401, detail=message("AUTH.SESSION_EXPIRED"))
            return self._token_response(auth_response)
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"Session refresh failed: {e}")
            raise HTTPException(status_code=401, detail=message("AUTH.SESSION_EXPIRED"))

    def verify_token(self, token: str) -> Dict[str, Any]:
        """Single round-trip to Supabase Auth. Raises InvalidSessionError or AuthUnavailableError."""
        try:
            user_response = self.supabase.auth.get_user(jwt=token)
        except Exception as e:
            if _is_rejection(e):
                raise InvalidSessionError(str(e))
            raise AuthUnavailableError(str(e))
        if not user_response or not user_response.user:
            raise InvalidSessionError("No user for token")
        user = user_response.user
        return {
            "id": user.id,
            "email": user.email,
            "user_metadata": user.user_metadata or {},
            "app_metadata": user.app_metadata or {},
            "created_at": user.created_at,
            "updated_at": user.updated_at
        }

    def get_current_user(self, token: str) -> Dict[str, Any]:
        """Resolve the user behind a token, retrying transient failures with exponential backoff."""
        cache_key = _token_key(token)
        now = time.monotonic()
        cached = _AUTH_USER_CACHE.get(cache_key)
        if cached:
            user_data, expiry = cached
            if now < expiry:
                return user_data
            del _AUTH_USER_CACHE[cache_key]

        try:
            user_data = call_with_backoff(
                lambda: self.verify_token(token),
                max_retries=settings.auth_max_retries,
                base_delay=settings.auth_retry_base_delay,
                retry_on=(AuthUnavailableError,),
                sleep=self.sleep,
                label="Session check",
            )
        except (InvalidSessionError, AuthUnavailableError) as e:
            logger.info(f"Rejecting request, session not valid: {e}")
            raise HTTPException(status_code=401, detail=message("AUTH.SESSION_EXPIRED"))

        if len(_AUTH_USER_CACHE) < settings.auth_cache_max_size:
            _AUTH_USER_CACHE[cache_key] = (user_data, now + settings.auth_cache_ttl_seconds)
        return user_data

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        _AUTH_USER_CACHE.pop(_token_key(token), None)
        try:
            # Revokes the refresh session behind this token; the access token expires on its own
            self.supabase.auth.admin.sign_out(token)
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False

    @staticmethod
    def _token_response(auth_response, fallback_email: Optional[str] = None) -> TokenResponse:
        session = auth_response.session
        return TokenResponse(
            access_token=session.access_token,
            refresh_token=getattr(session, "refresh_token", None),
            token_type="bearer",
            expires_in=getattr(session, "expires_in", None),
            user_id=auth_response.user.id,
            email=auth_response.user.email or fallback_email or ""
        )
