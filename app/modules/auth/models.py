# Accounts live in Supabase Auth (auth.users); this module owns no tables.
#
# Per-user data the app needs beyond credentials (coins, company, admin flag)
# is kept in public.profiles, see app/modules/profiles/models.py. A profile
# row is created on first access from the user_metadata written at sign up.

"""
Calls made against Supabase Auth:
- sign_up({email, password, options.data}) with full_name and company_name as user_metadata
- sign_in_with_password({email, password}) returns a session (access + refresh token)
- refresh_session(refresh_token) for a fresh access token
- get_user(jwt=...) on every protected request, cached per token for a short TTL
- sign_out() ends the refresh session; the access token simply expires
- admin.update_user_by_id(id, {app_metadata}) with the service role key only

app_metadata.type in ("admin", "super_user") grants admin without a profile lookup.
"""
