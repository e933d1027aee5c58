# Supabase table: profiles
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py
# Authentication is handled by Supabase Auth (auth.users table)

"""
Expected Supabase table structure:

profiles:
- id: uuid (primary key, references auth.users.id)
- email: text (not null) - synced from auth.users
- full_name: text (nullable)
- company_name: text (nullable)
- coins: integer (not null, default: 0) - virtual coin balance, never negative
- is_admin: boolean (not null, default: false)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

RLS: users read/update their own row; admins read all rows.
Coin and is_admin writes go through the service role client.
"""
