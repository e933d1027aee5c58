# Supabase table: cart_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- product_id: uuid (foreign key to products.id, not null)
- quantity: integer (not null, >= 1)
- created_at: timestamp (default: now())
- unique constraint on (user_id, product_id)

RLS: users only see and modify their own rows.
The table is a mirror of the client's cart; the last writer wins.
"""
