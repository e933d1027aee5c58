# Supabase tables: orders, order_items
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:

orders:
- id: uuid (primary key)
- user_id: uuid (foreign key to auth.users.id, not null)
- total_coins: integer (not null) - coins charged for the order
- status: text (not null, default: 'pending') - values: pending, completed, cancelled
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

order_items:
- id: uuid (primary key)
- order_id: uuid (foreign key to orders.id, not null)
- product_id: uuid (foreign key to products.id, not null)
- product_name: text (not null) - name at the time of the order
- quantity: integer (not null, > 0)
- price: integer (not null) - unit price in coins at the time of the order

RPC handle_new_order(p_user_id uuid, p_cart_items jsonb, p_total_amount integer)
returns {"order_id": uuid}. In one transaction it checks stock, inserts the
order and its items, decrements stock and deducts coins from the profile.
Raises 'Insufficient stock' when a product cannot cover the quantity.
"""
