# Supabase table: products
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- name: text (not null)
- description: text (nullable)
- price: integer (not null, > 0) - cost in coins
- category: text (nullable)
- image_url: text (nullable) - public URL in the "products" (or fallback "images") storage bucket
- stock: integer (not null, >= 0)
- max_per_user: integer (not null, > 0, default: 1) - max units of this product in one cart
- sku: text (nullable)
- urlpage: text (nullable, unique) - slug used in product links and QR codes
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

Storage buckets: products (primary), images (fallback) - public read.
"""
