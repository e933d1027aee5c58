# Supabase table: qr_codes
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- code: text (not null, unique) - short uppercase alphanumeric code printed in the QR
- product_id: uuid (foreign key to products.id, nullable)
- coins_value: integer (not null, default: 0) - coins credited when the code is redeemed
- is_used: boolean (not null, default: false) - set once the code has been redeemed
- description: text (nullable)
- qr_image_url: text (nullable)
- veces_escaneado: integer (not null, default: 0) - scan counter
- last_scanned_at: timestamp (nullable)
- created_by: uuid (foreign key to auth.users.id, nullable)
- created_at: timestamp (default: now())
- updated_at: timestamp (nullable)

RPC increment_qr_scan_count(qr_code text): atomically bumps veces_escaneado
and last_scanned_at for the code.
"""
