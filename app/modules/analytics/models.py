# Supabase table: qr_scan_events
# This file documents the expected database schema
# Actual operations are handled via Supabase SDK in service.py

"""
Expected Supabase table structure:
- id: uuid (primary key)
- qr_code_id: uuid (foreign key to qr_codes.id, nullable) - null when the scan did not resolve to a code
- product_id: uuid (foreign key to products.id, nullable)
- user_id: uuid (foreign key to auth.users.id, nullable)
- device_info: jsonb (nullable) - {"type": "mobile|desktop", "os": ..., "browser": ..., "screenSize": ...}
- success: boolean (not null)
- action_taken: text (not null) - values: scan, view, add_to_cart, error
- error: text (nullable)
- created_at: timestamp (default: now())

Inserts come from the scan flow and never block it; reads are admin only.
"""
