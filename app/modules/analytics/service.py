from supabase import Client
from app.config import settings
from app.config.messages import message, format_api_error
from app.modules.analytics.schemas import (
    ScanEvent, ScanAction, QREventCreate, QRScanStats, TopScannedProduct, DashboardStats
)
from app.modules.orders.service import OrderService
from typing import List, Dict, Any, Iterable, Optional
from fastapi import HTTPException
from datetime import datetime, timedelta, timezone
import logging

logger = logging.getLogger(__name__)

UNKNOWN_DEVICE = "Desconocido"
UNNAMED_PRODUCT = "Producto sin nombre"


def count_device_types(rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for row in rows:
        info = row.get("device_info") or {}
        device_type = info.get("type") or info.get("deviceType") or UNKNOWN_DEVICE
        counts[device_type] = counts.get(device_type, 0) + 1
    return counts


def rank_scanned_products(rows: Iterable[Dict[str, Any]], names: Dict[str, str], limit: int) -> List[TopScannedProduct]:
    counts: Dict[str, int] = {}
    for row in rows:
        product_id = row.get("product_id")
        if product_id:
            counts[product_id] = counts.get(product_id, 0) + 1
    ranked = sorted(counts.items(), key=lambda kv: kv[1], reverse=True)[:limit]
    return [
        TopScannedProduct(id=product_id, name=names.get(product_id) or UNNAMED_PRODUCT, scans=scans)
        for product_id, scans in ranked
    ]


def count_scans_by_date(rows: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Scans per UTC day, keyed YYYY-MM-DD"""
    counts: Dict[str, int] = {}
    for row in rows:
        created_at = row.get("created_at")
        if not created_at:
            continue
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at.replace("Z", "+00:00"))
        if created_at.tzinfo is not None:
            created_at = created_at.astimezone(timezone.utc)
        day = created_at.date().isoformat()
        counts[day] = counts.get(day, 0) + 1
    return dict(sorted(counts.items()))


class AnalyticsService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def track_scan(self, event: ScanEvent) -> bool:
        """Record a scan event. Never raises: analytics must not break the scan itself."""
        try:
            self.supabase.table("qr_scan_events").insert(event.model_dump(mode="json")).execute()
            return True
        except Exception as e:
            logger.error(f"Error tracking QR scan: {e}")
            return False

    def record_action(self, user_id: str, event_data: QREventCreate, device_info: Dict[str, Any]) -> bool:
        """Record a view or add-to-cart that followed a scan. Never raises."""
        qr_code_id = None
        product_id = event_data.product_id
        if event_data.code:
            try:
                result = self.supabase.table("qr_codes")\
                    .select("id, product_id")\
                    .eq("code", event_data.code)\
                    .maybe_single()\
                    .execute()
                if result and result.data:
                    qr_code_id = result.data["id"]
                    product_id = product_id or result.data.get("product_id")
            except Exception as e:
                logger.error(f"Error resolving QR code {event_data.code} for tracking: {e}")
        return self.track_scan(ScanEvent(
            qr_code_id=qr_code_id,
            product_id=product_id,
            user_id=user_id,
            device_info=device_info,
            success=True,
            action_taken=ScanAction(event_data.action_taken)
        ))

    def qr_stats(self, days: Optional[int] = None, top: Optional[int] = None) -> QRScanStats:
        """Scan totals, success rate, device mix, top products and the daily trend"""
        days = days or settings.qr_analytics_days
        top = top or settings.top_products_limit
        try:
            total = self.supabase.table("qr_scan_events").select("id", count="exact").execute()
            successful = self.supabase.table("qr_scan_events")\
                .select("id", count="exact")\
                .eq("success", True)\
                .execute()
            devices = self.supabase.table("qr_scan_events").select("device_info").execute()
            products = self.supabase.table("qr_scan_events")\
                .select("product_id")\
                .eq("success", True)\
                .execute()

            product_rows = [r for r in products.data or [] if r.get("product_id")]
            product_ids = list({r["product_id"] for r in product_rows})
            names: Dict[str, str] = {}
            if product_ids:
                names_result = self.supabase.table("products")\
                    .select("id, name")\
                    .in_("id", product_ids)\
                    .execute()
                names = {p["id"]: p.get("name") for p in names_result.data or []}

            since = datetime.now(timezone.utc) - timedelta(days=days)
            recent = self.supabase.table("qr_scan_events")\
                .select("created_at")\
                .gte("created_at", since.isoformat())\
                .execute()

            total_scans = total.count or 0
            return QRScanStats(
                total_scans=total_scans,
                success_rate=(successful.count or 0) / total_scans if total_scans else 0.0,
                device_types=count_device_types(devices.data or []),
                top_products=rank_scanned_products(product_rows, names, top),
                scans_by_date=count_scans_by_date(recent.data or [])
            )
        except Exception as e:
            logger.error(f"Error computing QR scan stats: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))

    def dashboard(self) -> DashboardStats:
        """Headline numbers for the admin dashboard"""
        try:
            users = self.supabase.table("profiles").select("id", count="exact").execute()
        except Exception as e:
            logger.error(f"Error counting users: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))
        order_stats = OrderService(self.supabase).get_stats()
        return DashboardStats(
            total_users=users.count or 0,
            total_orders=order_stats.total_orders,
            total_coins_spent=order_stats.total_coins_spent,
            popular_products=order_stats.popular_products
        )
