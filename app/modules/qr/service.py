from supabase import Client
from app.config import settings
from app.config.messages import message, format_api_error
from app.modules.analytics.schemas import ScanEvent, ScanAction
from app.modules.analytics.service import AnalyticsService
from app.modules.products.schemas import ProductResponse
from app.modules.products.service import ProductService
from app.modules.profiles.schemas import CoinsMode
from app.modules.profiles.service import ProfileService
from app.modules.qr.parser import parse_qr_content, generate_code
from app.modules.qr.schemas import (
    QRCodeCreate, QRCodeUpdate, QRCodeResponse, ScanResult, RedeemResponse, QRCodeStats
)
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)

MAX_CODE_ATTEMPTS = 5


class QRService:
    def __init__(self, supabase: Client, admin_supabase: Optional[Client] = None):
        self.supabase = supabase
        self.admin_supabase = admin_supabase or supabase
        self.products = ProductService(supabase)
        self.analytics = AnalyticsService(supabase)

    def _find_code(self, code: str) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("qr_codes")\
            .select("*")\
            .eq("code", code)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def _with_url(self, row: Dict[str, Any], product: Optional[Dict[str, Any]] = None) -> QRCodeResponse:
        url = None
        if product:
            url = settings.product_url(product.get("urlpage") or product["id"])
        elif row.get("product_id"):
            url = settings.product_url(row["product_id"])
        return QRCodeResponse(**row, url=url)

    def _unique_code(self) -> str:
        for _ in range(MAX_CODE_ATTEMPTS):
            code = generate_code(settings.qr_code_length)
            if not self._find_code(code):
                return code
        raise HTTPException(status_code=500, detail=message("GENERAL.UNEXPECTED_ERROR"))

    def create_code(self, qr_data: QRCodeCreate, created_by: str) -> QRCodeResponse:
        """Create a QR code for an existing product (admin)"""
        try:
            product = self.products.find_product(qr_data.product_id)
            if not product:
                raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))

            insert_data = {
                "code": self._unique_code(),
                "product_id": product["id"],
                "coins_value": qr_data.coins_value,
                "description": qr_data.description or f"QR para {product['name']}",
                "created_by": created_by,
                "is_used": False,
                "veces_escaneado": 0,
            }
            result = self.supabase.table("qr_codes").insert(insert_data).execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=message("API.REQUEST_FAILED"))
            logger.info(f"Created QR code {insert_data['code']} for product {product['id']}")
            return self._with_url(result.data[0], product)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating QR code for {qr_data.product_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def list_codes(self, limit: int = 50, offset: int = 0) -> List[QRCodeResponse]:
        """QR codes, newest first (admin)"""
        try:
            result = self.supabase.table("qr_codes")\
                .select("*")\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            return [self._with_url(row) for row in result.data or []]
        except Exception as e:
            logger.error(f"Error listing QR codes: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def get_code(self, code: str) -> QRCodeResponse:
        try:
            row = self._find_code(code)
            if not row:
                raise HTTPException(status_code=404, detail=message("QR.NOT_FOUND"))
            return self._with_url(row)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching QR code {code}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def update_code(self, qr_id: str, qr_data: QRCodeUpdate) -> QRCodeResponse:
        update_data = qr_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail=message("PRODUCTS.NO_UPDATES"))
        try:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("qr_codes")\
                .update(update_data)\
                .eq("id", qr_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("QR.NOT_FOUND"))
            return self._with_url(result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating QR code {qr_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def delete_code(self, qr_id: str) -> bool:
        try:
            result = self.supabase.table("qr_codes")\
                .delete()\
                .eq("id", qr_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("QR.NOT_FOUND"))
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting QR code {qr_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def increment_scan_count(self, code: str) -> bool:
        """Bump the scan counter via RPC, falling back to a read-then-update"""
        try:
            self.supabase.rpc("increment_qr_scan_count", {"qr_code": code}).execute()
            return True
        except Exception as e:
            logger.warning(f"increment_qr_scan_count RPC failed for {code}, updating directly: {e}")
        try:
            row = self._find_code(code)
            if not row:
                return False
            current = row.get("veces_escaneado") or 0
            self.supabase.table("qr_codes")\
                .update({
                    "veces_escaneado": current + 1,
                    "last_scanned_at": datetime.now(timezone.utc).isoformat()
                })\
                .eq("code", code)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error updating scan count for {code}: {e}")
            return False

    def scan(self, content: str, user_id: Optional[str], device_info: Dict[str, Any]) -> ScanResult:
        """Resolve a scanned payload to its product, counting and recording the scan"""
        try:
            return self._scan(content, user_id, device_info)
        except Exception as e:
            logger.error(f"Error scanning QR content for {user_id}: {e}")
            return self._failed_scan(None, None, user_id, device_info, message("QR.SCAN_FAILED"))

    def _scan(self, content: str, user_id: Optional[str], device_info: Dict[str, Any]) -> ScanResult:
        parsed = parse_qr_content(content)
        if not parsed.is_valid:
            self.analytics.track_scan(ScanEvent(
                user_id=user_id, device_info=device_info, success=False,
                action_taken=ScanAction.ERROR, error=parsed.error
            ))
            return ScanResult(is_valid=False, error=parsed.error)

        qr_row = self._find_code(parsed.code) if parsed.code else None
        product_ref = parsed.product_ref or (qr_row or {}).get("product_id")
        if parsed.code and not qr_row and not parsed.product_ref:
            return self._failed_scan(parsed.code, None, user_id, device_info, message("QR.NOT_FOUND"))

        product = self.products.find_product(product_ref) if product_ref else None
        if not product:
            return self._failed_scan(parsed.code, qr_row, user_id, device_info, message("PRODUCTS.NOT_FOUND"), product_ref)

        if qr_row:
            self.increment_scan_count(qr_row["code"])

        self.analytics.track_scan(ScanEvent(
            qr_code_id=qr_row["id"] if qr_row else None,
            product_id=product["id"],
            user_id=user_id,
            device_info=device_info,
            success=True,
            action_taken=ScanAction.SCAN
        ))
        return ScanResult(
            is_valid=True,
            product_id=product["id"],
            code=parsed.code,
            coins_value=0 if not qr_row or qr_row.get("is_used") else qr_row.get("coins_value") or 0,
            product=ProductResponse(**product)
        )

    def _failed_scan(self, code, qr_row, user_id, device_info, error, product_id=None) -> ScanResult:
        self.analytics.track_scan(ScanEvent(
            qr_code_id=qr_row["id"] if qr_row else None,
            user_id=user_id,
            device_info=device_info,
            success=False,
            action_taken=ScanAction.ERROR,
            error=error
        ))
        return ScanResult(is_valid=False, product_id=product_id, code=code, error=error)

    def _release_code(self, code: str):
        try:
            self.admin_supabase.table("qr_codes")\
                .update({"is_used": False, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("code", code)\
                .execute()
        except Exception as e:
            logger.error(f"Could not release QR code {code}, it stays claimed: {e}")

    def redeem(self, code: str, user_data: Dict[str, Any]) -> RedeemResponse:
        """Credit a code's coins to the caller. Each code pays out once."""
        try:
            row = self._find_code(code)
            if not row or row.get("is_used") or not row.get("coins_value"):
                raise HTTPException(status_code=400, detail=message("QR.INVALID_CODE"))

            # Conditional update: only one redeemer can flip is_used
            claimed = self.admin_supabase.table("qr_codes")\
                .update({"is_used": True, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("code", code)\
                .eq("is_used", False)\
                .execute()
            if not claimed.data:
                raise HTTPException(status_code=400, detail=message("QR.INVALID_CODE"))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error claiming QR code {code}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("QR.SCAN_FAILED")))

        try:
            profiles = ProfileService(self.supabase, self.admin_supabase)
            profiles.ensure_profile(user_data)
            profile = profiles.update_coins(user_data["id"], row["coins_value"], CoinsMode.ADD)
        except Exception as e:
            logger.error(f"Crediting {code} to {user_data['id']} failed, releasing the code: {e}")
            self._release_code(code)
            if isinstance(e, HTTPException):
                raise
            raise HTTPException(status_code=500, detail=format_api_error(e, message("QR.SCAN_FAILED")))
        logger.info(f"User {user_data['id']} redeemed {code} for {row['coins_value']} coins")
        return RedeemResponse(
            code=code,
            coins_awarded=row["coins_value"],
            coins_balance=profile.coins,
            message=f"Has recibido {row['coins_value']} monedas"
        )

    def get_stats(self) -> QRCodeStats:
        try:
            total = self.supabase.table("qr_codes").select("id", count="exact").execute()
            used = self.supabase.table("qr_codes")\
                .select("id", count="exact")\
                .eq("is_used", True)\
                .execute()
            scans = self.supabase.table("qr_codes").select("veces_escaneado").execute()
            return QRCodeStats(
                total_codes=total.count or 0,
                used_codes=used.count or 0,
                total_scans=sum(r.get("veces_escaneado") or 0 for r in scans.data or [])
            )
        except Exception as e:
            logger.error(f"Error computing QR code stats: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))
