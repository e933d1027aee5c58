from fastapi import APIRouter, Depends, Query, Request
from app.config import settings
from app.core.limiter import limiter
from app.database.supabase_client import get_service_supabase
from app.modules.analytics.device import device_info_from_user_agent
from app.modules.qr.schemas import (
    QRCodeCreate, QRCodeUpdate, QRCodeResponse, ScanRequest, ScanResult,
    RedeemRequest, RedeemResponse, QRCodeStats
)
from app.modules.qr.service import QRService
from app.core.dependencies import get_current_user, get_user_supabase, require_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/qr", tags=["qr"])


def get_qr_service(
    supabase: Client = Depends(get_user_supabase),
    admin_supabase: Client = Depends(get_service_supabase)
) -> QRService:
    return QRService(supabase, admin_supabase)


@router.post("/scan", response_model=ScanResult)
@limiter.limit(settings.scan_rate_limit)
async def scan_qr(
    request: Request,
    scan_data: ScanRequest,
    current_user: Dict = Depends(get_current_user),
    service: QRService = Depends(get_qr_service)
):
    """Resolve a scanned QR payload to its product. Failures come back as is_valid=false."""
    device_info = device_info_from_user_agent(
        request.headers.get("user-agent"),
        scan_data.screen_size
    )
    return service.scan(scan_data.content, current_user["id"], device_info)


@router.post("/redeem", response_model=RedeemResponse)
async def redeem_qr(
    redeem_data: RedeemRequest,
    current_user: Dict = Depends(get_current_user),
    service: QRService = Depends(get_qr_service)
):
    """Credit a code's coins to the caller"""
    return service.redeem(redeem_data.code, current_user)


@router.post("/codes", response_model=QRCodeResponse, status_code=201)
async def create_qr_code(
    qr_data: QRCodeCreate,
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    """Create a QR code for a product (admin)"""
    return service.create_code(qr_data, user_data["id"])


@router.get("/codes", response_model=List[QRCodeResponse])
async def list_qr_codes(
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    return service.list_codes(limit=limit, offset=offset)


@router.get("/codes/stats", response_model=QRCodeStats)
async def get_qr_code_stats(
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    """Code totals and scan count (admin)"""
    return service.get_stats()


@router.get("/codes/{code}", response_model=QRCodeResponse)
async def get_qr_code(
    code: str,
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    return service.get_code(code)


@router.put("/codes/{qr_id}", response_model=QRCodeResponse)
async def update_qr_code(
    qr_id: str,
    qr_data: QRCodeUpdate,
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    return service.update_code(qr_id, qr_data)


@router.delete("/codes/{qr_id}", status_code=204)
async def delete_qr_code(
    qr_id: str,
    user_data: Dict = Depends(require_admin),
    service: QRService = Depends(get_qr_service)
):
    service.delete_code(qr_id)
    return None
