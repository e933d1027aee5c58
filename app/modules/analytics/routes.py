from fastapi import APIRouter, Depends, Query, Request
from app.modules.analytics.device import device_info_from_user_agent
from app.modules.analytics.schemas import QRScanStats, DashboardStats, QREventCreate, QREventRecorded
from app.modules.analytics.service import AnalyticsService
from app.core.dependencies import get_current_user, get_user_supabase, require_admin
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/analytics", tags=["analytics"])


def get_analytics_service(supabase: Client = Depends(get_user_supabase)) -> AnalyticsService:
    return AnalyticsService(supabase)


@router.post("/qr/events", response_model=QREventRecorded, status_code=201)
async def record_qr_event(
    request: Request,
    event_data: QREventCreate,
    current_user: Dict = Depends(get_current_user),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Record a view or add-to-cart on a scanned product"""
    device_info = device_info_from_user_agent(request.headers.get("user-agent"), event_data.screen_size)
    return QREventRecorded(recorded=service.record_action(current_user["id"], event_data, device_info))


@router.get("/qr", response_model=QRScanStats)
async def get_qr_stats(
    days: Optional[int] = Query(None, ge=1, le=365),
    user_data: Dict = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """QR scan statistics (admin)"""
    return service.qr_stats(days=days)


@router.get("/dashboard", response_model=DashboardStats)
async def get_dashboard(
    user_data: Dict = Depends(require_admin),
    service: AnalyticsService = Depends(get_analytics_service)
):
    """Users, orders, coins spent and popular products (admin)"""
    return service.dashboard()
