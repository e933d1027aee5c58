from fastapi import APIRouter, Depends, Query
from app.modules.orders.schemas import (
    OrderResponse, AdminOrderResponse, OrderStatusUpdate, CheckoutResponse, OrderStats
)
from app.modules.orders.service import OrderService
from app.core.dependencies import get_current_user, get_user_supabase, require_admin, is_admin
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/orders", tags=["orders"])


def get_order_service(supabase: Client = Depends(get_user_supabase)) -> OrderService:
    return OrderService(supabase)


@router.post("/checkout", response_model=CheckoutResponse, status_code=201)
async def checkout(
    current_user: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """Place an order with the current cart, paid in coins"""
    return service.checkout(current_user["id"])


@router.get("", response_model=List[OrderResponse])
async def list_my_orders(
    current_user: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service)
):
    """The caller's orders, newest first"""
    return service.list_orders(current_user["id"])


@router.get("/admin/all", response_model=List[AdminOrderResponse])
async def list_all_orders(
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """All orders with buyer details (admin)"""
    return service.list_all_orders(limit=limit, offset=offset)


@router.get("/admin/stats", response_model=OrderStats)
async def get_order_stats(
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    return service.get_stats()


@router.get("/{order_id}", response_model=OrderResponse)
async def get_order(
    order_id: str,
    current_user: Dict = Depends(get_current_user),
    service: OrderService = Depends(get_order_service),
    supabase: Client = Depends(get_user_supabase)
):
    """Order detail (own orders; admins see any)"""
    return service.get_order(order_id, current_user["id"], allow_any=is_admin(current_user, supabase))


@router.put("/{order_id}/status", response_model=OrderResponse)
async def update_order_status(
    order_id: str,
    status_data: OrderStatusUpdate,
    user_data: Dict = Depends(require_admin),
    service: OrderService = Depends(get_order_service)
):
    """Change an order's status (admin)"""
    return service.update_status(order_id, status_data.status)
