from supabase import Client
from app.config.messages import message, format_api_error
from app.modules.cart.service import CartService
from app.modules.orders.schemas import (
    OrderResponse, AdminOrderResponse, OrderStatus, CheckoutResponse, OrderStats, OrderUser
)
from app.modules.products.service import aggregate_purchases
from typing import List, Optional, Dict, Any
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def extract_order_id(rpc_data: Any) -> Optional[str]:
    """handle_new_order returns {"order_id": ...}; PostgREST may wrap it in a list or return the bare id"""
    if isinstance(rpc_data, list):
        rpc_data = rpc_data[0] if rpc_data else None
    if isinstance(rpc_data, dict):
        order_id = rpc_data.get("order_id")
        return str(order_id) if order_id else None
    if isinstance(rpc_data, str) and rpc_data:
        return rpc_data
    return None


class OrderService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.cart = CartService(supabase)

    def _items_by_order(self, order_ids: List[str]) -> Dict[str, List[Dict[str, Any]]]:
        if not order_ids:
            return {}
        result = self.supabase.table("order_items")\
            .select("order_id, product_id, product_name, quantity, price")\
            .in_("order_id", order_ids)\
            .execute()
        grouped: Dict[str, List[Dict[str, Any]]] = {}
        for item in result.data or []:
            grouped.setdefault(item["order_id"], []).append(item)
        return grouped

    def checkout(self, user_id: str) -> CheckoutResponse:
        """Turn the caller's cart into an order paid with coins"""
        state = self.cart.load_state(user_id)
        if len(state) == 0:
            raise HTTPException(status_code=400, detail=message("CART.EMPTY_ERROR"))

        total = state.total_coins
        profile = self.supabase.table("profiles")\
            .select("coins")\
            .eq("id", user_id)\
            .maybe_single()\
            .execute()
        coins = (profile.data or {}).get("coins", 0) if profile else 0
        if coins < total:
            raise HTTPException(status_code=400, detail=message("ORDERS.INSUFFICIENT_COINS"))

        items_payload = [
            {
                "product_id": line["product_id"],
                "product_name": line["product"].get("name"),
                "quantity": line["quantity"],
                "price": line["product"].get("price") or 0,
            }
            for line in state.lines()
        ]

        try:
            result = self.supabase.rpc("handle_new_order", {
                "p_user_id": user_id,
                "p_cart_items": items_payload,
                "p_total_amount": total
            }).execute()
        except Exception as e:
            logger.error(f"handle_new_order failed for {user_id}: {e}")
            if "insufficient stock" in str(e).lower():
                raise HTTPException(status_code=409, detail=message("ORDERS.INSUFFICIENT_STOCK"))
            raise HTTPException(status_code=500, detail=format_api_error(e, message("ORDERS.CREATE_FAILED")))

        order_id = extract_order_id(result.data)
        if not order_id:
            logger.error(f"handle_new_order returned unexpected data: {result.data!r}")
            raise HTTPException(status_code=502, detail=message("ORDERS.INVALID_RESPONSE"))

        try:
            self.cart.clear_cart(user_id)
        except HTTPException:
            # The order is placed; a stale cart is only cosmetic
            logger.error(f"Order {order_id} created but cart of {user_id} was not cleared")

        logger.info(f"Order {order_id} placed by {user_id} for {total} coins")
        return CheckoutResponse(
            order_id=order_id,
            total_coins=total,
            item_count=state.item_count,
            message="Pedido realizado correctamente"
        )

    def list_orders(self, user_id: str) -> List[OrderResponse]:
        """The caller's orders, newest first"""
        try:
            result = self.supabase.table("orders")\
                .select("*")\
                .eq("user_id", user_id)\
                .order("created_at", desc=True)\
                .execute()
            orders = result.data or []
            items = self._items_by_order([o["id"] for o in orders])
            return [OrderResponse(**o, items=items.get(o["id"], [])) for o in orders]
        except Exception as e:
            logger.error(f"Error fetching orders for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def get_order(self, order_id: str, user_id: str, allow_any: bool = False) -> OrderResponse:
        """Order with items. Other users' orders look like missing ones unless allow_any."""
        try:
            result = self.supabase.table("orders")\
                .select("*")\
                .eq("id", order_id)\
                .maybe_single()\
                .execute()
            order = result.data if result else None
            if not order or (not allow_any and order.get("user_id") != user_id):
                raise HTTPException(status_code=404, detail=message("ORDERS.NOT_FOUND"))
            items = self._items_by_order([order_id])
            return OrderResponse(**order, items=items.get(order_id, []))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching order {order_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def list_all_orders(self, limit: int = 100, offset: int = 0) -> List[AdminOrderResponse]:
        """All orders with the buyer's email and name (admin)"""
        try:
            result = self.supabase.table("orders")\
                .select("*")\
                .order("created_at", desc=True)\
                .range(offset, offset + limit - 1)\
                .execute()
            orders = result.data or []
            items = self._items_by_order([o["id"] for o in orders])

            user_ids = list({o["user_id"] for o in orders})
            users: Dict[str, Dict[str, Any]] = {}
            if user_ids:
                profiles = self.supabase.table("profiles")\
                    .select("id, email, full_name")\
                    .in_("id", user_ids)\
                    .execute()
                users = {p["id"]: p for p in profiles.data or []}

            response = []
            for o in orders:
                user = users.get(o["user_id"])
                response.append(AdminOrderResponse(
                    **o,
                    items=items.get(o["id"], []),
                    user=OrderUser(email=user.get("email"), full_name=user.get("full_name")) if user else None
                ))
            return response
        except Exception as e:
            logger.error(f"Error fetching all orders: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def update_status(self, order_id: str, status: OrderStatus) -> OrderResponse:
        """Change an order's status (admin)"""
        try:
            result = self.supabase.table("orders")\
                .update({"status": status.value, "updated_at": datetime.now(timezone.utc).isoformat()})\
                .eq("id", order_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("ORDERS.NOT_FOUND"))
            order = result.data[0]
            items = self._items_by_order([order_id])
            logger.info(f"Order {order_id} status -> {status.value}")
            return OrderResponse(**order, items=items.get(order_id, []))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating status of order {order_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("ORDERS.STATUS_UPDATE_FAILED")))

    def get_stats(self) -> OrderStats:
        """Order totals, coins spent and the most popular products (admin)"""
        try:
            total = self.supabase.table("orders").select("id", count="exact").execute()
            completed = self.supabase.table("orders")\
                .select("id", count="exact")\
                .eq("status", OrderStatus.COMPLETED.value)\
                .execute()
            coins = self.supabase.table("orders").select("total_coins").execute()
            items = self.supabase.table("order_items")\
                .select("product_id, product_name, quantity")\
                .execute()

            return OrderStats(
                total_orders=total.count or 0,
                completed_orders=completed.count or 0,
                total_coins_spent=sum(o.get("total_coins") or 0 for o in coins.data or []),
                popular_products=aggregate_purchases(items.data or [], 5)
            )
        except Exception as e:
            logger.error(f"Error computing order stats: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.SERVER_ERROR")))
