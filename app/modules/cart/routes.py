from fastapi import APIRouter, Depends
from app.modules.cart.schemas import CartItemAdd, CartItemUpdate, CartSync, CartResponse
from app.modules.cart.service import CartService
from app.core.dependencies import get_current_user, get_user_supabase
from supabase import Client
from typing import Dict

router = APIRouter(prefix="/cart", tags=["cart"])


def get_cart_service(supabase: Client = Depends(get_user_supabase)) -> CartService:
    return CartService(supabase)


@router.get("", response_model=CartResponse)
async def get_cart(
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Cart lines with products, item count and total in coins"""
    return service.get_cart(current_user["id"])


@router.put("", response_model=CartResponse)
async def sync_cart(
    cart_data: CartSync,
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Replace the cart with the client's copy (last write wins)"""
    return service.sync_cart(current_user["id"], cart_data.items)


@router.delete("", status_code=204)
async def clear_cart(
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    service.clear_cart(current_user["id"])
    return None


@router.post("/items", response_model=CartResponse, status_code=201)
async def add_item(
    item: CartItemAdd,
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Add a product to the cart"""
    return service.add_item(current_user["id"], item.product_id, item.quantity)


@router.put("/items/{product_id}", response_model=CartResponse)
async def update_item(
    product_id: str,
    item: CartItemUpdate,
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    """Change a line's quantity (below 1 leaves it unchanged)"""
    return service.update_item(current_user["id"], product_id, item.quantity)


@router.delete("/items/{product_id}", response_model=CartResponse)
async def remove_item(
    product_id: str,
    current_user: Dict = Depends(get_current_user),
    service: CartService = Depends(get_cart_service)
):
    return service.remove_item(current_user["id"], product_id)
