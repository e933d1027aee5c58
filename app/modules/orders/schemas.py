from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime
from app.modules.products.schemas import PurchasedProduct


class OrderStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class OrderItemResponse(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    quantity: int
    price: float


class OrderUser(BaseModel):
    email: Optional[str] = None
    full_name: Optional[str] = None


class OrderResponse(BaseModel):
    id: str
    user_id: str
    total_coins: float
    status: OrderStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    items: List[OrderItemResponse] = Field(default_factory=list)

    class Config:
        from_attributes = True


class AdminOrderResponse(OrderResponse):
    user: Optional[OrderUser] = None


class OrderStatusUpdate(BaseModel):
    status: OrderStatus


class CheckoutResponse(BaseModel):
    order_id: str
    total_coins: float
    item_count: int
    message: str


class OrderStats(BaseModel):
    total_orders: int
    completed_orders: int
    total_coins_spent: float
    popular_products: List[PurchasedProduct] = Field(default_factory=list)
