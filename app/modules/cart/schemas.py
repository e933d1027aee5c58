from pydantic import BaseModel, Field
from typing import List
from app.modules.products.schemas import ProductResponse


class CartItemAdd(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class CartItemUpdate(BaseModel):
    quantity: int  # < 1 is ignored


class CartSyncItem(BaseModel):
    product_id: str
    quantity: int = Field(default=1, ge=1)


class CartSync(BaseModel):
    items: List[CartSyncItem] = Field(default_factory=list)


class CartLine(BaseModel):
    product_id: str
    quantity: int
    product: ProductResponse


class CartLineResponse(CartLine):
    line_total: float


class CartResponse(BaseModel):
    items: List[CartLineResponse] = Field(default_factory=list)
    item_count: int = 0
    total_coins: float = 0
