from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    stock: int = Field(default=0, ge=0)
    max_per_user: int = Field(default=1, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    sku: Optional[str] = None
    urlpage: Optional[str] = None


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=1)
    price: Optional[float] = Field(default=None, gt=0)
    stock: Optional[int] = Field(default=None, ge=0)
    max_per_user: Optional[int] = Field(default=None, gt=0)
    description: Optional[str] = None
    category: Optional[str] = None
    image_url: Optional[str] = None
    sku: Optional[str] = None
    urlpage: Optional[str] = None


class ProductResponse(BaseModel):
    id: str
    name: str
    description: Optional[str] = None
    price: float
    category: Optional[str] = None
    image_url: Optional[str] = None
    stock: int = 0
    max_per_user: int = 1
    sku: Optional[str] = None
    urlpage: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PurchasedProduct(BaseModel):
    product_id: str
    product_name: Optional[str] = None
    quantity: int
