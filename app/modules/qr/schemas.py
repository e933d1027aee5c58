from pydantic import BaseModel, Field
from typing import Optional
from datetime import datetime
from app.modules.products.schemas import ProductResponse


class QRCodeCreate(BaseModel):
    product_id: str
    coins_value: int = Field(default=0, ge=0)
    description: Optional[str] = None


class QRCodeUpdate(BaseModel):
    description: Optional[str] = None
    coins_value: Optional[int] = Field(default=None, ge=0)
    is_used: Optional[bool] = None


class QRCodeResponse(BaseModel):
    id: str
    code: str
    product_id: Optional[str] = None
    coins_value: int = 0
    is_used: bool = False
    description: Optional[str] = None
    qr_image_url: Optional[str] = None
    veces_escaneado: int = 0
    last_scanned_at: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    url: Optional[str] = None  # product link to encode in the printed QR

    class Config:
        from_attributes = True


class ScanRequest(BaseModel):
    content: str
    screen_size: Optional[str] = None


class ScanResult(BaseModel):
    is_valid: bool
    product_id: Optional[str] = None
    code: Optional[str] = None
    coins_value: int = 0
    product: Optional[ProductResponse] = None
    error: Optional[str] = None


class RedeemRequest(BaseModel):
    code: str = Field(min_length=1)


class RedeemResponse(BaseModel):
    code: str
    coins_awarded: int
    coins_balance: int
    message: str


class QRCodeStats(BaseModel):
    total_codes: int
    used_codes: int
    total_scans: int
