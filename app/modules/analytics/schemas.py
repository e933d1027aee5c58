from enum import Enum
from pydantic import BaseModel, Field
from typing import Optional, List, Dict, Any, Literal
from app.modules.products.schemas import PurchasedProduct


class ScanAction(str, Enum):
    SCAN = "scan"
    VIEW = "view"
    ADD_TO_CART = "add_to_cart"
    ERROR = "error"


class ScanEvent(BaseModel):
    qr_code_id: Optional[str] = None
    product_id: Optional[str] = None
    user_id: Optional[str] = None
    device_info: Optional[Dict[str, Any]] = None
    success: bool
    action_taken: ScanAction = ScanAction.SCAN
    error: Optional[str] = None


class QREventCreate(BaseModel):
    """Follow-up action the app reports after a scan; scan and error events are recorded server-side"""
    action_taken: Literal["view", "add_to_cart"]
    product_id: Optional[str] = None
    code: Optional[str] = None
    screen_size: Optional[str] = None


class QREventRecorded(BaseModel):
    recorded: bool


class TopScannedProduct(BaseModel):
    id: str
    name: str
    scans: int


class QRScanStats(BaseModel):
    total_scans: int
    success_rate: float
    device_types: Dict[str, int] = Field(default_factory=dict)
    top_products: List[TopScannedProduct] = Field(default_factory=list)
    scans_by_date: Dict[str, int] = Field(default_factory=dict)


class DashboardStats(BaseModel):
    total_users: int
    total_orders: int
    total_coins_spent: float
    popular_products: List[PurchasedProduct] = Field(default_factory=list)
