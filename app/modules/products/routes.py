from fastapi import APIRouter, Depends, File, UploadFile
from app.database.supabase_client import get_supabase
from app.modules.products.schemas import ProductCreate, ProductUpdate, ProductResponse, PurchasedProduct
from app.modules.products.service import ProductService
from app.core.dependencies import get_user_supabase, require_admin
from supabase import Client
from typing import List, Optional, Dict

router = APIRouter(prefix="/products", tags=["products"])


def get_product_service(supabase: Client = Depends(get_supabase)) -> ProductService:
    return ProductService(supabase)


def get_admin_product_service(supabase: Client = Depends(get_user_supabase)) -> ProductService:
    return ProductService(supabase)


@router.get("", response_model=List[ProductResponse])
async def list_products(
    category: Optional[str] = None,
    service: ProductService = Depends(get_product_service)
):
    """Product catalog, optionally filtered by category"""
    return service.list_products(category=category)


@router.get("/categories", response_model=List[str])
async def list_categories(service: ProductService = Depends(get_product_service)):
    return service.list_categories()


@router.get("/most-purchased", response_model=List[PurchasedProduct])
async def most_purchased(
    limit: Optional[int] = None,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_admin_product_service)
):
    """Products ranked by ordered quantity (admin)"""
    return service.most_purchased(limit)


@router.get("/code/{code}", response_model=ProductResponse)
async def get_product_by_code(
    code: str,
    service: ProductService = Depends(get_product_service)
):
    """Product behind a QR code"""
    return service.get_product_by_code(code)


@router.get("/{id_or_slug}", response_model=ProductResponse)
async def get_product(
    id_or_slug: str,
    service: ProductService = Depends(get_product_service)
):
    """Product by urlpage slug or ID"""
    return service.get_product(id_or_slug)


@router.post("", response_model=ProductResponse, status_code=201)
async def create_product(
    product_data: ProductCreate,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_admin_product_service)
):
    """Create a product (admin)"""
    return service.create_product(product_data)


@router.put("/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: str,
    product_data: ProductUpdate,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_admin_product_service)
):
    """Update a product (admin)"""
    return service.update_product(product_id, product_data)


@router.delete("/{product_id}", status_code=204)
async def delete_product(
    product_id: str,
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_admin_product_service)
):
    """Delete a product and its QR codes (admin)"""
    service.delete_product(product_id)
    return None


@router.post("/{product_id}/image", response_model=ProductResponse)
async def upload_product_image(
    product_id: str,
    file: UploadFile = File(...),
    user_data: Dict = Depends(require_admin),
    service: ProductService = Depends(get_admin_product_service)
):
    """Upload a product image (admin). Images only, size limited."""
    content = await file.read()
    return service.upload_image(product_id, file.filename or "", content, file.content_type)
