from supabase import Client
from app.config import settings
from app.config.messages import message, format_api_error
from app.modules.products.schemas import ProductCreate, ProductUpdate, ProductResponse, PurchasedProduct
from app.modules.products.storage import ProductImageStorage
from typing import List, Optional, Dict, Any, Iterable
from fastapi import HTTPException
from datetime import datetime, timezone
import logging
import uuid

logger = logging.getLogger(__name__)


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
        return True
    except ValueError:
        return False


def aggregate_purchases(rows: Iterable[Dict[str, Any]], limit: int) -> List[PurchasedProduct]:
    """Sum order_items quantities per product, most purchased first"""
    totals: Dict[str, Dict[str, Any]] = {}
    for row in rows:
        product_id = row.get("product_id")
        if not product_id:
            continue
        entry = totals.setdefault(product_id, {"product_id": product_id, "product_name": row.get("product_name"), "quantity": 0})
        entry["quantity"] += row.get("quantity") or 0
        if not entry["product_name"] and row.get("product_name"):
            entry["product_name"] = row["product_name"]
    ranked = sorted(totals.values(), key=lambda e: e["quantity"], reverse=True)
    return [PurchasedProduct(**e) for e in ranked[:limit]]


class ProductService:
    def __init__(self, supabase: Client, image_storage: Optional[ProductImageStorage] = None):
        self.supabase = supabase
        self.image_storage = image_storage or ProductImageStorage(supabase)

    def list_products(self, category: Optional[str] = None) -> List[ProductResponse]:
        """List products ordered by name, optionally filtered by category"""
        try:
            query = self.supabase.table("products").select("*")
            if category:
                query = query.eq("category", category)
            result = query.order("name").execute()
            return [ProductResponse(**p) for p in result.data or []]
        except Exception as e:
            logger.error(f"Error listing products (category={category}): {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PRODUCTS.FETCH_ERROR")))

    def list_categories(self) -> List[str]:
        try:
            result = self.supabase.table("products").select("category").execute()
            return sorted({p["category"] for p in result.data or [] if p.get("category")})
        except Exception as e:
            logger.error(f"Error listing categories: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PRODUCTS.FETCH_ERROR")))

    def find_product(self, id_or_slug: str) -> Optional[Dict[str, Any]]:
        """Raw product row by urlpage slug, then by id. None if neither matches."""
        result = self.supabase.table("products")\
            .select("*")\
            .eq("urlpage", id_or_slug)\
            .maybe_single()\
            .execute()
        if result and result.data:
            return result.data
        if not is_uuid(id_or_slug):
            return None
        result = self.supabase.table("products")\
            .select("*")\
            .eq("id", id_or_slug)\
            .maybe_single()\
            .execute()
        return result.data if result else None

    def get_product(self, id_or_slug: str) -> ProductResponse:
        """Get product by urlpage slug or ID"""
        try:
            data = self.find_product(id_or_slug)
            if not data:
                raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))
            return ProductResponse(**data)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error getting product {id_or_slug}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PRODUCTS.FETCH_ERROR")))

    def get_products_by_ids(self, product_ids: List[str]) -> Dict[str, Dict[str, Any]]:
        ids = list({p for p in product_ids if is_uuid(p)})
        if not ids:
            return {}
        result = self.supabase.table("products")\
            .select("*")\
            .in_("id", ids)\
            .execute()
        return {p["id"]: p for p in result.data or []}

    def get_product_by_code(self, code: str) -> ProductResponse:
        """Resolve a QR code to the product it points at"""
        try:
            qr_result = self.supabase.table("qr_codes")\
                .select("product_id")\
                .eq("code", code)\
                .maybe_single()\
                .execute()
            if not qr_result or not qr_result.data or not qr_result.data.get("product_id"):
                raise HTTPException(status_code=404, detail=message("QR.NOT_FOUND"))
            return self.get_product(qr_result.data["product_id"])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error resolving product for code {code}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PRODUCTS.FETCH_ERROR")))

    def create_product(self, product_data: ProductCreate) -> ProductResponse:
        """Create a new product"""
        try:
            logger.info(f"Creating product: {product_data.name}")
            result = self.supabase.table("products")\
                .insert(product_data.model_dump(exclude_none=True))\
                .execute()
            if not result.data:
                raise HTTPException(status_code=500, detail=message("PRODUCTS.INVALID_DATA"))
            return ProductResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating product {product_data.name}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def update_product(self, product_id: str, product_data: ProductUpdate) -> ProductResponse:
        """Update product fields that were provided"""
        update_data = product_data.model_dump(exclude_unset=True)
        if not update_data:
            raise HTTPException(status_code=400, detail=message("PRODUCTS.NO_UPDATES"))
        try:
            update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
            result = self.supabase.table("products")\
                .update(update_data)\
                .eq("id", product_id)\
                .execute()
            if not result.data:
                raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))
            return ProductResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating product {product_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def delete_product(self, product_id: str) -> bool:
        """Delete a product and the QR codes pointing at it"""
        try:
            existing = self.supabase.table("products")\
                .select("id")\
                .eq("id", product_id)\
                .maybe_single()\
                .execute()
            if not existing or not existing.data:
                raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))

            self.supabase.table("qr_codes")\
                .delete()\
                .eq("product_id", product_id)\
                .execute()
            self.supabase.table("products")\
                .delete()\
                .eq("id", product_id)\
                .execute()
            logger.info(f"Deleted product {product_id}")
            return True
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting product {product_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("API.REQUEST_FAILED")))

    def upload_image(self, product_id: str, filename: str, content: bytes, content_type: Optional[str]) -> ProductResponse:
        """Validate and upload a product image, then point the product at it"""
        max_bytes = settings.max_image_size_mb * 1024 * 1024
        if len(content) > max_bytes:
            raise HTTPException(status_code=400, detail=message("PRODUCTS.IMAGE_TOO_LARGE", max_mb=settings.max_image_size_mb))
        if not content_type or not content_type.startswith("image/"):
            raise HTTPException(status_code=400, detail=message("PRODUCTS.IMAGE_NOT_IMAGE"))

        self.get_product(product_id)
        try:
            public_url = self.image_storage.upload(product_id, filename, content, content_type)
        except Exception as e:
            raise HTTPException(status_code=502, detail=format_api_error(e, message("PRODUCTS.IMAGE_UPLOAD_FAILED")))
        return self.update_product(product_id, ProductUpdate(image_url=public_url))

    def most_purchased(self, limit: Optional[int] = None) -> List[PurchasedProduct]:
        """Products ranked by total ordered quantity"""
        try:
            result = self.supabase.table("order_items")\
                .select("product_id, product_name, quantity")\
                .execute()
            return aggregate_purchases(result.data or [], limit or settings.top_products_limit)
        except Exception as e:
            logger.error(f"Error computing most purchased products: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("PRODUCTS.FETCH_ERROR")))
