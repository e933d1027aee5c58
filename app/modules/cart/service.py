from supabase import Client
from app.config.messages import message, format_api_error
from app.modules.cart.schemas import CartResponse, CartSyncItem
from app.modules.cart.state import CartState, CartRuleError
from app.modules.products.service import ProductService
from typing import List, Dict, Any
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class CartService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.products = ProductService(supabase)

    def _rows(self, user_id: str) -> List[Dict[str, Any]]:
        result = self.supabase.table("cart_items")\
            .select("id, product_id, quantity")\
            .eq("user_id", user_id)\
            .execute()
        return result.data or []

    def load_state(self, user_id: str) -> CartState:
        """Current cart rows joined with their products"""
        rows = self._rows(user_id)
        products = self.products.get_products_by_ids([r["product_id"] for r in rows])
        return CartState.from_rows(rows, products)

    def _product(self, product_id: str) -> Dict[str, Any]:
        product = self.products.find_product(product_id)
        if not product:
            raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))
        return product

    def _write_line(self, user_id: str, product_id: str, quantity: int, exists: bool):
        if exists:
            self.supabase.table("cart_items")\
                .update({"quantity": quantity})\
                .eq("user_id", user_id)\
                .eq("product_id", product_id)\
                .execute()
        else:
            self.supabase.table("cart_items").insert({
                "user_id": user_id,
                "product_id": product_id,
                "quantity": quantity
            }).execute()

    def _delete_line(self, user_id: str, product_id: str):
        self.supabase.table("cart_items")\
            .delete()\
            .eq("user_id", user_id)\
            .eq("product_id", product_id)\
            .execute()

    def get_cart(self, user_id: str) -> CartResponse:
        try:
            return self.load_state(user_id).to_response()
        except Exception as e:
            logger.error(f"Error loading cart for {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.FETCH_ERROR")))

    def add_item(self, user_id: str, product_id: str, quantity: int = 1) -> CartResponse:
        """Add units of a product; an existing line is incremented"""
        try:
            product = self._product(product_id)
            state = self.load_state(user_id)
            exists = product["id"] in state
            new_quantity = state.add(product, quantity)
            self._write_line(user_id, product["id"], new_quantity, exists)
            return state.to_response()
        except CartRuleError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding {product_id} to cart of {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.ADD_ERROR")))

    def update_item(self, user_id: str, product_id: str, quantity: int) -> CartResponse:
        """Set a line's quantity; below 1 is ignored"""
        try:
            state = self.load_state(user_id)
            if product_id not in state:
                raise HTTPException(status_code=404, detail=message("PRODUCTS.NOT_FOUND"))
            product = self._product(product_id)
            if quantity < 1:
                return state.to_response()
            new_quantity = state.set_quantity(product, quantity)
            self._write_line(user_id, product_id, new_quantity, exists=True)
            return state.to_response()
        except CartRuleError as e:
            raise HTTPException(status_code=400, detail=str(e))
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating {product_id} in cart of {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.UPDATE_ERROR")))

    def remove_item(self, user_id: str, product_id: str) -> CartResponse:
        try:
            self._delete_line(user_id, product_id)
            return self.load_state(user_id).to_response()
        except Exception as e:
            logger.error(f"Error removing {product_id} from cart of {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.REMOVE_ERROR")))

    def clear_cart(self, user_id: str) -> bool:
        try:
            self.supabase.table("cart_items")\
                .delete()\
                .eq("user_id", user_id)\
                .execute()
            return True
        except Exception as e:
            logger.error(f"Error clearing cart of {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.UPDATE_ERROR")))

    def _restore_rows(self, user_id: str, rows: List[Dict[str, Any]]):
        if not rows:
            return
        try:
            self.supabase.table("cart_items").insert(rows).execute()
            logger.info(f"Restored {len(rows)} cart lines for {user_id} after a failed sync")
        except Exception as e:
            logger.error(f"Could not restore cart of {user_id} after a failed sync: {e}")

    def sync_cart(self, user_id: str, items: List[CartSyncItem]) -> CartResponse:
        """Replace the stored cart with the client's snapshot. Last write wins."""
        try:
            products = self.products.get_products_by_ids([i.product_id for i in items if i.product_id])
            state = CartState()
            dropped = state.replace([i.model_dump() for i in items], products)
            if dropped:
                logger.info(f"Cart sync for {user_id} dropped lines: {dropped}")

            rows = state.to_rows(user_id)
            previous = [
                {"user_id": user_id, "product_id": r["product_id"], "quantity": r["quantity"]}
                for r in self._rows(user_id)
            ]
            self.clear_cart(user_id)
            if rows:
                try:
                    self.supabase.table("cart_items").insert(rows).execute()
                except Exception:
                    self._restore_rows(user_id, previous)
                    raise
            return state.to_response()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error syncing cart of {user_id}: {e}")
            raise HTTPException(status_code=500, detail=format_api_error(e, message("CART.UPDATE_ERROR")))
