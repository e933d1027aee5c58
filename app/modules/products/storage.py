from supabase import Client
from app.config import settings
from typing import Optional
import logging
import time

logger = logging.getLogger(__name__)


class ProductImageStorage:
    """Product images in Supabase Storage. Tries the primary bucket, then the fallback bucket."""

    def __init__(self, supabase: Client, bucket: Optional[str] = None, fallback_bucket: Optional[str] = None):
        self.supabase = supabase
        self.bucket = bucket or settings.product_images_bucket
        self.fallback_bucket = fallback_bucket or settings.product_images_fallback_bucket

    @staticmethod
    def build_path(product_id: str, filename: str) -> str:
        ext = filename.rsplit(".", 1)[-1].lower() if filename and "." in filename else "png"
        return f"products/{product_id}_{int(time.time() * 1000)}.{ext}"

    def _upload_to(self, bucket: str, path: str, content: bytes, content_type: str) -> str:
        storage = self.supabase.storage.from_(bucket)
        storage.upload(
            path,
            content,
            {"content-type": content_type, "cache-control": "3600", "upsert": "true"}
        )
        return storage.get_public_url(path)

    def upload(self, product_id: str, filename: str, content: bytes, content_type: str) -> str:
        """Upload and return the public URL"""
        path = self.build_path(product_id, filename)
        try:
            return self._upload_to(self.bucket, path, content, content_type)
        except Exception as e:
            logger.warning(f"Upload to bucket '{self.bucket}' failed ({e}); trying '{self.fallback_bucket}'")
        try:
            return self._upload_to(self.fallback_bucket, path, content, content_type)
        except Exception as e:
            logger.error(f"Upload to fallback bucket '{self.fallback_bucket}' failed: {e}")
            raise
