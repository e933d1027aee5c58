"""
Decoding what a QR code carries.

Three payload shapes are in circulation:
- JSON, e.g. {"product_id": "...", "code": "..."} (older codes use "productId"); the product id is required
- a product link, e.g. https://host/products/<id-or-slug> or https://host/products/code/<code>
- a bare code, e.g. "AB12CD34"
"""

import json
import re
import secrets
import string
from typing import Optional
from urllib.parse import urlparse

from pydantic import BaseModel

from app.config.messages import message

CODE_ALPHABET = string.ascii_uppercase + string.digits
_BARE_CODE = re.compile(r"^[A-Za-z0-9_-]{3,64}$")


class QRContent(BaseModel):
    product_ref: Optional[str] = None  # product id or urlpage slug
    code: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_valid(self) -> bool:
        return self.error is None


def generate_code(length: int = 8) -> str:
    return "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))


def _from_json(raw: str) -> QRContent:
    try:
        data = json.loads(raw)
    except ValueError:
        return QRContent(error=message("QR.INVALID_FORMAT"))
    if not isinstance(data, dict):
        return QRContent(error=message("QR.INVALID_FORMAT"))
    product_ref = data.get("product_id") or data.get("productId")
    code = data.get("code")
    if not product_ref:
        return QRContent(error=message("QR.MISSING_PRODUCT"))
    return QRContent(
        product_ref=str(product_ref),
        code=str(code) if code else None
    )


def _from_url(raw: str) -> QRContent:
    parts = [p for p in urlparse(raw).path.split("/") if p]
    if len(parts) >= 3 and parts[0] in ("products", "product") and parts[1] == "code":
        return QRContent(code=parts[2])
    if len(parts) >= 2 and parts[0] in ("products", "product"):
        return QRContent(product_ref=parts[1])
    return QRContent(error=message("QR.MISSING_PRODUCT"))


def parse_qr_content(raw: Optional[str]) -> QRContent:
    """Work out which product and/or code a scanned payload refers to"""
    raw = (raw or "").strip()
    if not raw:
        return QRContent(error=message("QR.INVALID_FORMAT"))
    if raw.startswith("{") or raw.startswith("["):
        return _from_json(raw)
    if raw.lower().startswith(("http://", "https://")):
        return _from_url(raw)
    if _BARE_CODE.match(raw):
        return QRContent(code=raw)
    return QRContent(error=message("QR.INVALID_FORMAT"))
