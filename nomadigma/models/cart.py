# nomadigma/models/cart.py
from typing import Dict, List, Optional
from pydantic import BaseModel
from .product import DigitalFileDescriptor, ProductType

class CartLineItem(BaseModel):
    """Client-held cart line, reconciled with the catalog at checkout"""
    id: str
    title: str
    total: float
    sku: Optional[str] = None
    quantity: int = 1
    product_type: ProductType = ProductType.PHYSICAL
    selected_variants: Dict[str, str] = {}

    # Filled from the catalog when rendering downloads
    variant_files: Optional[List[DigitalFileDescriptor]] = None

class DownloadLink(BaseModel):
    url: str
    label: str
