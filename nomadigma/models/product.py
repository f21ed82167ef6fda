# nomadigma/models/product.py
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field
from .base import TimeStampedModel
from .bilingual import BilingualPayload, Language

class ProductType(str, Enum):
    PHYSICAL = "PHYSICAL"
    DIGITAL = "DIGITAL"

class ProductCategory(str, Enum):
    GUIDES = "guides"
    SERVICES = "services"
    ESSENTIALS = "essentials"
    OTHERS = "others"

# Labels stored by earlier versions of the admin editor
LEGACY_CATEGORIES: Dict[str, ProductCategory] = {
    "Guías": ProductCategory.GUIDES,
    "Guides": ProductCategory.GUIDES,
    "Herramientas": ProductCategory.GUIDES,
    "Servicios": ProductCategory.SERVICES,
    "Services": ProductCategory.SERVICES,
    "Merch": ProductCategory.ESSENTIALS,
    "Essentials": ProductCategory.ESSENTIALS,
    "Recursos": ProductCategory.OTHERS,
    "Others": ProductCategory.OTHERS,
}

class PriceAnchor(str, Enum):
    """Which price field the user edited last"""
    PRICE = "price"
    FINAL_PRICE = "final_price"

class PriceState(BaseModel):
    """Original price, discounted price and discount toggle of a product"""
    price: float = 0.0
    final_price: Optional[float] = None
    is_on_sale: bool = False
    discount_percentage: Optional[float] = None

    # Not stored in DB
    anchor: PriceAnchor = Field(default=PriceAnchor.PRICE, exclude=True)

    @property
    def display_price(self) -> float:
        # 0 is a real price (free), never fall back to `price`
        return self.final_price if self.final_price is not None else self.price

    @property
    def is_free(self) -> bool:
        return self.is_on_sale and self.discount_percentage == 100

class VariantItem(BaseModel):
    """A labeled dimension of choice in one language"""
    language: Language
    label: str
    values: List[str]

class VariantOption(BaseModel):
    label: str
    values: List[str]

class FileType(str, Enum):
    URL = "url"
    FILE = "file"

class DigitalFileDescriptor(BaseModel):
    """Downloadable file for the variant values listed in `values`"""
    values: List[str] = []
    type: FileType = FileType.URL
    url: str

class Product(TimeStampedModel):
    """Product sold in the store"""
    id: str
    texts: BilingualPayload
    category: ProductCategory
    prices: PriceState
    product_type: ProductType = ProductType.PHYSICAL
    has_shipping_cost: bool = False
    shipping_cost: Optional[float] = None
    images: List[str] = []
    variants: Optional[List[VariantItem]] = None
    variant_files: Optional[List[DigitalFileDescriptor]] = None
    active: bool = True
    creator_id: Optional[str] = None

    @property
    def is_digital(self) -> bool:
        return self.product_type == ProductType.DIGITAL

class ProductDraft(BaseModel):
    """Submitted fields of a new product"""
    language: Language
    texts: BilingualPayload
    category: str
    prices: PriceState
    product_type: ProductType = ProductType.PHYSICAL
    has_shipping_cost: bool = False
    shipping_cost: Optional[float] = None
    active: bool = False
    variants: Optional[List[dict]] = None
    variant_files: Optional[List[dict]] = None

class ProductUpdate(BaseModel):
    """Submitted changes; only fields present in the request are applied"""
    texts: BilingualPayload = Field(default_factory=BilingualPayload)
    category: Optional[str] = None
    price: Optional[float] = None
    final_price: Optional[float] = None
    is_on_sale: Optional[bool] = None
    discount_percentage: Optional[float] = None
    product_type: Optional[ProductType] = None
    has_shipping_cost: Optional[bool] = None
    shipping_cost: Optional[float] = None
    active: Optional[bool] = None
    variants: Optional[List[dict]] = None
    variant_files: Optional[List[dict]] = None
    existing_images: Optional[List[str]] = None
    translate: bool = False
    translate_from: Optional[Language] = None
