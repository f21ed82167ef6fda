# nomadigma/services/product_service.py
import logging
import uuid
import time
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
from ..database.queries import insert_row, update_row
from ..errors import NotFoundError, ValidationError
from ..models.bilingual import BilingualPayload, Language
from ..models.product import (
    LEGACY_CATEGORIES, PriceAnchor, PriceState, Product, ProductCategory, ProductDraft,
    ProductType, ProductUpdate
)
from ..utils.pricing import normalize_price_state
from ..utils.variants import filter_variants, normalize_variant_files, variants_for_language
from .bilingual_service import PRODUCT, BilingualSynchronizer
from .file_service import UploadedFile
from .product_file_service import ProductFileService
from .translation_service import TranslationService

SORT_ORDERS = {
    'newest': 'created_at DESC',
    'oldest': 'created_at ASC',
    'price-low': 'price ASC',
    'price-high': 'price DESC',
}

def normalize_category(category: Optional[str]) -> ProductCategory:
    """Category key for a current key or a legacy label"""
    if not category:
        raise ValidationError('category')
    if category in LEGACY_CATEGORIES:
        return LEGACY_CATEGORIES[category]
    try:
        return ProductCategory(category)
    except ValueError:
        raise ValidationError('category', 'Invalid category')

def resolve_shipping(product_type: ProductType, has_shipping_cost: bool,
                     shipping_cost: Optional[float]) -> Tuple[bool, Optional[float]]:
    """Digital products never ship; physical ones need a cost >= 0"""
    if product_type == ProductType.DIGITAL or not has_shipping_cost:
        return False, None
    if shipping_cost is None or shipping_cost < 0:
        raise ValidationError(
            'shipping_cost',
            'Shipping cost must be a positive number for physical products with shipping'
        )
    return True, shipping_cost

class ProductService:
    def __init__(self, db, translation_service: TranslationService,
                 product_file_service: ProductFileService):
        self.db = db
        self.synchronizer = BilingualSynchronizer(translation_service, PRODUCT)
        self.product_file_service = product_file_service
        self.logger = logging.getLogger(__name__)

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """Whether another product uses `slug` in either language"""
        async with self.db.pool.acquire() as conn:
            return await conn.fetchval("""
                SELECT EXISTS (
                    SELECT 1 FROM products
                    WHERE (slug_en = $1 OR slug_es = $1)
                    AND ($2::uuid IS NULL OR id <> $2::uuid)
                )
            """, slug, exclude_id)

    async def get_product(self, product_id: str) -> Optional[Product]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM products WHERE id = $1::uuid", product_id)
            return self._row_to_product(row) if row else None

    async def get_product_by_slug(self, slug: str) -> Optional[Product]:
        """Active product by its English or Spanish slug"""
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM products
                WHERE (slug_en = $1 OR slug_es = $1) AND active = true
                LIMIT 1
            """, slug)
            return self._row_to_product(row) if row else None

    async def list_products(self, page: int = 1, limit: int = 10) -> Tuple[List[Product], int]:
        """All products for the back office, newest first"""
        offset = (page - 1) * limit
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM products
                ORDER BY created_at DESC
                OFFSET $1 LIMIT $2
            """, offset, limit)
            total = await conn.fetchval("SELECT COUNT(*) FROM products")
            return [self._row_to_product(r) for r in rows], total

    async def search_products(self, search: str = '', categories: Sequence[str] = (),
                              sort: str = 'newest', page: int = 1,
                              limit: int = 20) -> Tuple[List[Product], int]:
        """Active products filtered by category and text in either language"""
        conditions = ['active = true']
        params: List[Any] = []

        valid = [c for c in categories if c in ProductCategory._value2member_map_]
        if valid:
            params.append(valid)
            conditions.append(f"category = ANY(${len(params)}::text[])")

        if search:
            params.append(f"%{search}%")
            n = len(params)
            conditions.append(
                f"(title_en ILIKE ${n} OR title_es ILIKE ${n} "
                f"OR description_en ILIKE ${n} OR description_es ILIKE ${n})"
            )

        where = ' AND '.join(conditions)
        order_by = SORT_ORDERS.get(sort, SORT_ORDERS['newest'])

        async with self.db.pool.acquire() as conn:
            total = await conn.fetchval(f"SELECT COUNT(*) FROM products WHERE {where}", *params)
            rows = await conn.fetch(
                f"SELECT * FROM products WHERE {where} ORDER BY {order_by} "
                f"OFFSET ${len(params) + 1} LIMIT ${len(params) + 2}",
                *params, (page - 1) * limit, limit
            )
            return [self._row_to_product(r) for r in rows], total

    async def create_product(self, user_id: str, draft: ProductDraft,
                             images: Sequence[UploadedFile] = (),
                             files: Mapping[str, UploadedFile] = None) -> Product:
        """Validate, translate and store a new product"""
        category = normalize_category(draft.category)
        prices = normalize_price_state(draft.prices)
        has_shipping_cost, shipping_cost = resolve_shipping(
            draft.product_type, draft.has_shipping_cost, draft.shipping_cost
        )
        for image in images:
            if image and image.size:
                self.product_file_service.file_service.validate_image(image)

        texts = await self.synchronizer.create(
            draft.language,
            draft.texts.get(draft.language),
            self.slug_exists
        )

        product_id = str(uuid.uuid4())
        image_urls = await self.product_file_service.upload_images(product_id, images)

        variant_files = None
        if draft.product_type == ProductType.DIGITAL and draft.variant_files:
            variant_files = await self.product_file_service.build_variant_files(
                product_id, draft.variant_files, files or {}
            )

        values: Dict[str, Any] = texts.to_columns(include_content=False)
        values.update(self._price_columns(prices))
        values.update({
            'id': product_id,
            'category': category.value,
            'product_type': draft.product_type.value,
            'has_shipping_cost': has_shipping_cost,
            'shipping_cost': shipping_cost,
            'images': image_urls,
            'variants': self._dump(filter_variants(draft.variants)),
            'variant_files': self._dump(variant_files),
            'active': draft.active,
            'creator_id': user_id,
        })

        async with self.db.pool.acquire() as conn:
            row = await insert_row(conn, 'products', values)

        self.logger.info(f"Product {product_id} created ({values['slug_en']}, {values['slug_es']})")
        return self._row_to_product(row)

    async def update_product(self, product_id: str, changes: ProductUpdate,
                             images: Sequence[UploadedFile] = (),
                             files: Mapping[str, UploadedFile] = None) -> Product:
        """Apply the fields present in `changes` to an existing product"""
        existing = await self.get_product(product_id)
        if not existing:
            raise NotFoundError('Product not found')

        values = await self.synchronizer.update(
            product_id,
            existing.texts,
            changes.texts,
            self.slug_exists,
            should_translate=changes.translate,
            translate_from=changes.translate_from,
        )

        if changes.category is not None:
            values['category'] = normalize_category(changes.category).value
        if changes.active is not None:
            values['active'] = changes.active

        values.update(self._price_columns(self._merge_prices(existing.prices, changes)))

        product_type = changes.product_type or existing.product_type
        values['product_type'] = product_type.value
        has_shipping_cost = (changes.has_shipping_cost if changes.has_shipping_cost is not None
                             else existing.has_shipping_cost)
        shipping_cost = (changes.shipping_cost if changes.shipping_cost is not None
                         else existing.shipping_cost)
        values['has_shipping_cost'], values['shipping_cost'] = resolve_shipping(
            product_type, has_shipping_cost, shipping_cost
        )

        if 'variants' in changes.model_fields_set:
            values['variants'] = self._dump(filter_variants(changes.variants))

        if product_type == ProductType.PHYSICAL:
            values['variant_files'] = None
        elif changes.variant_files is not None:
            values['variant_files'] = self._dump(
                await self.product_file_service.build_variant_files(
                    product_id, changes.variant_files, files or {}, keep_existing_urls=True
                )
            )

        kept = (changes.existing_images if changes.existing_images is not None
                else existing.images)
        new_urls = await self.product_file_service.upload_images(
            f"{product_id}_{int(time.time() * 1000)}", images
        )
        values['images'] = list(kept) + new_urls

        async with self.db.pool.acquire() as conn:
            row = await update_row(conn, 'products', product_id, values)
        return self._row_to_product(row)

    @staticmethod
    def _merge_prices(current: PriceState, changes: ProductUpdate) -> PriceState:
        update = {'anchor': PriceAnchor.PRICE}
        if changes.price is not None:
            update['price'] = changes.price
        if 'final_price' in changes.model_fields_set:
            update['final_price'] = changes.final_price
            if changes.price is None and changes.final_price is not None:
                update['anchor'] = PriceAnchor.FINAL_PRICE
        if changes.is_on_sale is not None:
            update['is_on_sale'] = changes.is_on_sale
        if 'discount_percentage' in changes.model_fields_set:
            update['discount_percentage'] = changes.discount_percentage
        return normalize_price_state(current.model_copy(update=update))

    @staticmethod
    def _price_columns(prices: PriceState) -> Dict[str, Any]:
        return prices.model_dump(include={'price', 'final_price', 'is_on_sale', 'discount_percentage'})

    @staticmethod
    def _dump(items) -> Optional[List[dict]]:
        if not items:
            return None
        return [item.model_dump(mode='json') for item in items]

    @staticmethod
    def _row_to_product(row) -> Product:
        data = dict(row)
        return Product(
            id=str(data['id']),
            texts=BilingualPayload.from_columns(data),
            category=data['category'],
            prices=PriceState(
                price=data.get('price') or 0,
                final_price=data.get('final_price'),
                is_on_sale=data.get('is_on_sale') or False,
                discount_percentage=data.get('discount_percentage'),
            ),
            product_type=data.get('product_type') or ProductType.PHYSICAL,
            has_shipping_cost=data.get('has_shipping_cost') or False,
            shipping_cost=data.get('shipping_cost'),
            images=data.get('images') or [],
            variants=filter_variants(data.get('variants')),
            variant_files=normalize_variant_files(data.get('variant_files')) or None,
            active=data.get('active', True),
            creator_id=data.get('creator_id'),
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    @staticmethod
    def localize(product: Product, locale: Language) -> Dict[str, Any]:
        """Product shaped for a shopper in `locale`"""
        locale = Language(locale)
        fields = product.texts.get(locale)
        return {
            'id': product.id,
            'slug': fields.slug,
            'title': fields.title,
            'description': fields.description,
            'category': product.category.value,
            'price': product.prices.price,
            'final_price': product.prices.final_price,
            'display_price': product.prices.display_price,
            'is_on_sale': product.prices.is_on_sale,
            'discount_percentage': product.prices.discount_percentage,
            'product_type': product.product_type.value,
            'has_shipping_cost': product.has_shipping_cost,
            'shipping_cost': product.shipping_cost,
            'images': product.images,
            'variants': [v.model_dump() for v in variants_for_language(product.variants, locale)],
        }

    @staticmethod
    def for_edit(product: Product) -> Dict[str, Any]:
        """Every column, as the admin editor loads it"""
        data = product.texts.to_columns(include_content=False)
        data.update(product.model_dump(
            mode='json',
            exclude={'texts', 'prices', 'created_at', 'updated_at'}
        ))
        data.update(ProductService._price_columns(product.prices))
        data['created_at'] = product.created_at.isoformat() if product.created_at else None
        return data
