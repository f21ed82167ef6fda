# nomadigma/handlers/product_handlers.py
import logging
from typing import Any, Dict
from aiohttp import web
from ..errors import NotFoundError, ValidationError
from ..models.bilingual import Language
from ..models.product import PriceState, ProductDraft, ProductType, ProductUpdate
from ..services.file_service import UploadedFile
from ..services.product_service import ProductService
from ..utils.pricing import PriceField, price_display, resolve_price
from ..utils.messages import Messages
from .base_handler import BaseHandler, api_response

PRICE_FIELDS = ('price', 'final_price', 'discount_percentage', 'shipping_cost')

class ProductHandlers(BaseHandler):
    """Admin and storefront product endpoints"""

    def __init__(self, product_service: ProductService):
        self.product_service = product_service
        self.logger = logging.getLogger(__name__)

    # Admin

    async def admin_get(self, request: web.Request) -> web.Response:
        self.require_admin(request)

        product_id = request.query.get('id')
        if product_id:
            product = await self.product_service.get_product(self.uuid_value(product_id))
            if not product:
                raise NotFoundError('Product not found')
            return api_response(True, 'Product retrieved successfully',
                                self.product_service.for_edit(product))

        page = self.int_param(request, 'page', 1)
        limit = self.int_param(request, 'limit', 10)
        products, total = await self.product_service.list_products(page, limit)
        return api_response(True, 'Products retrieved successfully', {
            'products': [self.product_service.for_edit(p) for p in products],
            'pagination': self._pagination(page, limit, total),
        })

    async def admin_create(self, request: web.Request) -> web.Response:
        user_id = self.require_admin(request)
        form = await self.read_form(request)

        language = form.get('language')
        if not language:
            raise ValidationError('language')
        price = self.form_float(form, 'price')
        if price is None:
            raise ValidationError('price')

        draft = ProductDraft(
            language=self.enum_value(Language, language, 'language'),
            texts=self.texts_from_form(form),
            category=form.get('category') or '',
            prices=PriceState(
                price=price,
                final_price=self.form_float(form, 'final_price'),
                is_on_sale=bool(self.form_bool(form, 'is_on_sale')),
                discount_percentage=self.form_float(form, 'discount_percentage'),
            ),
            product_type=self.enum_value(
                ProductType, str(form.get('product_type') or ProductType.PHYSICAL.value).upper(), 'product_type'
            ),
            has_shipping_cost=bool(self.form_bool(form, 'has_shipping_cost')),
            shipping_cost=self.form_float(form, 'shipping_cost'),
            active=bool(self.form_bool(form, 'active')),
            variants=self.form_json(form, 'variants'),
            variant_files=self.form_json(form, 'variant_files'),
        )

        product = await self.product_service.create_product(
            user_id,
            draft,
            self._images(form),
            self.product_service.product_file_service.uploads_from_form(form)
        )
        return api_response(True, 'Product created successfully',
                            self.product_service.for_edit(product), status=201)

    async def admin_update(self, request: web.Request) -> web.Response:
        self.require_admin(request)
        form = await self.read_form(request)

        product_id = form.get('id') or request.query.get('id')
        if not product_id:
            raise ValidationError('id', 'Product id is required')

        changes: Dict[str, Any] = {'texts': self.texts_from_form(form)}
        for name in PRICE_FIELDS:
            if name in form:
                changes[name] = self.form_float(form, name)
        for name in ('is_on_sale', 'has_shipping_cost', 'active', 'translate'):
            if name in form:
                changes[name] = self.form_bool(form, name)
        for name in ('variants', 'variant_files', 'existing_images'):
            if name in form:
                changes[name] = self.form_json(form, name)
        if form.get('category'):
            changes['category'] = form['category']
        if form.get('product_type'):
            changes['product_type'] = self.enum_value(
                ProductType, str(form['product_type']).upper(), 'product_type'
            )
        if form.get('translate_from'):
            changes['translate_from'] = self.enum_value(Language, form['translate_from'], 'translate_from')

        product = await self.product_service.update_product(
            self.uuid_value(product_id),
            ProductUpdate(**changes),
            self._images(form),
            self.product_service.product_file_service.uploads_from_form(form)
        )
        return api_response(True, 'Product updated successfully',
                            self.product_service.for_edit(product))

    async def price_preview(self, request: web.Request) -> web.Response:
        """Recompute the price fields after the editor changes one of them"""
        self.require_admin(request)
        body = await self.read_json(request)

        field = body.get('field')
        if field not in PriceField._value2member_map_:
            raise ValidationError('field', 'Unknown price field')

        state = PriceState(**(body.get('state') or {}))
        state = resolve_price(state, PriceField(field), body.get('value'))
        data = state.model_dump()
        data['anchor'] = state.anchor.value
        data['display'] = price_display(state).model_dump()
        data['price_label'] = Messages.format_price_label(state, self.locale(request))
        return api_response(True, 'Price resolved', data)

    # Storefront

    async def search(self, request: web.Request) -> web.Response:
        locale = self.locale(request)
        page = self.int_param(request, 'page', 1)
        limit = self.int_param(request, 'limit', 20)
        categories = [c.strip() for c in request.query.get('category', '').split(',') if c.strip()]

        products, total = await self.product_service.search_products(
            search=request.query.get('search', '').strip(),
            categories=categories,
            sort=request.query.get('sort', 'newest'),
            page=page,
            limit=limit,
        )
        return api_response(True, 'Products retrieved successfully', {
            'products': [self._storefront(p, locale) for p in products],
            'pagination': self._pagination(page, limit, total),
        })

    async def get_by_slug(self, request: web.Request) -> web.Response:
        product = await self.product_service.get_product_by_slug(request.match_info['slug'])
        if not product:
            raise NotFoundError('Product not found')
        return api_response(True, 'Product retrieved successfully',
                            self._storefront(product, self.locale(request)))

    def _storefront(self, product, locale: Language) -> Dict[str, Any]:
        data = self.product_service.localize(product, locale)
        data['price_label'] = Messages.format_price_label(product.prices, locale)
        return data

    @staticmethod
    def _images(form: Dict[str, Any]):
        return [f for f in BaseHandler.form_list(form, 'images') if isinstance(f, UploadedFile)]

    @staticmethod
    def _pagination(page: int, limit: int, total: int) -> Dict[str, int]:
        return {
            'page': page,
            'limit': limit,
            'total': total,
            'total_pages': (total + limit - 1) // limit,
        }
