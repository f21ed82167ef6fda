# nomadigma/handlers/checkout_handler.py
import logging
from aiohttp import web
from ..config import Config
from ..errors import ValidationError
from ..models.cart import CartLineItem
from ..models.product import ProductType
from ..services.product_service import ProductService
from ..utils.variants import download_links
from .base_handler import BaseHandler, api_response

class CheckoutHandler(BaseHandler):
    """Download links for the digital items of a paid cart.

    Only the back office calls this, once the payment processor has confirmed
    the order; shoppers never receive links straight from a cart.
    """

    def __init__(self, product_service: ProductService, site_url: str = None):
        self.product_service = product_service
        self.site_url = (site_url or Config.SITE_URL).rstrip('/')
        self.logger = logging.getLogger(__name__)

    async def downloads(self, request: web.Request) -> web.Response:
        self.require_admin(request)
        body = await self.read_json(request)
        items = body.get('items')
        if not isinstance(items, list):
            raise ValidationError('items', 'Field items must be a list')
        locale = self.locale(request)

        result = []
        for raw in items:
            item = CartLineItem(**raw)
            if item.product_type != ProductType.DIGITAL:
                continue

            product = await self.product_service.get_product(self.uuid_value(item.id, 'items.id'))
            if not product or not product.is_digital:
                self.logger.warning(f"Cart item {item.id} is not a digital product")
                continue

            item.variant_files = product.variant_files
            result.append({
                'id': item.id,
                'title': item.title,
                'links': [link.model_dump() for link in download_links(item, self.site_url, locale)],
            })

        return api_response(True, 'Downloads retrieved successfully', result)
