"""HTTP handlers"""
from .base_handler import BaseHandler, api_response, error_middleware
from .post_handlers import PostHandlers
from .product_handlers import ProductHandlers
from .translate_handler import TranslateHandler
from .checkout_handler import CheckoutHandler

__all__ = [
    'BaseHandler',
    'PostHandlers',
    'ProductHandlers',
    'TranslateHandler',
    'CheckoutHandler',
    'api_response',
    'error_middleware'
]
