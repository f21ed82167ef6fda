# nomadigma/app.py
import logging
from typing import Optional
from aiohttp import web
from .config import Config
from .database.database import Database
from .handlers import (
    CheckoutHandler,
    PostHandlers,
    ProductHandlers,
    TranslateHandler,
    error_middleware
)
from .services.file_service import FileService
from .services.post_service import PostService
from .services.product_file_service import ProductFileService
from .services.product_service import ProductService
from .services.translation_service import TranslationService

class NomadigmaApp:
    def __init__(self, db: Optional[Database] = None,
                 translation_service: Optional[TranslationService] = None,
                 file_service: Optional[FileService] = None):
        """Build services and the web application"""
        self.logger = logging.getLogger(__name__)
        self.db = db or Database()
        self.translation_service = translation_service or TranslationService()
        self.file_service = file_service or FileService()

        product_file_service = ProductFileService(self.file_service)
        self.post_service = PostService(self.db, self.translation_service, product_file_service)
        self.product_service = ProductService(self.db, self.translation_service, product_file_service)

        self.application = web.Application(
            middlewares=[error_middleware],
            client_max_size=FileService.MAX_FILE_SIZE
        )
        self.application.on_startup.append(self._on_startup)
        self.application.on_cleanup.append(self._on_cleanup)
        self.setup_routes()

    def setup_routes(self):
        """Register the API routes"""
        posts = PostHandlers(self.post_service)
        products = ProductHandlers(self.product_service)
        translate = TranslateHandler(self.translation_service)
        checkout = CheckoutHandler(self.product_service)

        router = self.application.router

        # Blog
        router.add_get('/api/posts', posts.get_posts)
        router.add_post('/api/posts', posts.save_post)

        # Admin products
        router.add_get('/api/admin/products', products.admin_get)
        router.add_post('/api/admin/products', products.admin_create)
        router.add_patch('/api/admin/products', products.admin_update)
        router.add_post('/api/admin/products/price', products.price_preview)

        # Storefront
        router.add_get('/api/products', products.search)
        router.add_get('/api/products/{slug}', products.get_by_slug)
        router.add_post('/api/checkout/downloads', checkout.downloads)

        # Editor helpers
        router.add_post('/api/translate', translate.translate)

        # Stored files
        router.add_static('/uploads', self.file_service.upload_path.parent)

    async def _on_startup(self, app: web.Application):
        await self.db.connect()

    async def _on_cleanup(self, app: web.Application):
        await self.db.close()

    def start(self):
        """Serve until interrupted"""
        self.logger.info(f"Starting server on {Config.HOST}:{Config.PORT}")
        web.run_app(self.application, host=Config.HOST, port=Config.PORT)
