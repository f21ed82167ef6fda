# nomadigma/handlers/post_handlers.py
import logging
from aiohttp import web
from ..errors import NotFoundError, ValidationError
from ..models.bilingual import Language
from ..models.post import PostDraft, PostStatus
from ..services.file_service import UploadedFile
from ..services.post_service import PostService
from .base_handler import BaseHandler, api_response

class PostHandlers(BaseHandler):
    """Blog post endpoints"""

    def __init__(self, post_service: PostService):
        self.post_service = post_service
        self.logger = logging.getLogger(__name__)

    async def get_posts(self, request: web.Request) -> web.Response:
        slug = request.query.get('slug')
        locale = self.locale(request)

        if slug:
            for_edit = request.query.get('for_edit') == 'true'
            if for_edit:
                self.require_admin(request)

            post = await self.post_service.get_post_by_slug(slug, published_only=not for_edit)
            if not post:
                raise NotFoundError('Post not found')

            data = (self.post_service.for_edit(post) if for_edit
                    else self.post_service.localize(post, locale))
            return api_response(True, 'Post retrieved successfully', data)

        page = self.int_param(request, 'page', 1)
        limit = self.int_param(request, 'limit', 12)
        posts, total = await self.post_service.list_published(page, limit)

        return api_response(True, 'Posts retrieved successfully', {
            'posts': [self.post_service.localize(p, locale) for p in posts],
            'pagination': {
                'page': page,
                'limit': limit,
                'total': total,
                'total_pages': (total + limit - 1) // limit,
            },
        })

    async def save_post(self, request: web.Request) -> web.Response:
        user_id = self.require_admin(request)
        form = await self.read_form(request)

        language = form.get('language')
        if not language:
            raise ValidationError('language')

        status = str(form.get('status') or PostStatus.DRAFT.value).upper()
        if status not in PostStatus._value2member_map_:
            raise ValidationError('status', 'Status must be DRAFT, PUBLISHED or ARCHIVED')

        reading_time = self.form_float(form, 'reading_time')
        post_id = form.get('post_id')
        cover = form.get('cover_image')

        draft = PostDraft(
            post_id=self.uuid_value(post_id, 'post_id') if post_id else None,
            language=self.enum_value(Language, language, 'language'),
            texts=self.texts_from_form(form),
            status=PostStatus(status),
            hashtags=self._hashtags(form),
            reading_time=int(reading_time) if reading_time is not None else None,
            translate=bool(self.form_bool(form, 'translate')),
        )

        post = await self.post_service.save_post(
            user_id,
            draft,
            cover if isinstance(cover, UploadedFile) and cover.size > 0 else None
        )

        message = 'Post updated successfully' if draft.post_id else 'Post created successfully'
        self.logger.info(f"{message}: {post.id}")
        return api_response(True, message, self.post_service.for_edit(post),
                            status=200 if draft.post_id else 201)

    def _hashtags(self, form) -> list:
        """JSON list or comma-separated string"""
        value = form.get('hashtags')
        if isinstance(value, str):
            value = (self.form_json(form, 'hashtags') if value.strip().startswith('[')
                     else value.split(','))
        return [str(tag).strip() for tag in value or [] if str(tag).strip()]
