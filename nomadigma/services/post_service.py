# nomadigma/services/post_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from ..database.queries import insert_row, update_row
from ..errors import NotFoundError, PermissionDeniedError, ValidationError
from ..models.bilingual import BilingualPayload, Language
from ..models.post import Post, PostDraft, PostStatus
from ..utils.formatters import format_datetime, make_excerpt
from .bilingual_service import POST, BilingualSynchronizer
from .file_service import UploadedFile
from .product_file_service import ProductFileService
from .translation_service import TranslationService

class PostService:
    """Blog posts with English and Spanish columns"""

    def __init__(self, db, translation_service: TranslationService,
                 product_file_service: ProductFileService):
        self.db = db
        self.synchronizer = BilingualSynchronizer(translation_service, POST)
        self.product_file_service = product_file_service
        self.logger = logging.getLogger(__name__)

    async def slug_exists(self, slug: str, exclude_id: Optional[str] = None) -> bool:
        """Whether another post uses `slug` in either language"""
        async with self.db.pool.acquire() as conn:
            return await conn.fetchval("""
                SELECT EXISTS (
                    SELECT 1 FROM posts
                    WHERE (slug_en = $1 OR slug_es = $1)
                    AND ($2::uuid IS NULL OR id <> $2::uuid)
                )
            """, slug, exclude_id)

    async def get_post(self, post_id: str) -> Optional[Post]:
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("SELECT * FROM posts WHERE id = $1::uuid", post_id)
            return self._row_to_post(row) if row else None

    async def get_post_by_slug(self, slug: str, published_only: bool = True) -> Optional[Post]:
        """Find a post by its English or Spanish slug"""
        async with self.db.pool.acquire() as conn:
            row = await conn.fetchrow("""
                SELECT * FROM posts
                WHERE (slug_en = $1 OR slug_es = $1)
                AND (NOT $2 OR status = 'PUBLISHED')
                LIMIT 1
            """, slug, published_only)
            return self._row_to_post(row) if row else None

    async def list_published(self, page: int = 1, limit: int = 12) -> Tuple[List[Post], int]:
        """Published posts, newest first"""
        offset = (page - 1) * limit
        async with self.db.pool.acquire() as conn:
            rows = await conn.fetch("""
                SELECT * FROM posts
                WHERE status = 'PUBLISHED'
                ORDER BY published_at DESC NULLS LAST
                OFFSET $1 LIMIT $2
            """, offset, limit)
            total = await conn.fetchval(
                "SELECT COUNT(*) FROM posts WHERE status = 'PUBLISHED'"
            )
            return [self._row_to_post(r) for r in rows], total

    async def save_post(self, user_id: str, draft: PostDraft,
                        cover: Optional[UploadedFile] = None) -> Post:
        """Create a post, or edit it when `draft.post_id` is set"""
        if draft.reading_time is None:
            raise ValidationError('reading_time')
        if cover is not None:
            self.product_file_service.file_service.validate_image(cover)

        if draft.post_id:
            return await self._update_post(user_id, draft, cover)

        if cover is None:
            raise ValidationError('cover_image')

        texts = await self.synchronizer.create(
            draft.language,
            draft.texts.get(draft.language),
            self.slug_exists
        )

        post_id = str(uuid.uuid4())
        values: Dict[str, Any] = texts.to_columns()
        values.update({
            'id': post_id,
            'language': draft.language.value,
            'status': draft.status.value,
            'hashtags': draft.hashtags,
            'reading_time': draft.reading_time,
            'creator_id': user_id,
            'published_at': self._now() if draft.status == PostStatus.PUBLISHED else None,
            'cover_image': await self.product_file_service.upload_cover(post_id, cover),
        })

        async with self.db.pool.acquire() as conn:
            row = await insert_row(conn, 'posts', values)

        self.logger.info(f"Post {post_id} created ({values['slug_en']}, {values['slug_es']})")
        return self._row_to_post(row)

    async def _update_post(self, user_id: str, draft: PostDraft,
                           cover: Optional[UploadedFile]) -> Post:
        existing = await self.get_post(draft.post_id)
        if not existing:
            raise NotFoundError('Post not found')
        if existing.creator_id != user_id:
            raise PermissionDeniedError('Unauthorized to edit this post')

        values = await self.synchronizer.update(
            existing.id,
            existing.texts,
            draft.texts,
            self.slug_exists,
            should_translate=draft.translate,
            translate_from=draft.language,
        )
        values.update({
            'language': draft.language.value,
            'status': draft.status.value,
            'hashtags': draft.hashtags,
            'reading_time': draft.reading_time,
        })
        if draft.status == PostStatus.PUBLISHED and not existing.published_at:
            values['published_at'] = self._now()
        if cover is not None:
            cover_url = await self.product_file_service.upload_cover(existing.id, cover)
            if cover_url:
                values['cover_image'] = cover_url

        async with self.db.pool.acquire() as conn:
            row = await update_row(conn, 'posts', existing.id, values)
        return self._row_to_post(row)

    @staticmethod
    def _now() -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _row_to_post(row) -> Post:
        data = dict(row)
        return Post(
            id=str(data['id']),
            texts=BilingualPayload.from_columns(data),
            language=data.get('language') or Language.EN,
            status=data.get('status') or PostStatus.DRAFT,
            hashtags=data.get('hashtags') or [],
            cover_image=data.get('cover_image'),
            cover_image_thumbnail=data.get('cover_image_thumbnail'),
            reading_time=data.get('reading_time') or 0,
            published_at=data.get('published_at'),
            creator_id=data.get('creator_id'),
            view_count=data.get('view_count') or 0,
            like_count=data.get('like_count') or 0,
            comment_count=data.get('comment_count') or 0,
            created_at=data.get('created_at'),
            updated_at=data.get('updated_at'),
        )

    @staticmethod
    def localize(post: Post, locale: Language) -> Dict[str, Any]:
        """Post shaped for a reader in `locale`"""
        fields = post.texts.get(Language(locale))
        return {
            'id': post.id,
            'slug': fields.slug,
            'title': fields.title,
            'excerpt': make_excerpt(fields.description, fields.content),
            'content': fields.content,
            'published_at': post.published_at.isoformat() if post.published_at else None,
            'published_date': format_datetime(post.published_at) if post.published_at else None,
            'view_count': post.view_count,
            'hashtags': post.hashtags,
            'cover_image': post.cover_image_thumbnail or post.cover_image,
            'likes': post.like_count,
            'comments': post.comment_count,
            'reading_time': post.reading_time,
        }

    @staticmethod
    def for_edit(post: Post) -> Dict[str, Any]:
        """Every column, as the editor loads it"""
        data = post.texts.to_columns()
        data.update({
            'id': post.id,
            'language': post.language.value,
            'status': post.status.value,
            'hashtags': post.hashtags,
            'cover_image': post.cover_image,
            'reading_time': post.reading_time,
            'published_at': post.published_at.isoformat() if post.published_at else None,
        })
        return data
