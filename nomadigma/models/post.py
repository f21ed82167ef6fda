# nomadigma/models/post.py
from datetime import datetime
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel
from .base import TimeStampedModel
from .bilingual import BilingualPayload, Language

class PostStatus(str, Enum):
    DRAFT = "DRAFT"
    PUBLISHED = "PUBLISHED"
    ARCHIVED = "ARCHIVED"

class Post(TimeStampedModel):
    """Blog post with parallel English and Spanish fields"""
    id: str
    texts: BilingualPayload
    language: Language
    status: PostStatus = PostStatus.DRAFT
    hashtags: List[str] = []
    cover_image: Optional[str] = None
    cover_image_thumbnail: Optional[str] = None
    reading_time: int = 0
    published_at: Optional[datetime] = None
    creator_id: Optional[str] = None
    view_count: int = 0
    like_count: int = 0
    comment_count: int = 0

class PostDraft(BaseModel):
    """Submitted fields of a post create or edit"""
    post_id: Optional[str] = None
    language: Language
    texts: BilingualPayload
    status: PostStatus = PostStatus.DRAFT
    hashtags: List[str] = []
    reading_time: Optional[int] = None
    translate: bool = False
