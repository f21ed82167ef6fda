# nomadigma/services/bilingual_service.py
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional, Tuple
from ..errors import SlugConflictError, ValidationError
from ..models.bilingual import BilingualPayload, Language, LocalizedFields
from ..utils.formatters import strip_tags
from ..utils.slug import generate_slug
from .translation_service import TranslationService

# (slug, id to ignore) -> True when another row already uses the slug
SlugChecker = Callable[[str, Optional[str]], Awaitable[bool]]

@dataclass(frozen=True)
class EntityKind:
    """How a bilingual entity stores and translates its text"""
    name: str
    primary_field: str
    required_fields: Tuple[str, ...]
    has_content: bool
    slug_editable: bool

POST = EntityKind(
    name="blog post",
    primary_field="content",
    required_fields=("title", "content", "description"),
    has_content=True,
    slug_editable=False,
)

PRODUCT = EntityKind(
    name="store product",
    primary_field="description",
    required_fields=("title", "description"),
    has_content=False,
    slug_editable=True,
)

def _is_blank(name: str, value: Optional[str], kind: EntityKind) -> bool:
    if value is None or not value.strip():
        return True
    # Rich-text bodies like "<p></p>" count as empty
    return name == kind.primary_field and not strip_tags(value).strip()

class BilingualSynchronizer:
    """Create and update entities whose text lives in English and Spanish"""

    def __init__(self, translation_service: TranslationService, kind: EntityKind):
        self.translation_service = translation_service
        self.kind = kind
        self.logger = logging.getLogger(__name__)

    def validate_source(self, language: Language, fields: LocalizedFields) -> None:
        for name in self.kind.required_fields:
            if _is_blank(name, getattr(fields, name), self.kind):
                raise ValidationError(f"{name}_{language.value}")

    async def _ensure_free(self, slug: str, slug_exists: SlugChecker,
                           exclude_id: Optional[str] = None) -> None:
        if await slug_exists(slug, exclude_id):
            self.logger.warning(f"Slug conflict for {self.kind.name}: {slug}")
            raise SlugConflictError(slug)

    async def create(self, language: Language, fields: LocalizedFields,
                     slug_exists: SlugChecker) -> BilingualPayload:
        """Validate the source fields, translate them and assemble both languages.

        Nothing is returned unless every step succeeds; translation errors
        propagate so the caller never writes a half-filled row.
        """
        language = Language(language)
        self.validate_source(language, fields)

        slug = (fields.slug or "").strip() or generate_slug(fields.title)
        if not slug:
            raise ValidationError(f"slug_{language.value}")
        await self._ensure_free(slug, slug_exists)

        source = fields.model_copy(update={"slug": slug})
        if not self.kind.has_content:
            source = source.model_copy(update={"content": None})

        payload = BilingualPayload()
        payload.set(language, source)

        translated = await self.translation_service.translate(
            source,
            language,
            language.counterpart,
            primary_field=self.kind.primary_field,
            kind=self.kind.name,
        )
        if translated.slug != slug:
            await self._ensure_free(translated.slug, slug_exists)

        payload.set(language.counterpart, translated)
        return payload

    async def update(self, entity_id: str, existing: BilingualPayload,
                     fields: BilingualPayload, slug_exists: SlugChecker,
                     should_translate: bool = False,
                     translate_from: Optional[Language] = None) -> Dict[str, Any]:
        """Column changes for an edit.

        Titles never change here. Slugs change only for kinds that allow it,
        after a collision check that ignores the entity itself. With
        `should_translate` the body of `translate_from` is translated into
        the other language, overwriting only that language's body.
        """
        body_fields = ["description"]
        if self.kind.has_content:
            body_fields.append("content")

        delta: Dict[str, Any] = {}
        merged = existing.model_copy(deep=True)

        for language in Language:
            submitted = fields.get(language)
            current = merged.get(language)

            for name in body_fields:
                value = getattr(submitted, name)
                if value is not None:
                    delta[f"{name}_{language.value}"] = value
                    setattr(current, name, value)

            if submitted.title is not None and submitted.title != current.title:
                self.logger.debug(f"Ignoring title change for {self.kind.name} {entity_id}")

            slug = (submitted.slug or "").strip()
            if slug and slug != current.slug:
                if not self.kind.slug_editable:
                    self.logger.debug(f"Ignoring slug change for {self.kind.name} {entity_id}")
                    continue
                await self._ensure_free(slug, slug_exists, entity_id)
                delta[f"slug_{language.value}"] = slug
                current.slug = slug

        if should_translate:
            source_language = Language(translate_from or Language.EN)
            target_language = source_language.counterpart
            source = merged.get(source_language)
            if _is_blank(self.kind.primary_field, getattr(source, self.kind.primary_field), self.kind):
                raise ValidationError(f"{self.kind.primary_field}_{source_language.value}")

            translated = await self.translation_service.translate(
                source,
                source_language,
                target_language,
                primary_field=self.kind.primary_field,
                kind=self.kind.name,
            )
            for name in body_fields:
                delta[f"{name}_{target_language.value}"] = getattr(translated, name)

        return delta
