# nomadigma/handlers/translate_handler.py
from aiohttp import web
from ..errors import ValidationError
from ..models.bilingual import Language, LocalizedFields
from ..services.translation_service import TranslationService
from .base_handler import BaseHandler, api_response

class TranslateHandler(BaseHandler):
    """Ad-hoc translation for the editors"""

    def __init__(self, translation_service: TranslationService):
        self.translation_service = translation_service

    async def translate(self, request: web.Request) -> web.Response:
        self.require_admin(request)
        body = await self.read_json(request)

        title = body.get('text') or body.get('title')
        content = body.get('content')
        description = body.get('description')

        if not title and not content:
            raise ValidationError('text', 'Text or content is required for translation')
        if not body.get('from') or not body.get('to'):
            raise ValidationError('from', 'Source and target languages are required')

        if content:
            primary_field = 'content'
        elif description:
            primary_field = 'description'
        else:
            primary_field = 'title'

        translated = await self.translation_service.translate(
            LocalizedFields(title=title, description=description, content=content),
            self.enum_value(Language, body['from'], 'from'),
            self.enum_value(Language, body['to'], 'to'),
            primary_field=primary_field,
        )
        return api_response(True, 'Translation completed', translated.model_dump())
