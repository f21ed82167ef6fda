# nomadigma/handlers/base_handler.py
import json
import logging
import uuid
from typing import Any, Dict, List, Optional
from aiohttp import web
from pydantic import ValidationError as PydanticValidationError
from ..config import Config
from ..errors import NomadigmaError, PermissionDeniedError, ValidationError
from ..models.bilingual import BilingualPayload, Language, LocalizedFields
from ..services.file_service import UploadedFile

logger = logging.getLogger(__name__)

def api_response(success: bool, message: str, data: Any = None,
                 status: int = 200) -> web.Response:
    """JSON body in the {success, message, data} envelope"""
    return web.json_response(
        {'success': success, 'message': message, 'data': data},
        status=status
    )

@web.middleware
async def error_middleware(request: web.Request, handler):
    try:
        return await handler(request)
    except web.HTTPException:
        raise
    except NomadigmaError as e:
        if e.status_code >= 500:
            logger.error(f"{request.method} {request.path} failed: {e.message}")
        return api_response(False, e.message, None, e.status_code)
    except PydanticValidationError as e:
        errors = e.errors()
        field = ".".join(str(p) for p in errors[0]["loc"]) if errors else "body"
        return api_response(False, f"Invalid value for {field}", None, 400)
    except Exception as e:
        logger.error(f"Unexpected error on {request.method} {request.path}: {e}", exc_info=True)
        return api_response(False, 'Internal server error', None, 500)

class BaseHandler:
    """Base class for the API handlers"""

    def admin_user(self, request: web.Request) -> Optional[str]:
        """User id of the admin token in the request, if any"""
        header = request.headers.get('Authorization', '')
        scheme, _, token = header.partition(' ')
        if scheme.lower() != 'bearer' or not token:
            return None
        return Config.ADMIN_TOKENS.get(token.strip())

    def require_admin(self, request: web.Request) -> str:
        user_id = self.admin_user(request)
        if user_id is None:
            raise PermissionDeniedError('Unauthorized')
        return user_id

    @staticmethod
    def locale(request: web.Request, default: Language = Language.ES) -> Language:
        try:
            return Language(request.query.get('locale', default.value))
        except ValueError:
            return default

    @staticmethod
    def int_param(request: web.Request, name: str, default: int) -> int:
        try:
            return max(int(request.query.get(name, default)), 1)
        except ValueError:
            raise ValidationError(name, f"Field {name} must be an integer")

    @staticmethod
    def enum_value(enum_type, value: Any, field: str):
        """Client value as a member of `enum_type`"""
        try:
            return enum_type(value)
        except ValueError:
            raise ValidationError(field, f"Field {field} is invalid")

    @staticmethod
    def uuid_value(value: Any, field: str = 'id') -> str:
        try:
            return str(uuid.UUID(str(value)))
        except ValueError:
            raise ValidationError(field, f"Field {field} is invalid")

    @staticmethod
    async def read_json(request: web.Request) -> Dict[str, Any]:
        try:
            body = await request.json()
        except json.JSONDecodeError:
            raise ValidationError('body', 'Request body must be JSON')
        if not isinstance(body, dict):
            raise ValidationError('body', 'Request body must be a JSON object')
        return body

    @staticmethod
    async def read_form(request: web.Request) -> Dict[str, Any]:
        """Multipart or JSON body; repeated keys become lists, files UploadedFile"""
        if request.content_type != 'multipart/form-data':
            return await BaseHandler.read_json(request)

        form: Dict[str, Any] = {}
        reader = await request.multipart()
        while True:
            part = await reader.next()
            if part is None:
                break
            if part.filename:
                value = UploadedFile(
                    filename=part.filename,
                    content_type=part.headers.get('Content-Type'),
                    content=bytes(await part.read(decode=False)),
                )
            else:
                value = await part.text()

            if part.name in form:
                existing = form[part.name]
                if not isinstance(existing, list):
                    form[part.name] = [existing]
                form[part.name].append(value)
            else:
                form[part.name] = value
        return form

    @staticmethod
    def form_list(form: Dict[str, Any], name: str) -> List[Any]:
        value = form.get(name)
        if value is None:
            return []
        return value if isinstance(value, list) else [value]

    @staticmethod
    def form_json(form: Dict[str, Any], name: str) -> Any:
        """Decode a field that multipart sends as a JSON string"""
        value = form.get(name)
        if not isinstance(value, str):
            return value
        if not value.strip():
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError:
            raise ValidationError(name, f"Field {name} must be valid JSON")

    @staticmethod
    def form_bool(form: Dict[str, Any], name: str) -> Optional[bool]:
        value = form.get(name)
        if value is None or isinstance(value, bool):
            return value
        return str(value).lower() in ('true', '1', 'on', 'yes')

    @staticmethod
    def form_float(form: Dict[str, Any], name: str) -> Optional[float]:
        value = form.get(name)
        if value is None or value == '' or value == 'null':
            return None
        try:
            return float(value)
        except (TypeError, ValueError):
            raise ValidationError(name, f"Field {name} must be a number")

    @staticmethod
    def texts_from_form(form: Dict[str, Any]) -> BilingualPayload:
        """Collect `title_en`, `description_es`, ... into a payload"""
        payload = BilingualPayload()
        for language in Language:
            values = {}
            for name in ('title', 'description', 'content', 'slug'):
                value = form.get(f"{name}_{language.value}")
                if isinstance(value, str):
                    values[name] = value
            payload.set(language, LocalizedFields(**values))
        return payload
