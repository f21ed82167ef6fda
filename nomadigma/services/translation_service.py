# nomadigma/services/translation_service.py
import asyncio
import json
import logging
import re
from typing import Any, Dict, Optional
import aiohttp
from ..config import Config
from ..errors import (
    TranslationParseError, TranslationServiceError, TranslationValidationError
)
from ..models.bilingual import Language, LocalizedFields
from ..utils.slug import generate_slug

FENCED_JSON_RE = re.compile(r"```json\s*([\s\S]*?)\s*```")
FENCED_RE = re.compile(r"```\s*([\s\S]*?)\s*```")

PROMPT_TEMPLATE = """You are a professional translator specializing in travel and digital nomad content. Translate the following {kind} from {source} to {target}.

IMPORTANT INSTRUCTIONS:
1. Preserve ALL HTML/Markdown formatting in the content field exactly as it appears
2. Maintain the same structure, tags, and formatting
3. Translate naturally and contextually, not word-by-word
4. Keep technical terms, brand names, and proper nouns in their original form unless they have a standard translation
5. Generate a URL-friendly slug for the translated title (lowercase, hyphens instead of spaces, no special characters)
6. Return ONLY valid JSON, no additional text or markdown

Input to translate:
- Title: {title}
- Description: {description}
- Content: {content}
- Slug: {slug}

Return a JSON object with this exact structure:
{{
  "title": "translated title",
  "description": "translated description or null if original was null",
  "content": "translated content with HTML/Markdown preserved",
  "slug": "translated-slug-url-friendly"
}}"""

def build_prompt(fields: LocalizedFields, source: Language, target: Language,
                 kind: str = "blog post") -> str:
    # json.dumps keeps quotes and newlines inside values unambiguous
    return PROMPT_TEMPLATE.format(
        kind=kind,
        source=source.display_name,
        target=target.display_name,
        title=json.dumps(fields.title or ""),
        description=json.dumps(fields.description or ""),
        content=json.dumps(fields.content or ""),
        slug=json.dumps(fields.slug or ""),
    )

def parse_translation_response(text: str) -> Dict[str, Any]:
    """Extract the JSON object from the model answer.

    Tries the raw text, then a fenced code block, then the span between the
    first `{` and the last `}`.
    """
    candidates = [text]

    match = FENCED_JSON_RE.search(text) or FENCED_RE.search(text)
    if match:
        candidates.append(match.group(1))

    start = text.find("{")
    end = text.rfind("}")
    if start != -1 and end > start:
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            parsed = json.loads(candidate)
        except (json.JSONDecodeError, TypeError):
            continue
        if isinstance(parsed, dict):
            return parsed

    raise TranslationParseError("Could not extract JSON from model response")

class TranslationService:
    """Translate bilingual fields with the generative-language API"""

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None,
                 api_url: Optional[str] = None, timeout: Optional[float] = None):
        self.api_key = api_key if api_key is not None else Config.GEMINI_API_KEY
        self.model = model or Config.GEMINI_MODEL
        self.api_url = (api_url or Config.GEMINI_API_URL).rstrip("/")
        self.timeout = timeout or Config.TRANSLATION_TIMEOUT
        self.logger = logging.getLogger(__name__)

    async def translate(self, fields: LocalizedFields, source: Language, target: Language,
                        primary_field: str = "content",
                        kind: str = "blog post") -> LocalizedFields:
        """Translate `fields` from `source` into `target`.

        `primary_field` names the body field that must come back non-empty
        (`content` for posts, `description` for products).
        """
        source, target = Language(source), Language(target)
        if source == target:
            return fields

        self.logger.info(
            f"[Translation] {source.value} -> {target.value}: {(fields.title or '')[:50]!r}"
        )

        request_fields = fields
        if primary_field != "content":
            request_fields = fields.model_copy(
                update={"content": getattr(fields, primary_field)}
            )

        text = await self._generate(build_prompt(request_fields, source, target, kind))
        translated = parse_translation_response(text)

        title = translated.get("title")
        body = translated.get(primary_field) or translated.get("content")
        if not title or not body:
            raise TranslationValidationError(
                "Invalid translation response: missing required fields"
            )

        description = translated.get("description")
        if primary_field == "description":
            description = body

        result = LocalizedFields(
            title=title,
            description=description or None,
            content=body if primary_field == "content" else None,
            slug=translated.get("slug") or generate_slug(title),
        )

        self.logger.info(f"[Translation] Success: {result.title[:50]!r}")
        return result

    async def _generate(self, prompt: str) -> str:
        """Send the prompt and return the raw text of the first candidate"""
        if not self.api_key:
            raise TranslationServiceError("GEMINI_API_KEY is not configured")

        url = f"{self.api_url}/models/{self.model}:generateContent"
        body = {"contents": [{"parts": [{"text": prompt}]}]}

        try:
            timeout = aiohttp.ClientTimeout(total=self.timeout)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                async with session.post(
                    url,
                    params={"key": self.api_key},
                    json=body
                ) as response:
                    if response.status != 200:
                        detail = await response.text()
                        raise TranslationServiceError(
                            f"model returned HTTP {response.status}: {detail[:200]}"
                        )
                    data = await response.json()
        except aiohttp.ClientError as e:
            self.logger.error(f"Translation request failed: {e}")
            raise TranslationServiceError(str(e)) from e
        except asyncio.TimeoutError as e:
            self.logger.error("Translation request timed out")
            raise TranslationServiceError("request timed out") from e

        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError):
            raise TranslationServiceError("model returned no candidates")
        return "".join(part.get("text", "") for part in parts)
