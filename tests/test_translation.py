import pytest

from nomadigma.errors import (
    TranslationParseError, TranslationServiceError, TranslationValidationError
)
from nomadigma.models.bilingual import Language, LocalizedFields
from nomadigma.services.translation_service import (
    TranslationService, build_prompt, parse_translation_response
)

from conftest import FakeTranslationService

SOURCE = LocalizedFields(
    title="Hello",
    description="A description",
    content="<p>Hello <strong>world</strong></p>",
    slug="hello",
)


async def test_same_language_returns_input_without_call(translator):
    result = await translator.translate(SOURCE, Language.EN, Language.EN)

    assert result == SOURCE
    assert translator.prompts == []


async def test_translate_post(translator):
    result = await translator.translate(SOURCE, Language.EN, Language.ES)

    assert result.title == "Hola"
    assert result.content == "<p>Hola mundo</p>"
    assert result.slug == "hola"
    assert len(translator.prompts) == 1
    assert "from English to Spanish" in translator.prompts[0]


async def test_missing_slug_is_generated():
    translator = FakeTranslationService({"title": "¿Qué Hacer en Japón?", "content": "<p>x</p>"})
    result = await translator.translate(SOURCE, Language.EN, Language.ES)

    assert result.slug == "que-hacer-en-japon"


async def test_product_description_is_primary_field():
    translator = FakeTranslationService({"title": "Guía", "content": "Descripción traducida"})
    source = LocalizedFields(title="Guide", description="Translated description", slug="guide")

    result = await translator.translate(
        source, Language.EN, Language.ES, primary_field="description", kind="store product"
    )

    assert result.description == "Descripción traducida"
    assert result.content is None
    assert "Translated description" in translator.prompts[0]


async def test_missing_title_fails_validation():
    translator = FakeTranslationService({"content": "<p>x</p>"})
    with pytest.raises(TranslationValidationError):
        await translator.translate(SOURCE, Language.EN, Language.ES)


async def test_unparseable_answer():
    translator = FakeTranslationService("I cannot translate that.")
    with pytest.raises(TranslationParseError):
        await translator.translate(SOURCE, Language.EN, Language.ES)


async def test_service_error_propagates():
    translator = FakeTranslationService(TranslationServiceError("quota exceeded"))
    with pytest.raises(TranslationServiceError) as exc:
        await translator.translate(SOURCE, Language.EN, Language.ES)
    assert exc.value.message == "Translation failed: quota exceeded"


async def test_missing_api_key():
    service = TranslationService(api_key="")
    with pytest.raises(TranslationServiceError):
        await service.translate(SOURCE, Language.EN, Language.ES)


def test_parse_raw_json():
    assert parse_translation_response('{"title": "Hola"}') == {"title": "Hola"}


def test_parse_fenced_block():
    text = 'Here you go:\n```json\n{"title": "Hola", "slug": "hola"}\n```\nEnjoy!'
    assert parse_translation_response(text)["slug"] == "hola"


def test_parse_plain_fence():
    text = '```\n{"title": "Hola"}\n```'
    assert parse_translation_response(text) == {"title": "Hola"}


def test_parse_brace_span():
    text = 'Sure! {"title": "Hola", "content": "<p>{x}</p>"} Hope that helps.'
    assert parse_translation_response(text)["content"] == "<p>{x}</p>"


def test_parse_failure():
    with pytest.raises(TranslationParseError):
        parse_translation_response("no json here")


def test_prompt_keeps_markup_and_languages():
    prompt = build_prompt(SOURCE, Language.ES, Language.EN)

    assert "from Spanish to English" in prompt
    assert "<strong>world</strong>" in prompt
    assert "Return ONLY valid JSON" in prompt
