import pytest

from nomadigma.errors import (
    NotFoundError, PermissionDeniedError, SlugConflictError, StorageError,
    TranslationParseError, ValidationError
)
from nomadigma.models.bilingual import BilingualPayload, Language, LocalizedFields
from nomadigma.models.post import PostDraft, PostStatus
from nomadigma.services.file_service import UploadedFile
from nomadigma.services.post_service import PostService
from nomadigma.services.product_file_service import ProductFileService


@pytest.fixture
def post_service(fake_db, translator, file_service):
    return PostService(fake_db, translator, ProductFileService(file_service))


def draft(**overrides) -> PostDraft:
    values = dict(
        language=Language.EN,
        texts=BilingualPayload(en=LocalizedFields(
            title="Hello",
            description="First post",
            content="<p>Hello world</p>",
            slug="hello",
        )),
        status=PostStatus.PUBLISHED,
        hashtags=["travel"],
        reading_time=4,
    )
    values.update(overrides)
    return PostDraft(**values)


async def test_create_post(post_service, fake_db, png_upload):
    post = await post_service.save_post("user-1", draft(), png_upload)

    assert post.texts.en.title == "Hello"
    assert post.texts.es.title == "Hola"
    assert post.texts.es.slug == "hola"
    assert post.published_at is not None
    assert post.cover_image == f"http://files.test/nomadigma/covers/{post.id}.png"
    assert fake_db.conn.writes == ["insert posts"]


async def test_create_requires_cover(post_service):
    with pytest.raises(ValidationError) as exc:
        await post_service.save_post("user-1", draft())
    assert exc.value.field == "cover_image"


async def test_create_requires_reading_time(post_service, png_upload):
    with pytest.raises(ValidationError):
        await post_service.save_post("user-1", draft(reading_time=None), png_upload)


async def test_invalid_cover_rejected_before_translation(post_service, translator, fake_db):
    cover = UploadedFile(filename="cover.png", content_type="image/png", content=b"plain text")

    with pytest.raises(ValidationError) as exc:
        await post_service.save_post("user-1", draft(), cover)
    assert exc.value.field == "image"
    assert translator.prompts == []
    assert fake_db.conn.writes == []


async def test_translation_failure_writes_nothing(post_service, translator, fake_db, png_upload):
    translator.response = "not json"

    with pytest.raises(TranslationParseError):
        await post_service.save_post("user-1", draft(), png_upload)
    assert fake_db.conn.writes == []


async def test_slug_conflict_writes_nothing(post_service, fake_db, png_upload):
    await post_service.save_post("user-1", draft(), png_upload)

    second = draft(texts=BilingualPayload(en=LocalizedFields(
        title="Hola", description="Other", content="<p>Other</p>"
    )))
    with pytest.raises(SlugConflictError):
        await post_service.save_post("user-1", second, png_upload)
    assert fake_db.conn.writes == ["insert posts"]


async def test_cover_upload_failure_keeps_post(post_service, file_service, png_upload, monkeypatch):
    async def broken_upload(*args, **kwargs):
        raise StorageError("disk full")
    monkeypatch.setattr(file_service, "upload_buffer", broken_upload)

    post = await post_service.save_post("user-1", draft(), png_upload)
    assert post.cover_image is None


async def test_edit_post_body_only(post_service, png_upload):
    post = await post_service.save_post("user-1", draft(status=PostStatus.DRAFT), png_upload)
    assert post.published_at is None

    edit = draft(
        post_id=post.id,
        texts=BilingualPayload(en=LocalizedFields(title="Renamed", content="<p>Edited</p>")),
    )
    updated = await post_service.save_post("user-1", edit)

    assert updated.texts.en.title == "Hello"
    assert updated.texts.en.content == "<p>Edited</p>"
    assert updated.texts.es.content == "<p>Hola mundo</p>"
    assert updated.published_at is not None


async def test_edit_with_translation(post_service, translator, png_upload):
    post = await post_service.save_post("user-1", draft(), png_upload)
    translator.response = {"title": "X", "content": "<p>Editado</p>", "description": "Editada"}

    edit = draft(
        post_id=post.id,
        texts=BilingualPayload(en=LocalizedFields(content="<p>Edited</p>")),
        translate=True,
    )
    updated = await post_service.save_post("user-1", edit)

    assert updated.texts.es.content == "<p>Editado</p>"
    assert updated.texts.es.title == "Hola"


async def test_edit_by_other_user(post_service, png_upload):
    post = await post_service.save_post("user-1", draft(), png_upload)

    with pytest.raises(PermissionDeniedError):
        await post_service.save_post("user-2", draft(post_id=post.id))


async def test_edit_missing_post(post_service):
    with pytest.raises(NotFoundError):
        await post_service.save_post(
            "user-1", draft(post_id="00000000-0000-0000-0000-000000000000")
        )


async def test_localize(post_service, png_upload):
    post = await post_service.save_post("user-1", draft(), png_upload)
    found = await post_service.get_post_by_slug("hola")

    data = post_service.localize(found, Language.ES)
    assert data["title"] == "Hola"
    assert data["slug"] == "hola"
    assert data["excerpt"] == "Una descripción"
    assert data["id"] == post.id
