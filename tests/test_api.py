import pytest
from aiohttp import FormData

from nomadigma.app import NomadigmaApp
from nomadigma.config import Config
from nomadigma.errors import TranslationServiceError

from conftest import PNG_BYTES


@pytest.fixture
def nomadigma(fake_db, translator, file_service):
    return NomadigmaApp(db=fake_db, translation_service=translator, file_service=file_service)


@pytest.fixture
async def client(aiohttp_client, nomadigma):
    return await aiohttp_client(nomadigma.application)


@pytest.fixture
def auth(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}


def post_form(**overrides) -> FormData:
    fields = {
        "language": "en",
        "title_en": "Hello",
        "description_en": "First post",
        "content_en": "<p>Hello world</p>",
        "slug_en": "hello",
        "status": "PUBLISHED",
        "hashtags": "travel, japan",
        "reading_time": "4",
    }
    fields.update(overrides)
    form = FormData()
    for name, value in fields.items():
        form.add_field(name, value)
    form.add_field("cover_image", PNG_BYTES, filename="cover.png", content_type="image/png")
    return form


PRODUCT = {
    "language": "es",
    "title_es": "Guía de Japón",
    "description_es": "Todo sobre Japón",
    "category": "Guías",
    "price": 20,
    "product_type": "DIGITAL",
    "active": True,
    "variants": [{"language": "es", "label": "Formato", "values": ["PDF"]}],
    "variant_files": [
        {"values": ["PDF"], "type": "url", "url": "/files/guide.pdf"},
        {"values": [], "type": "url", "url": "https://cdn.test/bonus.pdf"},
    ],
}


async def test_create_post_requires_admin(client):
    response = await client.post("/api/posts", data=post_form())
    body = await response.json()

    assert response.status == 403
    assert body == {"success": False, "message": "Unauthorized", "data": None}


async def test_create_and_read_post(client, auth):
    response = await client.post("/api/posts", data=post_form(), headers=auth)
    body = await response.json()

    assert response.status == 201
    assert body["success"] is True
    assert body["data"]["title_es"] == "Hola"
    assert body["data"]["hashtags"] == ["travel", "japan"]

    response = await client.get("/api/posts", params={"slug": "hola", "locale": "es"})
    body = await response.json()
    assert body["data"]["title"] == "Hola"
    assert body["data"]["reading_time"] == 4

    response = await client.get("/api/posts", params={"page": "1", "limit": "5"})
    body = await response.json()
    assert body["data"]["pagination"]["total"] == 1
    assert body["data"]["posts"][0]["slug"] == "hola"


async def test_draft_post_hidden_from_public(client, auth):
    await client.post("/api/posts", data=post_form(status="DRAFT"), headers=auth)

    response = await client.get("/api/posts", params={"slug": "hello"})
    assert response.status == 404

    response = await client.get("/api/posts", params={"slug": "hello", "for_edit": "true"}, headers=auth)
    body = await response.json()
    assert body["data"]["status"] == "DRAFT"
    assert body["data"]["content_en"] == "<p>Hello world</p>"


async def test_post_missing_field(client, auth):
    response = await client.post("/api/posts", data=post_form(content_en=""), headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field content_en is required"


async def test_post_translation_failure(client, auth, translator, fake_db):
    translator.response = TranslationServiceError("quota exceeded")

    response = await client.post("/api/posts", data=post_form(), headers=auth)
    body = await response.json()

    assert response.status == 500
    assert body["message"] == "Translation failed: quota exceeded"
    assert fake_db.tables["posts"] == {}


async def test_slug_conflict_response(client, auth):
    await client.post("/api/posts", data=post_form(), headers=auth)
    response = await client.post("/api/posts", data=post_form(), headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Slug 'hello' already exists"


async def test_product_lifecycle(client, auth, translator):
    translator.response = {"title": "Japan Guide", "description": "All about Japan"}

    response = await client.post("/api/admin/products", json=PRODUCT, headers=auth)
    body = await response.json()
    assert response.status == 201
    product = body["data"]
    assert product["category"] == "guides"
    assert product["slug_es"] == "guia-de-japon"
    assert product["slug_en"] == "japan-guide"

    response = await client.patch("/api/admin/products", json={
        "id": product["id"],
        "is_on_sale": True,
        "discount_percentage": 100,
    }, headers=auth)
    body = await response.json()
    assert body["data"]["final_price"] == 0
    assert body["data"]["price"] == 20

    response = await client.get("/api/products/japan-guide", params={"locale": "es"})
    body = await response.json()
    assert body["data"]["title"] == "Guía de Japón"
    assert body["data"]["price_label"] == "Gratis ~~$20.00~~"
    assert body["data"]["variants"] == [{"label": "Formato", "values": ["PDF"]}]

    response = await client.get("/api/products", params={"category": "guides,unknown"})
    body = await response.json()
    assert body["data"]["pagination"]["total"] == 1


async def test_admin_product_missing(client, auth):
    response = await client.get(
        "/api/admin/products", params={"id": "00000000-0000-0000-0000-000000000000"}, headers=auth
    )
    assert response.status == 404


async def test_invalid_discount_rejected(client, auth):
    response = await client.post("/api/admin/products", json=dict(
        PRODUCT, is_on_sale=True, discount_percentage=120
    ), headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["success"] is False


async def test_checkout_downloads(client, auth, translator):
    translator.response = {"title": "Japan Guide", "description": "All about Japan"}
    response = await client.post("/api/admin/products", json=PRODUCT, headers=auth)
    product_id = (await response.json())["data"]["id"]

    response = await client.post("/api/checkout/downloads?locale=en", json={"items": [{
        "id": product_id,
        "title": "Japan Guide",
        "total": 20,
        "product_type": "DIGITAL",
        "selected_variants": {"Formato": "PDF"},
    }, {
        "id": "shirt",
        "title": "Shirt",
        "total": 15,
    }]}, headers=auth)
    body = await response.json()

    assert len(body["data"]) == 1
    links = body["data"][0]["links"]
    assert links[0] == {"url": f"{Config.SITE_URL}/files/guide.pdf", "label": "PDF"}
    assert links[1] == {"url": "https://cdn.test/bonus.pdf", "label": "Download"}


async def test_translate_endpoint(client, auth):
    response = await client.post("/api/translate", json={
        "text": "Hello", "content": "<p>Hi</p>", "from": "en", "to": "es"
    }, headers=auth)
    body = await response.json()

    assert body["data"]["title"] == "Hola"
    assert body["data"]["content"] == "<p>Hola mundo</p>"


async def test_translate_requires_languages(client, auth):
    response = await client.post("/api/translate", json={"text": "Hello"}, headers=auth)
    assert response.status == 400


async def test_price_preview(client, auth):
    response = await client.post("/api/admin/products/price", json={
        "state": {"price": 20, "is_on_sale": True, "discount_percentage": 0},
        "field": "discount_percentage",
        "value": 50,
    }, headers=auth)
    body = await response.json()

    assert body["data"]["final_price"] == 10
    assert body["data"]["price"] == 20
    assert body["data"]["display"]["original_price"] == 20
    assert body["data"]["anchor"] == "price"


async def test_price_preview_unknown_field(client, auth):
    response = await client.post("/api/admin/products/price", json={
        "state": {"price": 20}, "field": "tax", "value": 1
    }, headers=auth)
    assert response.status == 400


async def test_checkout_requires_admin(client):
    response = await client.post("/api/checkout/downloads", json={"items": []})
    assert response.status == 403


async def test_checkout_rejects_malformed_id(client, auth):
    response = await client.post("/api/checkout/downloads", json={"items": [{
        "id": "not-a-uuid", "title": "Guide", "total": 5, "product_type": "DIGITAL",
    }]}, headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field items.id is invalid"


async def test_post_unknown_language(client, auth, translator):
    response = await client.post("/api/posts", data=post_form(language="fr"), headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field language is invalid"
    assert translator.prompts == []


async def test_translate_unknown_language(client, auth):
    response = await client.post("/api/translate", json={
        "text": "Hello", "from": "en", "to": "xx"
    }, headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field to is invalid"


async def test_product_unknown_type(client, auth):
    response = await client.post(
        "/api/admin/products", json=dict(PRODUCT, product_type="service"), headers=auth
    )
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field product_type is invalid"


@pytest.mark.parametrize("method", ["get", "patch"])
async def test_admin_product_malformed_id(client, auth, method):
    if method == "get":
        response = await client.get("/api/admin/products", params={"id": "42"}, headers=auth)
    else:
        response = await client.patch("/api/admin/products", json={"id": "42"}, headers=auth)
    body = await response.json()

    assert response.status == 400
    assert body["message"] == "Field id is invalid"


async def test_create_product_with_image_upload(client, auth):
    form = FormData()
    for name, value in {
        "language": "es",
        "title_es": "Camiseta",
        "description_es": "Camiseta de algodón",
        "category": "essentials",
        "price": "15",
        "product_type": "PHYSICAL",
        "has_shipping_cost": "false",
        "active": "true",
    }.items():
        form.add_field(name, value)
    form.add_field("images", PNG_BYTES, filename="shirt.html", content_type="text/html")

    response = await client.post("/api/admin/products", data=form, headers=auth)
    body = await response.json()

    assert response.status == 201
    product_id = body["data"]["id"]
    assert body["data"]["images"] == [f"http://files.test/nomadigma/products/{product_id}_0.png"]


async def test_price_preview_sale_off_from_text(client, auth):
    response = await client.post("/api/admin/products/price", json={
        "state": {"price": 20, "final_price": 10, "is_on_sale": True, "discount_percentage": 50},
        "field": "is_on_sale",
        "value": "false",
    }, headers=auth)
    body = await response.json()

    assert body["data"]["is_on_sale"] is False
    assert body["data"]["price"] == 10
    assert body["data"]["final_price"] is None
