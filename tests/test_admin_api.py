"""Tests for the admin product and brand endpoints."""

from datetime import UTC, datetime, timedelta

import jwt
import pytest

from src.config import settings

SECRET = "test-admin-secret"


@pytest.fixture()
def auth_required(monkeypatch):
    monkeypatch.setattr(settings, "AUTH_REQUIRED", True)
    monkeypatch.setattr(settings, "ADMIN_JWT_SECRET", SECRET)
    monkeypatch.setattr(settings, "JWT_AUDIENCE", None)
    monkeypatch.setattr(settings, "JWT_ISSUER", None)


def _token(role="admin", expires_in=timedelta(minutes=5)):
    claims = {"sub": "ops@example.com", "role": role, "exp": datetime.now(UTC) + expires_in}
    return jwt.encode(claims, SECRET, algorithm="HS256")


@pytest.mark.asyncio
async def test_create_product_stores_canonical_names(client, product_payload):
    response = await client.post(
        "/admin/products",
        json=product_payload(category="bikes", subCategory="mountain BIKES"),
    )

    assert response.status_code == 201
    body = response.json()
    assert body["message"] == "Product created successfully"
    assert body["product"]["category"] == "Bikes"
    assert body["product"]["subCategory"] == "Mountain Bikes"
    assert body["product"]["createdAt"] == body["product"]["updatedAt"]


@pytest.mark.asyncio
async def test_create_product_with_unknown_subcategory_is_rejected(client, product_payload):
    response = await client.post(
        "/admin/products", json=product_payload(subCategory="Fat Bikes")
    )

    assert response.status_code == 400
    assert response.json()["errors"][0]["field"] == "subCategory"


@pytest.mark.asyncio
async def test_create_product_validates_shape(client, product_payload):
    payload = product_payload(rating=7)
    del payload["actualPrice"]

    response = await client.post("/admin/products", json=payload)

    assert response.status_code == 400
    fields = {error["field"] for error in response.json()["errors"]}
    assert {"rating", "actualPrice"} <= fields


@pytest.mark.asyncio
async def test_update_product_preserves_creation_time(client, product_payload):
    created = (await client.post("/admin/products", json=product_payload())).json()
    product_id = created["id"]

    response = await client.put(
        f"/admin/products/{product_id}",
        json=product_payload(name="Mountain Explorer Pro", price=1099.0),
    )

    assert response.status_code == 200
    product = response.json()["product"]
    assert product["id"] == product_id
    assert product["name"] == "Mountain Explorer Pro"
    assert product["createdAt"] == created["product"]["createdAt"]
    fetched = (await client.get(f"/products/{product_id}")).json()
    assert fetched["price"] == 1099.0


@pytest.mark.asyncio
async def test_update_missing_product_is_404(client, product_payload):
    response = await client.put("/admin/products/missing", json=product_payload())

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_twice_is_success_then_not_found(client, product_payload, image_storage):
    product_id = (await client.post("/admin/products", json=product_payload())).json()["id"]

    first = await client.delete(f"/admin/products/{product_id}")
    second = await client.delete(f"/admin/products/{product_id}")

    assert first.status_code == 200
    assert first.json() == {"message": "Product deleted successfully"}
    assert second.status_code == 404
    assert image_storage.deleted_products == [product_id]


@pytest.mark.asyncio
async def test_image_cleanup_failure_does_not_block_delete(
    client, product_payload, image_storage
):
    product_id = (await client.post("/admin/products", json=product_payload())).json()["id"]
    image_storage.fail = True

    response = await client.delete(f"/admin/products/{product_id}")

    assert response.status_code == 200
    assert (await client.get(f"/products/{product_id}")).status_code == 404


@pytest.mark.asyncio
async def test_admin_listing_is_newest_first_with_name_search(client, product_payload):
    for name in ["Trek Marlin", "Giant Talon", "Trek Roscoe"]:
        await client.post("/admin/products", json=product_payload(name=name))

    everything = (await client.get("/admin/products")).json()
    treks = (await client.get("/admin/products", params={"search": "TREK"})).json()

    assert [p["name"] for p in everything["products"]] == [
        "Trek Roscoe",
        "Giant Talon",
        "Trek Marlin",
    ]
    assert {p["name"] for p in treks["products"]} == {"Trek Marlin", "Trek Roscoe"}


@pytest.mark.asyncio
async def test_admin_page_size_above_fifty_is_rejected(client):
    response = await client.get("/admin/products", params={"pageSize": 51})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_list_brands(client):
    response = await client.get("/admin/brands")

    assert response.status_code == 200
    data = response.json()
    assert {"name": "Trek", "category": "Bikes", "subcategory": "Mountain Bikes"} in data[
        "brands"
    ]
    names = [brand["name"] for brand in data["uniqueBrands"]]
    assert len(names) == len(set(names))
    assert "Bikes" in data["categoriesStructure"]


@pytest.mark.asyncio
async def test_add_and_remove_brand(client, image_storage):
    added = await client.post(
        "/admin/brands",
        json={"name": "Orbea", "category": "bikes", "subcategory": "road bikes"},
    )
    duplicate = await client.post(
        "/admin/brands",
        json={"name": "Orbea", "category": "Bikes", "subcategory": "Road Bikes"},
    )
    categories = (await client.get("/categories")).json()["categories"]

    assert added.status_code == 201
    assert duplicate.status_code == 400
    assert categories["Bikes"]["subcategories"]["Road Bikes"]["brands"] == [
        "Bianchi",
        "Cannondale",
        "Cervelo",
        "Orbea",
    ]

    removed = await client.delete(
        "/admin/brands",
        params={"name": "Orbea", "category": "Bikes", "subcategory": "Road Bikes"},
    )
    missing = await client.delete(
        "/admin/brands",
        params={"name": "Orbea", "category": "Bikes", "subcategory": "Road Bikes"},
    )

    assert removed.status_code == 200
    assert missing.status_code == 404
    assert image_storage.deleted_objects == ["brandLogos/orbea.png"]


@pytest.mark.asyncio
async def test_brand_logo_failure_does_not_block_removal(client, image_storage):
    image_storage.fail = True

    response = await client.delete(
        "/admin/brands",
        params={"name": "Trek", "category": "Bikes", "subcategory": "Mountain Bikes"},
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_remove_brand_requires_all_parameters(client):
    response = await client.delete("/admin/brands", params={"name": "Trek"})

    assert response.status_code == 400


@pytest.mark.asyncio
async def test_admin_routes_require_a_token(client, auth_required):
    response = await client.get("/admin/products")

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_reject_invalid_tokens(client, auth_required):
    expired = await client.get(
        "/admin/products",
        headers={"Authorization": f"Bearer {_token(expires_in=timedelta(minutes=-5))}"},
    )
    garbage = await client.get(
        "/admin/products", headers={"Authorization": "Bearer not-a-jwt"}
    )

    assert expired.status_code == 401
    assert garbage.status_code == 401


@pytest.mark.asyncio
async def test_admin_routes_require_admin_role(client, auth_required):
    response = await client.get(
        "/admin/brands", headers={"Authorization": f"Bearer {_token(role='customer')}"}
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_admin_routes_accept_admin_token(client, auth_required):
    response = await client.get(
        "/admin/products", headers={"Authorization": f"Bearer {_token()}"}
    )

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_storefront_stays_public_when_auth_required(client, auth_required):
    response = await client.get("/products")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_remove_brand_ignores_surrounding_whitespace(client, image_storage):
    response = await client.delete(
        "/admin/brands",
        params={"name": "  Trek ", "category": "Bikes", "subcategory": "Mountain Bikes"},
    )
    brands = (await client.get("/categories")).json()["categories"]["Bikes"][
        "subcategories"
    ]["Mountain Bikes"]["brands"]

    assert response.status_code == 200
    assert "Trek" not in brands
    assert image_storage.deleted_objects == ["brandLogos/trek.png"]
