import uuid

import pytest

from modishcarts.db import session_scope
from modishcarts.models import Product, Review


def new_product(category_id, **overrides):
    payload = {
        "name": "Mechanical Keyboard",
        "description": "Tenkeyless keyboard with hot-swappable switches.",
        "sku": "MK-100",
        "price": 119.5,
        "categoryId": category_id,
        "inventoryQty": 12,
        "tags": ["keyboard", "mechanical"],
        "images": [{"url": "https://cdn.modishcarts.com/mk-100.jpg", "altText": "Keyboard"}],
    }
    payload.update(overrides)
    return payload


def deactivate(product_id):
    with session_scope() as session:
        session.get(Product, product_id).is_active = False


class TestListProducts:
    def test_lists_active_products_with_pagination(self, client):
        response = client.get("/api/products")

        assert response.status_code == 200
        body = response.get_json()
        assert len(body["data"]) == 5
        assert body["pagination"] == {"page": 1, "limit": 20, "totalPages": 1, "totalItems": 5}
        product = body["data"][0]
        for key in ("id", "name", "slug", "sku", "price", "images", "category", "createdAt"):
            assert key in product
        assert isinstance(product["price"], float)

    def test_pagination(self, client):
        body = client.get("/api/products?page=2&limit=2").get_json()

        assert len(body["data"]) == 2
        assert body["pagination"]["page"] == 2
        assert body["pagination"]["totalPages"] == 3

    def test_filter_by_category(self, client, seeded):
        electronics = seeded["categories"]["electronics"]

        body = client.get(f"/api/products?categoryId={electronics}").get_json()

        assert {p["sku"] for p in body["data"]} == {"WBH-001", "SHSC-001"}

    def test_search_is_case_insensitive(self, client):
        body = client.get("/api/products?search=HEADPHONES").get_json()

        assert [p["sku"] for p in body["data"]] == ["WBH-001"]

    @pytest.mark.parametrize("term, skus", [("%", ["CCT-001"]), ("100%", ["CCT-001"]), ("_", [])])
    def test_search_wildcards_match_literally(self, client, term, skus):
        response = client.get("/api/products", query_string={"search": term})

        assert response.status_code == 200
        assert [p["sku"] for p in response.get_json()["data"]] == skus

    def test_price_range_and_sort(self, client):
        body = client.get("/api/products?minPrice=30&maxPrice=100&sort=price_asc").get_json()

        assert [p["sku"] for p in body["data"]] == ["CPPS-001", "TAP-001", "SHSC-001"]

    def test_featured_filter(self, client):
        body = client.get("/api/products?featured=true").get_json()

        assert {p["sku"] for p in body["data"]} == {"WBH-001", "CCT-001"}

    @pytest.mark.parametrize("query", ["page=0", "limit=101", "limit=abc", "sort=random", "minPrice=-1"])
    def test_invalid_parameters(self, client, query):
        response = client.get(f"/api/products?{query}")

        assert response.status_code == 400
        assert "error" in response.get_json()

    def test_min_price_above_max_price(self, client):
        assert client.get("/api/products?minPrice=100&maxPrice=10").status_code == 400

    def test_inactive_products_are_hidden(self, client, seeded):
        deactivate(seeded["products"]["TAP-001"])

        body = client.get("/api/products").get_json()

        assert "TAP-001" not in {p["sku"] for p in body["data"]}
        assert body["pagination"]["totalItems"] == 4


class TestGetProduct:
    def test_detail_includes_relations(self, client, seeded):
        product_id = seeded["products"]["WBH-001"]

        response = client.get(f"/api/products/{product_id}")

        assert response.status_code == 200
        body = response.get_json()
        assert body["id"] == product_id
        assert body["category"]["slug"] == "electronics"
        assert [img["sortOrder"] for img in body["images"]] == [0, 1]
        assert body["variants"] == []
        assert body["reviews"] == []

    def test_only_approved_reviews_are_shown(self, client, seeded):
        product_id = seeded["products"]["WBH-001"]
        with session_scope() as session:
            session.add_all([
                Review(product_id=product_id, user_id=seeded["customer"], rating=5,
                       title="Great", comment="Love them", is_approved=True),
                Review(product_id=product_id, user_id=seeded["admin"], rating=1,
                       title="Hidden", comment="Pending moderation", is_approved=False),
            ])

        reviews = client.get(f"/api/products/{product_id}").get_json()["reviews"]

        assert len(reviews) == 1
        assert reviews[0]["title"] == "Great"
        assert reviews[0]["isApproved"] is True
        assert reviews[0]["user"] == {"firstName": "Test", "lastName": "User"}

    def test_invalid_id_format(self, client):
        response = client.get("/api/products/invalid-id-format")

        assert response.status_code == 400

    def test_unknown_product(self, client):
        response = client.get(f"/api/products/{uuid.uuid4()}")

        assert response.status_code == 404
        assert "not found" in response.get_json()["error"]

    def test_inactive_product_hidden_from_customers(self, client, seeded, customer_headers):
        product_id = seeded["products"]["TAP-001"]
        deactivate(product_id)

        assert client.get(f"/api/products/{product_id}").status_code == 404
        assert client.get(f"/api/products/{product_id}", headers=customer_headers).status_code == 404

    def test_admin_sees_inactive_product(self, client, seeded, admin_headers):
        product_id = seeded["products"]["TAP-001"]
        deactivate(product_id)

        response = client.get(f"/api/products/{product_id}", headers=admin_headers)

        assert response.status_code == 200
        assert response.get_json()["isActive"] is False


class TestCreateProduct:
    def test_admin_creates_product(self, client, seeded, admin_headers):
        payload = new_product(seeded["categories"]["electronics"])

        response = client.post("/api/products", json=payload, headers=admin_headers)

        assert response.status_code == 201
        body = response.get_json()
        assert body["sku"] == "MK-100"
        assert body["slug"] == "mechanical-keyboard"
        assert body["price"] == 119.5
        assert body["isActive"] is True
        assert body["images"][0]["url"] == "https://cdn.modishcarts.com/mk-100.jpg"

    def test_requires_authentication(self, client, seeded):
        response = client.post("/api/products", json=new_product(seeded["categories"]["books"]))

        assert response.status_code == 401

    def test_requires_admin(self, client, seeded, customer_headers):
        response = client.post(
            "/api/products", json=new_product(seeded["categories"]["books"]), headers=customer_headers
        )

        assert response.status_code == 403

    def test_missing_name(self, client, seeded, admin_headers):
        payload = new_product(seeded["categories"]["books"])
        del payload["name"]

        response = client.post("/api/products", json=payload, headers=admin_headers)

        assert response.status_code == 400
        assert "name" in response.get_json()["error"]

    def test_negative_price(self, client, seeded, admin_headers):
        payload = new_product(seeded["categories"]["books"], price=-1)

        assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 400

    def test_unknown_category(self, client, admin_headers):
        response = client.post("/api/products", json=new_product(str(uuid.uuid4())), headers=admin_headers)

        assert response.status_code == 400
        assert "categoryId" in response.get_json()["error"]

    def test_duplicate_sku(self, client, seeded, admin_headers):
        payload = new_product(seeded["categories"]["electronics"], sku="wbh-001")

        response = client.post("/api/products", json=payload, headers=admin_headers)

        assert response.status_code == 409
        assert "SKU" in response.get_json()["error"]

    def test_duplicate_slug(self, client, seeded, admin_headers):
        payload = new_product(seeded["categories"]["electronics"], slug="classic-cotton-t-shirt")

        assert client.post("/api/products", json=payload, headers=admin_headers).status_code == 409


class TestUpdateAndDeleteProduct:
    def test_partial_update(self, client, seeded, admin_headers):
        product_id = seeded["products"]["CCT-001"]

        response = client.put(
            f"/api/products/{product_id}", json={"price": 19.99, "inventoryQty": 5}, headers=admin_headers
        )

        assert response.status_code == 200
        body = response.get_json()
        assert body["price"] == 19.99
        assert body["inventoryQty"] == 5
        assert body["name"] == "Classic Cotton T-Shirt"

    def test_update_requires_admin(self, client, seeded, customer_headers):
        product_id = seeded["products"]["CCT-001"]

        response = client.put(f"/api/products/{product_id}", json={"price": 1}, headers=customer_headers)

        assert response.status_code == 403

    def test_soft_delete(self, client, seeded, admin_headers):
        product_id = seeded["products"]["CPPS-001"]

        response = client.delete(f"/api/products/{product_id}", headers=admin_headers)

        assert response.status_code == 200
        assert client.get(f"/api/products/{product_id}").status_code == 404
        with session_scope() as session:
            assert session.get(Product, product_id).is_active is False


class TestReviews:
    def test_submit_review(self, client, seeded, customer_headers):
        product_id = seeded["products"]["TAP-001"]

        response = client.post(
            f"/api/products/{product_id}/reviews",
            json={"rating": 4, "title": "Solid read", "comment": "Clear and practical."},
            headers=customer_headers,
        )

        assert response.status_code == 201
        review = response.get_json()["data"]
        assert review["rating"] == 4
        assert review["isApproved"] is False
        # Pending reviews are not public yet
        assert client.get(f"/api/products/{product_id}").get_json()["reviews"] == []

    def test_review_requires_authentication(self, client, seeded):
        product_id = seeded["products"]["TAP-001"]

        response = client.post(
            f"/api/products/{product_id}/reviews", json={"rating": 4, "title": "t", "comment": "c"}
        )

        assert response.status_code == 401

    @pytest.mark.parametrize("rating", [0, 6, "5"])
    def test_rating_out_of_range(self, client, seeded, customer_headers, rating):
        product_id = seeded["products"]["TAP-001"]

        response = client.post(
            f"/api/products/{product_id}/reviews",
            json={"rating": rating, "title": "t", "comment": "c"},
            headers=customer_headers,
        )

        assert response.status_code == 400
