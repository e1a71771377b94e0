"""
Product API tests, including category assignments and option listings.
"""

import pytest

from backoffice.extensions import db
from backoffice.models import (
    InventoryLocation,
    InventoryProduct,
    Order,
    OrderItem,
    Product,
    ProductCategory,
    ProductCategoryAssignment,
)

from conftest import data_of


def create_product(client, headers, **fields):
    payload = {"sku": "SKU-1", "name": "Runner", **fields}
    return client.post('/v1/products', json=payload, headers=headers)


@pytest.fixture
def product(client, admin_headers):
    response = create_product(client, admin_headers, price="59.99")
    assert response.status_code == 201, response.get_json()
    return data_of(response)["product"]


@pytest.fixture
def categories(db_session):
    rows = [ProductCategory(name=name) for name in ("Shoes", "Sale", "Running")]
    db_session.add_all(rows)
    db_session.commit()
    return rows


class TestProductCrud:

    def test_create(self, product):
        assert product["sku"] == "SKU-1"
        assert product["price"] == 59.99
        assert product["product_media"] == []

    def test_required_fields(self, client, admin_headers, db_session):
        response = client.post('/v1/products', json={"name": "No SKU"}, headers=admin_headers)

        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == "sku"

    def test_duplicate_sku(self, client, admin_headers, product):
        assert create_product(client, admin_headers, name="Other").status_code == 409

    @pytest.mark.parametrize("fields", [
        {"price": -1},
        {"price": "12.345"},
        {"price": "abc"},
        {"sale_price": True},
    ])
    def test_bad_money(self, client, admin_headers, db_session, fields):
        assert create_product(client, admin_headers, **fields).status_code == 400

    def test_sale_window(self, client, admin_headers, db_session):
        response = create_product(
            client, admin_headers,
            sale_start="2026-05-10T00:00:00Z",
            sale_end="2026-05-01T00:00:00Z",
        )
        assert response.status_code == 400

    def test_sale_window_checked_against_stored_row(self, client, admin_headers, product):
        client.put(
            f'/v1/products/{product["id"]}', json={"sale_start": "2026-05-10T00:00:00Z"}, headers=admin_headers
        )

        response = client.put(
            f'/v1/products/{product["id"]}', json={"sale_end": "2026-05-01T00:00:00Z"}, headers=admin_headers
        )

        assert response.status_code == 400

    def test_product_media_as_array(self, client, admin_headers, db_session):
        media = [{"url": "https://imagedelivery.net/h/product_media-1-1/public", "alt": "front"}]

        response = create_product(client, admin_headers, product_media=media)

        assert response.status_code == 201
        assert data_of(response)["product"]["product_media"] == media

    def test_product_media_as_json_string(self, client, admin_headers, db_session):
        response = create_product(client, admin_headers, product_media='[{"url": "https://x.test/a.png"}]')

        assert response.status_code == 201
        assert data_of(response)["product"]["product_media"] == [{"url": "https://x.test/a.png"}]

    def test_product_media_must_be_objects(self, client, admin_headers, db_session):
        assert create_product(client, admin_headers, product_media='["just-a-string"]').status_code == 400

    def test_listing_order(self, client, admin_headers, db_session):
        create_product(client, admin_headers, sku="A", name="Cheap", price=5)
        create_product(client, admin_headers, sku="B", name="Pricey", price=50)

        data = data_of(client.get('/v1/products?orderBy=price&order=desc', headers=admin_headers))

        assert data["total"] == 2
        assert [p["name"] for p in data["products"]] == ["Pricey", "Cheap"]

    def test_listing_rejects_unknown_column(self, client, admin_headers, db_session):
        assert client.get('/v1/products?orderBy=sku', headers=admin_headers).status_code == 400

    def test_update_and_get(self, client, admin_headers, product):
        response = client.put(
            f'/v1/products/{product["id"]}', json={"description": "Light"}, headers=admin_headers
        )
        assert response.status_code == 200

        fetched = data_of(client.get(f'/v1/products/{product["id"]}', headers=admin_headers))["product"]
        assert fetched["description"] == "Light"
        assert fetched["price"] == 59.99

    def test_missing(self, client, admin_headers, db_session):
        assert client.get('/v1/products/999', headers=admin_headers).status_code == 404
        assert client.put('/v1/products/999', json={"name": "x"}, headers=admin_headers).status_code == 404
        assert client.delete('/v1/products/999', headers=admin_headers).status_code == 404

    def test_delete_cleans_up_links(self, client, admin_headers, product, categories):
        location = InventoryLocation(location_identifier="A-1")
        db.session.add(location)
        db.session.flush()
        db.session.add(ProductCategoryAssignment(product_id=product["id"], category_id=categories[0].id))
        db.session.add(InventoryProduct(product_id=product["id"], location_id=location.id, quantity=3))
        db.session.commit()

        response = client.delete(f'/v1/products/{product["id"]}', headers=admin_headers)

        assert response.status_code == 200
        assert db.session.query(ProductCategoryAssignment).count() == 0
        assert db.session.query(InventoryProduct).count() == 0

    def test_delete_ordered_product_conflicts(self, client, admin_headers, product, customer_user):
        order = Order(customer_id=customer_user.id, order_total=10)
        db.session.add(order)
        db.session.flush()
        db.session.add(OrderItem(order_id=order.id, product_id=product["id"], quantity=1, price=10))
        db.session.commit()

        response = client.delete(f'/v1/products/{product["id"]}', headers=admin_headers)

        assert response.status_code == 409
        assert db.session.get(Product, product["id"]) is not None


class TestProductCategories:

    def test_replace_then_append(self, client, admin_headers, product, categories):
        shoes, sale, running = categories
        url = f'/v1/products/{product["id"]}/categories'

        replaced = client.put(url, json={"category_ids": [shoes.id, sale.id]}, headers=admin_headers)
        assert replaced.status_code == 200
        assert [c["name"] for c in data_of(replaced)["categories"]] == ["Sale", "Shoes"]

        appended = client.post(url, json={"category_ids": [running.id, shoes.id]}, headers=admin_headers)
        assert [c["name"] for c in data_of(appended)["categories"]] == ["Running", "Sale", "Shoes"]

        replaced_again = client.put(url, json={"category_ids": [running.id]}, headers=admin_headers)
        assert [c["name"] for c in data_of(replaced_again)["categories"]] == ["Running"]

    def test_list(self, client, admin_headers, product, categories):
        url = f'/v1/products/{product["id"]}/categories'
        client.put(url, json={"category_ids": [categories[0].id]}, headers=admin_headers)

        response = client.get(url, headers=admin_headers)

        assert [c["id"] for c in data_of(response)["categories"]] == [categories[0].id]

    def test_clear_with_empty_list(self, client, admin_headers, product, categories):
        url = f'/v1/products/{product["id"]}/categories'
        client.put(url, json={"category_ids": [categories[0].id]}, headers=admin_headers)

        response = client.put(url, json={"category_ids": []}, headers=admin_headers)

        assert data_of(response)["categories"] == []

    def test_unknown_category(self, client, admin_headers, product):
        response = client.put(
            f'/v1/products/{product["id"]}/categories', json={"category_ids": [999]}, headers=admin_headers
        )
        assert response.status_code == 400

    @pytest.mark.parametrize("body", [{}, {"category_ids": "1"}, {"category_ids": [0]}, {"category_ids": [True]}])
    def test_bad_body(self, client, admin_headers, product, body):
        response = client.put(f'/v1/products/{product["id"]}/categories', json=body, headers=admin_headers)
        assert response.status_code == 400

    def test_unknown_product(self, client, admin_headers, categories):
        response = client.put(
            '/v1/products/999/categories', json={"category_ids": [categories[0].id]}, headers=admin_headers
        )
        assert response.status_code == 404

    def test_remove(self, client, admin_headers, product, categories):
        url = f'/v1/products/{product["id"]}/categories'
        client.put(url, json={"category_ids": [categories[0].id]}, headers=admin_headers)

        removed = client.delete(f'{url}/{categories[0].id}', headers=admin_headers)
        again = client.delete(f'{url}/{categories[0].id}', headers=admin_headers)

        assert removed.status_code == 200
        assert again.status_code == 404


class TestProductOptions:

    def test_lists_resolved_combinations(self, client, admin_headers, product):
        option = data_of(client.post(
            '/v1/product_options', json={"option_name": "Size"}, headers=admin_headers
        ))["option"]
        variant = data_of(client.post(
            f'/v1/product_options/{option["id"]}/variants', json={"option_value": "XL"}, headers=admin_headers
        ))["variant"]
        client.post('/v1/product_option_skus', json={
            "product_id": product["id"],
            "option_id": option["id"],
            "variant_id": variant["id"],
            "sku": "SKU-1-XL",
        }, headers=admin_headers)

        response = client.get(f'/v1/products/{product["id"]}/options', headers=admin_headers)

        assert response.status_code == 200
        (row,) = data_of(response)["options"]
        assert row["option_name"] == "Size"
        assert row["option_value"] == "XL"
        assert row["sku"] == "SKU-1-XL"

    def test_unknown_product(self, client, admin_headers, db_session):
        assert client.get('/v1/products/999/options', headers=admin_headers).status_code == 404
