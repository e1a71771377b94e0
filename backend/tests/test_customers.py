"""
Customer management API tests (admin view of shopper accounts).
"""

from backoffice.extensions import db
from backoffice.models import Customer, Order

from conftest import data_of


def new_customer(client, headers, email="buyer@shop.test", password="Buyer123!", **extra):
    return client.post('/v1/customers', json={"email": email, "password": password, **extra}, headers=headers)


class TestCustomerCrud:

    def test_create(self, client, admin_headers):
        response = new_customer(client, admin_headers, first_name="Bea")

        assert response.status_code == 201
        customer = data_of(response)["customer"]
        assert customer["email"] == "buyer@shop.test"
        assert customer["first_name"] == "Bea"
        assert "password_hash" not in customer

    def test_create_requires_password(self, client, admin_headers):
        response = client.post('/v1/customers', json={"email": "x@shop.test"}, headers=admin_headers)
        assert response.status_code == 400

    def test_duplicate_email(self, client, admin_headers):
        new_customer(client, admin_headers)
        assert new_customer(client, admin_headers).status_code == 409

    def test_paged_listing(self, client, admin_headers):
        for i in range(3):
            new_customer(client, admin_headers, email=f"c{i}@shop.test")

        response = client.get('/v1/customers?limit=2&orderBy=email&order=desc', headers=admin_headers)

        data = data_of(response)
        assert data["total"] == 3
        assert [c["email"] for c in data["customers"]] == ["c2@shop.test", "c1@shop.test"]

    def test_update_and_get(self, client, admin_headers):
        created = data_of(new_customer(client, admin_headers))["customer"]

        response = client.put(
            f'/v1/customers/{created["id"]}', json={"phone_number": "555-0100"}, headers=admin_headers
        )
        assert response.status_code == 200

        fetched = data_of(client.get(f'/v1/customers/{created["id"]}', headers=admin_headers))["customer"]
        assert fetched["phone_number"] == "555-0100"
        assert fetched["email"] == "buyer@shop.test"

    def test_missing_customer(self, client, admin_headers):
        assert client.get('/v1/customers/999', headers=admin_headers).status_code == 404
        assert client.put('/v1/customers/999', json={"first_name": "X"}, headers=admin_headers).status_code == 404
        assert client.delete('/v1/customers/999', headers=admin_headers).status_code == 404

    def test_delete(self, client, admin_headers):
        created = data_of(new_customer(client, admin_headers))["customer"]

        response = client.delete(f'/v1/customers/{created["id"]}', headers=admin_headers)

        assert response.status_code == 200
        assert db.session.get(Customer, created["id"]) is None

    def test_delete_with_orders_conflicts(self, client, admin_headers, customer_user):
        db.session.add(Order(customer_id=customer_user.id, order_total=10))
        db.session.commit()

        response = client.delete(f'/v1/customers/{customer_user.id}', headers=admin_headers)

        assert response.status_code == 409


class TestCustomerPassword:

    def test_validate_password(self, client, admin_headers, customer_user):
        good = client.post(
            f'/v1/customers/{customer_user.id}/validatePassword',
            json={"password": "Shopper123!"},
            headers=admin_headers,
        )
        bad = client.post(
            f'/v1/customers/{customer_user.id}/validatePassword',
            json={"password": "nope"},
            headers=admin_headers,
        )

        assert data_of(good) == {"result": True}
        assert data_of(bad) == {"result": False}
        assert bad.get_json()["message"] == "Invalid credentials."

    def test_password_change_allows_login(self, client, admin_headers, customer_user):
        client.put(
            f'/v1/customers/{customer_user.id}', json={"password": "NewPass99"}, headers=admin_headers
        )

        response = client.post(
            '/v1/customerAuth/login', json={"email": customer_user.email, "password": "NewPass99"}
        )

        assert response.status_code == 200
