"""
Authentication tests: admin and customer login, token verification, /me.
"""

from backoffice.services.auth_service import hash_password, verify_password

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD, auth_headers, data_of, get_auth_token


class TestAdminLogin:

    def test_login_returns_token(self, client, admin_user):
        response = client.post('/v1/adminAuth/login', json={'email': ADMIN_EMAIL, 'password': ADMIN_PASSWORD})

        assert response.status_code == 200
        assert response.get_json()["status"] == "success"
        assert isinstance(data_of(response)["token"], str)

    def test_wrong_password(self, client, admin_user):
        response = client.post('/v1/adminAuth/login', json={'email': ADMIN_EMAIL, 'password': 'nope-nope'})

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid credentials."

    def test_unknown_email_same_message(self, client, admin_user):
        response = client.post('/v1/adminAuth/login', json={'email': 'ghost@x.test', 'password': ADMIN_PASSWORD})

        assert response.status_code == 401
        assert response.get_json()["message"] == "Invalid credentials."

    def test_missing_fields(self, client, db_session):
        response = client.post('/v1/adminAuth/login', json={'email': ADMIN_EMAIL})

        assert response.status_code == 400
        assert response.get_json()["message"] == "Email and password are required."

    def test_customer_cannot_use_admin_login(self, client, customer_user):
        response = client.post(
            '/v1/adminAuth/login', json={'email': customer_user.email, 'password': 'Shopper123!'}
        )
        assert response.status_code == 401


class TestTokenVerification:

    def test_me_returns_principal(self, client, admin_user):
        token = get_auth_token(client, ADMIN_EMAIL, ADMIN_PASSWORD)

        response = client.get('/v1/adminAuth/me', headers=auth_headers(token))

        assert response.status_code == 200
        admin = data_of(response)["admin"]
        assert admin["id"] == admin_user.id
        assert admin["email"] == ADMIN_EMAIL
        assert admin["principal_type"] == "admin"
        assert admin["role_name"] == "super_admin"
        assert admin["first_name"] == "Ada"

    def test_missing_token(self, client, db_session):
        response = client.get('/v1/adminAuth/me')
        assert response.status_code == 401

    def test_malformed_token(self, client, db_session):
        response = client.get('/v1/adminAuth/me', headers=auth_headers("not-a-jwt"))
        assert response.status_code == 401

    def test_bad_signature(self, client, admin_user):
        token = get_auth_token(client, ADMIN_EMAIL, ADMIN_PASSWORD)
        header, payload, signature = token.split(".")
        tampered = ".".join([header, payload, signature[::-1]])

        response = client.get('/v1/adminAuth/me', headers=auth_headers(tampered))

        assert response.status_code == 401

    def test_expired_token(self, client, expired_admin_headers):
        response = client.get('/v1/adminAuth/me', headers=expired_admin_headers)

        assert response.status_code == 401
        assert response.get_json()["message"] == "Token expired"

    def test_logout_keeps_no_state(self, client, admin_headers):
        response = client.post('/v1/adminAuth/logout', headers=admin_headers)
        assert response.status_code == 200

        # Stateless tokens stay valid until they expire
        assert client.get('/v1/adminAuth/me', headers=admin_headers).status_code == 200


class TestCustomerAuth:

    def test_customer_login_and_me(self, client, customer_user):
        token = get_auth_token(client, customer_user.email, 'Shopper123!', path='/v1/customerAuth/login')
        assert token is not None

        response = client.get('/v1/customerAuth/me', headers=auth_headers(token))

        assert response.status_code == 200
        customer = data_of(response)["customer"]
        assert customer["principal_type"] == "customer"
        assert customer["email"] == customer_user.email

    def test_customer_wrong_password(self, client, customer_user):
        response = client.post(
            '/v1/customerAuth/login', json={'email': customer_user.email, 'password': 'wrong-one'}
        )
        assert response.status_code == 401

    def test_admin_token_on_customer_me(self, client, admin_headers):
        response = client.get('/v1/customerAuth/me', headers=admin_headers)
        assert response.status_code == 403

    def test_customer_token_on_admin_me(self, client, customer_headers):
        response = client.get('/v1/adminAuth/me', headers=customer_headers)
        assert response.status_code == 403


class TestPasswordHashing:

    def test_hash_roundtrip(self, app):
        hashed = hash_password("secret-pass")
        assert hashed != "secret-pass"
        assert verify_password("secret-pass", hashed)
        assert not verify_password("other-pass", hashed)

    def test_malformed_hash_is_false(self, app):
        assert not verify_password("secret-pass", "not-a-bcrypt-hash")
        assert not verify_password("", None)
