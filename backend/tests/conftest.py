"""
Pytest fixtures for back-office backend tests.

Provides the application on in-memory SQLite, a per-test table wipe, the
test client, a seeded admin account with auth headers, and a mocked
Cloudflare Images endpoint.
"""

from datetime import timedelta

import httpx
import pytest
from flask_jwt_extended import create_access_token

from backoffice import create_app
from backoffice.extensions import db
from backoffice.models import AdminRole, AdminUser, Customer
from backoffice.services.auth_service import hash_password
from backoffice.services.media_service import CloudflareImagesClient
from backoffice.services.token_service import create_admin_token, create_customer_token

ADMIN_EMAIL = "admin@backoffice.test"
ADMIN_PASSWORD = "Password123!"

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
    'SQLALCHEMY_TRACK_MODIFICATIONS': False,
    'JWT_SECRET_KEY': 'test-jwt-secret-key-with-enough-length-for-hs256',
    'BCRYPT_ROUNDS': 4,
    'CLOUDFLARE_ACCOUNT_ID': 'test-account',
    'CLOUDFLARE_API_TOKEN': 'test-token',
    'LOG_LEVEL': 'WARNING',
}


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TEST_CONFIG)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app, db_session):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Clear all data but keep schema."""
    meta = db.metadata
    for table in reversed(meta.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def admin_role(db_session):
    role = AdminRole(role_name="super_admin")
    db_session.add(role)
    db_session.commit()
    return role


@pytest.fixture(scope='function')
def admin_user(db_session, admin_role):
    user = AdminUser(
        email=ADMIN_EMAIL,
        password_hash=hash_password(ADMIN_PASSWORD),
        first_name="Ada",
        last_name="Admin",
        role_id=admin_role.id,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(create_admin_token(admin_user))


@pytest.fixture(scope='function')
def customer_user(db_session):
    customer = Customer(
        email="shopper@backoffice.test",
        password_hash=hash_password("Shopper123!"),
        first_name="Sam",
        last_name="Shopper",
    )
    db_session.add(customer)
    db_session.commit()
    return customer


@pytest.fixture(scope='function')
def customer_headers(customer_user):
    return auth_headers(create_customer_token(customer_user))


@pytest.fixture(scope='function')
def expired_admin_headers(admin_user):
    token = create_access_token(
        identity=str(admin_user.id),
        additional_claims={"principal_type": "admin", "email": admin_user.email},
        expires_delta=timedelta(seconds=-30),
    )
    return auth_headers(token)


class CloudflareRecorder:
    """Fake Cloudflare Images API; records every request it receives."""

    def __init__(self):
        self.requests = []
        self.fail_uploads = False
        self.fail_deletes = False
        self.missing_ids = set()

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.method == "POST":
            if self.fail_uploads:
                return httpx.Response(500, json={"success": False, "errors": [{"message": "boom"}]})
            image_id = _multipart_field(request, "id")
            return httpx.Response(200, json={
                "success": True,
                "result": {
                    "id": image_id,
                    "variants": [
                        f"https://imagedelivery.net/test-hash/{image_id}/thumbnail",
                        f"https://imagedelivery.net/test-hash/{image_id}/public",
                    ],
                },
            })
        if request.method == "DELETE":
            image_id = request.url.path.rsplit("/", 1)[-1]
            if image_id in self.missing_ids:
                return httpx.Response(404, json={"success": False, "errors": [{"code": 5404}]})
            if self.fail_deletes:
                return httpx.Response(500, json={"success": False, "errors": [{"message": "boom"}]})
            return httpx.Response(200, json={"success": True, "result": {}})
        return httpx.Response(405, json={"success": False})

    def of_method(self, method: str) -> list:
        return [r for r in self.requests if r.method == method]


def _multipart_field(request: httpx.Request, name: str) -> str:
    """Pull a simple form field out of a multipart body."""
    body = request.read().decode("latin-1")
    marker = f'name="{name}"\r\n\r\n'
    start = body.index(marker) + len(marker)
    return body[start:body.index("\r\n", start)]


@pytest.fixture(scope='function')
def cloudflare(app):
    """Install a Cloudflare client backed by CloudflareRecorder."""
    recorder = CloudflareRecorder()
    media_client = CloudflareImagesClient(
        "test-account", "test-token", transport=httpx.MockTransport(recorder)
    )
    app.extensions["media_client"] = media_client
    yield recorder
    app.extensions.pop("media_client", None)
    media_client.close()


def auth_headers(token: str) -> dict:
    """Helper to create Authorization headers."""
    return {'Authorization': f'Bearer {token}'}


def get_auth_token(client, email: str, password: str, path: str = '/v1/adminAuth/login') -> str:
    """Helper to get auth token for an account."""
    response = client.post(path, json={'email': email, 'password': password})
    if response.status_code == 200:
        return response.json['data']['token']
    return None


def data_of(response) -> dict:
    body = response.get_json()
    assert body is not None, response.data
    return body.get("data")
