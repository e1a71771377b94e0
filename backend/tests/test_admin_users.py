"""
Admin user management API tests.
"""

from backoffice.extensions import db
from backoffice.models import AdminRole, AdminUser, AuditLog

from conftest import ADMIN_PASSWORD, data_of


def new_admin(client, headers, role_id, email="ops@backoffice.test", password="Operator1!", **extra):
    payload = {"email": email, "password": password, "role_id": role_id, **extra}
    return client.post('/v1/adminUsers', json=payload, headers=headers)


class TestAdminUserCrud:

    def test_create_hides_password(self, client, admin_headers, admin_role):
        response = new_admin(client, admin_headers, admin_role.id, first_name="Olly")

        assert response.status_code == 201
        created = data_of(response)["admin_user"]
        assert created["email"] == "ops@backoffice.test"
        assert created["role_name"] == "super_admin"
        assert "password" not in created
        assert "password_hash" not in created

        stored = db.session.get(AdminUser, created["id"])
        assert stored.password_hash.startswith("$2")

    def test_password_required(self, client, admin_headers, admin_role):
        response = client.post(
            '/v1/adminUsers', json={"email": "a@b.test", "role_id": admin_role.id}, headers=admin_headers
        )
        assert response.status_code == 400

    def test_short_password_rejected(self, client, admin_headers, admin_role):
        response = new_admin(client, admin_headers, admin_role.id, password="abc")
        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == "password"

    def test_unknown_role_rejected(self, client, admin_headers):
        response = new_admin(client, admin_headers, 999)
        assert response.status_code == 400

    def test_invalid_email_rejected(self, client, admin_headers, admin_role):
        response = new_admin(client, admin_headers, admin_role.id, email="not-an-email")
        assert response.status_code == 400

    def test_duplicate_email_conflicts(self, client, admin_headers, admin_role, admin_user):
        response = new_admin(client, admin_headers, admin_role.id, email=admin_user.email)
        assert response.status_code == 409

    def test_list_and_get(self, client, admin_headers, admin_role):
        new_admin(client, admin_headers, admin_role.id)

        listing = data_of(client.get('/v1/adminUsers?orderBy=email', headers=admin_headers))
        assert listing["total"] == 2
        assert [u["email"] for u in listing["admin_users"]] == ["admin@backoffice.test", "ops@backoffice.test"]

        one = client.get(f'/v1/adminUsers/{listing["admin_users"][1]["id"]}', headers=admin_headers)
        assert one.status_code == 200
        assert data_of(one)["admin_user"]["email"] == "ops@backoffice.test"

    def test_get_missing(self, client, admin_headers):
        assert client.get('/v1/adminUsers/999', headers=admin_headers).status_code == 404

    def test_update_rehashes_password(self, client, admin_headers, admin_role):
        created = data_of(new_admin(client, admin_headers, admin_role.id))["admin_user"]

        response = client.put(
            f'/v1/adminUsers/{created["id"]}',
            json={"last_name": "Ops", "password": "Changed99!"},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert data_of(response)["admin_user"]["last_name"] == "Ops"
        login = client.post('/v1/adminAuth/login', json={"email": created["email"], "password": "Changed99!"})
        assert login.status_code == 200

    def test_update_to_taken_email_conflicts(self, client, admin_headers, admin_role, admin_user):
        created = data_of(new_admin(client, admin_headers, admin_role.id))["admin_user"]
        response = client.put(
            f'/v1/adminUsers/{created["id"]}', json={"email": admin_user.email}, headers=admin_headers
        )
        assert response.status_code == 409

    def test_delete(self, client, admin_headers, admin_role):
        created = data_of(new_admin(client, admin_headers, admin_role.id))["admin_user"]

        response = client.delete(f'/v1/adminUsers/{created["id"]}', headers=admin_headers)

        assert response.status_code == 200
        assert db.session.get(AdminUser, created["id"]) is None
        assert client.delete(f'/v1/adminUsers/{created["id"]}', headers=admin_headers).status_code == 404

    def test_delete_self_keeps_audit_history(self, client, admin_headers, admin_user):
        client.post('/v1/product_categories', json={"name": "Shoes"}, headers=admin_headers)
        admin_id = admin_user.id

        response = client.delete(f'/v1/adminUsers/{admin_id}', headers=admin_headers)

        assert response.status_code == 200
        entries = db.session.query(AuditLog).all()
        assert len(entries) == 2
        assert all(e.admin_user_id is None for e in entries)

    def test_roles(self, client, admin_headers, db_session):
        db_session.add(AdminRole(role_name="editor"))
        db_session.commit()

        response = client.get('/v1/adminUsers/roles', headers=admin_headers)

        assert response.status_code == 200
        assert [r["role_name"] for r in data_of(response)["roles"]] == ["super_admin", "editor"]


class TestValidatePassword:

    def test_correct_password(self, client, admin_headers, admin_user):
        response = client.post(
            f'/v1/adminUsers/{admin_user.id}/validatePassword',
            json={"password": ADMIN_PASSWORD},
            headers=admin_headers,
        )
        assert response.status_code == 200
        assert data_of(response) == {"result": True}

    def test_wrong_password_and_unknown_id_look_alike(self, client, admin_headers, admin_user):
        wrong = client.post(
            f'/v1/adminUsers/{admin_user.id}/validatePassword', json={"password": "bad-guess"}, headers=admin_headers
        )
        unknown = client.post(
            '/v1/adminUsers/999/validatePassword', json={"password": ADMIN_PASSWORD}, headers=admin_headers
        )

        assert wrong.status_code == unknown.status_code == 200
        assert wrong.get_json() == unknown.get_json()
        assert data_of(wrong) == {"result": False}

    def test_missing_password(self, client, admin_headers, admin_user):
        response = client.post(
            f'/v1/adminUsers/{admin_user.id}/validatePassword', json={}, headers=admin_headers
        )
        assert response.status_code == 400
