"""
System endpoint tests: preferences, audit log and database probe.
"""

import pytest

from backoffice.extensions import db
from backoffice.models import AdminRole, AuditLog, SystemPreference
from backoffice.services import system_service

from conftest import data_of


@pytest.fixture
def seeded(db_session):
    return system_service.seed_defaults()


class TestSeedDefaults:

    def test_creates_roles_and_preferences(self, seeded):
        assert seeded["roles"] == ["super_admin", "admin", "editor"]
        assert set(seeded["preferences"]) == {"site_name", "default_currency", "default_timezone"}

    def test_is_idempotent(self, seeded):
        again = system_service.seed_defaults()

        assert again == {"roles": [], "preferences": []}
        assert db.session.query(AdminRole).count() == 3
        assert db.session.query(SystemPreference).count() == 3

    def test_keeps_edited_values(self, seeded):
        db.session.get(SystemPreference, "site_name").value = "Shoe Barn"
        db.session.commit()

        system_service.seed_defaults()

        assert db.session.get(SystemPreference, "site_name").value == "Shoe Barn"


class TestPreferences:

    def test_public_listing(self, client, seeded):
        response = client.get('/v1/system/preferences')

        assert response.status_code == 200
        keys = [p["key"] for p in data_of(response)["preferences"]]
        assert keys == ["default_currency", "default_timezone", "site_name"]

    def test_update(self, client, admin_headers, seeded):
        response = client.put(
            '/v1/system/preferences/site_name', json={"value": "Shoe Barn"}, headers=admin_headers
        )

        assert response.status_code == 200
        assert data_of(response)["preference"]["value"] == "Shoe Barn"
        assert db.session.query(AuditLog).filter(AuditLog.details.contains("site_name")).count() == 1

    def test_unknown_key_not_created(self, client, admin_headers, seeded):
        response = client.put('/v1/system/preferences/theme', json={"value": "dark"}, headers=admin_headers)

        assert response.status_code == 404
        assert db.session.get(SystemPreference, "theme") is None

    @pytest.mark.parametrize("body", [{}, {"value": 3}, {"value": None}])
    def test_value_must_be_string(self, client, admin_headers, seeded, body):
        response = client.put('/v1/system/preferences/site_name', json=body, headers=admin_headers)
        assert response.status_code == 400

    def test_update_requires_admin(self, client, customer_headers, seeded):
        response = client.put(
            '/v1/system/preferences/site_name', json={"value": "x"}, headers=customer_headers
        )
        assert response.status_code == 403


class TestAuditLogs:

    def test_newest_first(self, client, admin_headers, admin_user):
        for name in ("First", "Second", "Third"):
            client.post('/v1/product_categories', json={"name": name}, headers=admin_headers)

        response = client.get('/v1/system/audit_logs', headers=admin_headers)

        assert response.status_code == 200
        data = data_of(response)
        assert data["total"] == 3
        assert [e["details"].rsplit("name=", 1)[-1] for e in data["audit_logs"]] == ["Third", "Second", "First"]
        assert all(e["admin_user_id"] == admin_user.id for e in data["audit_logs"])

    def test_paging(self, client, admin_headers):
        for name in ("A", "B", "C"):
            client.post('/v1/product_categories', json={"name": name}, headers=admin_headers)

        data = data_of(client.get('/v1/system/audit_logs?limit=2&page=2', headers=admin_headers))

        assert data["total"] == 3
        assert len(data["audit_logs"]) == 1

    def test_bad_order_column(self, client, admin_headers):
        assert client.get('/v1/system/audit_logs?orderBy=details', headers=admin_headers).status_code == 400

    def test_requires_auth(self, client, db_session):
        assert client.get('/v1/system/audit_logs').status_code == 401


class TestDatabaseStatus:

    def test_reports_round_trip(self, client, db_session):
        response = client.get('/v1/system/database_status')

        assert response.status_code == 200
        data = data_of(response)
        assert data["status"] == "ok"
        assert data["dialect"] == "sqlite"
        assert data["database_time"]
        assert data["latency_ms"] >= 0
