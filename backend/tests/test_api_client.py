"""
BackofficeClient tests.

Most tests run against a scripted httpx.MockTransport; the end-to-end class
drives the real Flask app through httpx.WSGITransport.
"""

import json

import httpx
import pytest

from backoffice.client import ApiError, BackofficeClient, CategoryHasChildrenError, TokenStore

from conftest import ADMIN_EMAIL, ADMIN_PASSWORD

CATEGORIES = {
    1: {"id": 1, "name": "Apparel", "parent_category_id": None},
    2: {"id": 2, "name": "Shoes", "parent_category_id": 1},
    3: {"id": 3, "name": "Trail", "parent_category_id": 2},
    4: {"id": 4, "name": "Bags", "parent_category_id": None},
}


def envelope(data=None, status=200, message="ok"):
    body = {"status": "success" if status < 400 else "error", "message": message}
    if status < 400:
        body["data"] = data
    return httpx.Response(status, json=body)


class FakeApi:
    """Serves the category endpoints from an in-memory dict and records requests."""

    def __init__(self, categories=None):
        self.categories = dict(CATEGORIES if categories is None else categories)
        self.requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if path == "/v1/product_categories" and request.method == "GET":
            rows = sorted(self.categories.values(), key=lambda c: c["id"])
            return envelope({"categories": rows, "total": len(rows), "page": 1, "limit": 1000})

        if path.startswith("/v1/product_categories/"):
            category_id = int(path.rsplit("/", 1)[-1])
            category = self.categories.get(category_id)
            if category is None:
                return envelope(status=404, message="Product category not found")
            if request.method == "GET":
                return envelope({"category": category, "lineage": []})
            if request.method == "DELETE":
                del self.categories[category_id]
                return envelope(None)

        return envelope(status=404, message="Not found")

    def paths(self, method):
        return [r.url.path for r in self.requests if r.method == method]


@pytest.fixture
def fake_api():
    return FakeApi()


@pytest.fixture
def api(fake_api):
    with BackofficeClient("http://backoffice.test", TokenStore("t0k3n"), transport=httpx.MockTransport(fake_api)) as c:
        yield c


class TestRequests:

    def test_bearer_token_from_provider(self, fake_api):
        tokens = TokenStore("first")
        client = BackofficeClient("http://backoffice.test", tokens, transport=httpx.MockTransport(fake_api))

        client.list_categories()
        tokens.set("second")
        client.list_categories()
        tokens.clear()
        client.list_categories()

        sent = [r.headers.get("Authorization") for r in fake_api.requests]
        assert sent == ["Bearer first", "Bearer second", None]

    def test_list_query_params(self, api, fake_api):
        api.list_categories(page=2, limit=5, order_by="name", order="desc")

        params = fake_api.requests[0].url.params
        assert (params["page"], params["limit"], params["orderBy"], params["order"]) == ("2", "5", "name", "desc")

    def test_error_envelope_raises(self):
        def handler(request):
            return httpx.Response(409, json={
                "status": "error",
                "message": "A product category with this name already exists.",
                "errors": [{"field": "name", "message": "taken"}],
            })

        client = BackofficeClient("http://backoffice.test", transport=httpx.MockTransport(handler))

        with pytest.raises(ApiError) as exc:
            client.create_category("Shoes")

        assert exc.value.status_code == 409
        assert exc.value.message == "A product category with this name already exists."
        assert exc.value.errors == [{"field": "name", "message": "taken"}]

    def test_non_json_raises(self):
        client = BackofficeClient(
            "http://backoffice.test", transport=httpx.MockTransport(lambda r: httpx.Response(502, text="Bad gateway"))
        )

        with pytest.raises(ApiError) as exc:
            client.list_preferences()

        assert exc.value.status_code == 502

    def test_transport_failure_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        client = BackofficeClient("http://backoffice.test", transport=httpx.MockTransport(handler))

        with pytest.raises(ApiError):
            client.me()

    def test_login_does_not_store_token(self):
        seen = []

        def handler(request):
            seen.append(request)
            return envelope({"token": "issued"})

        client = BackofficeClient("http://backoffice.test", transport=httpx.MockTransport(handler))

        assert client.login("a@b.test", "pw") == "issued"
        assert json.loads(seen[0].content) == {"email": "a@b.test", "password": "pw"}
        assert "Authorization" not in seen[0].headers


class TestCategories:

    def test_tree_built_locally(self, api, fake_api):
        roots = api.get_category_tree()

        assert [r.name for r in roots] == ["Apparel", "Bags"]
        assert roots[0].children[0].children[0].name == "Trail"
        assert fake_api.paths("GET") == ["/v1/product_categories"]

    def test_lineage_fetches_one_hop_at_a_time(self, api, fake_api):
        lineage = api.get_category_lineage(3)

        assert [c["name"] for c in lineage] == ["Apparel", "Shoes", "Trail"]
        assert fake_api.paths("GET") == [
            "/v1/product_categories/3",
            "/v1/product_categories/2",
            "/v1/product_categories/1",
        ]

    def test_lineage_from_known_list(self, api, fake_api):
        lineage = api.get_category_lineage(3, categories=list(CATEGORIES.values()))

        assert [c["id"] for c in lineage] == [1, 2, 3]
        assert fake_api.requests == []

    def test_lineage_stops_at_missing_parent(self, fake_api):
        fake_api.categories = {
            5: {"id": 5, "name": "Orphan", "parent_category_id": 99},
        }
        client = BackofficeClient("http://backoffice.test", transport=httpx.MockTransport(fake_api))

        assert [c["name"] for c in client.get_category_lineage(5)] == ["Orphan"]

    def test_lineage_stops_on_cycle(self, fake_api):
        fake_api.categories = {
            7: {"id": 7, "name": "Loop A", "parent_category_id": 8},
            8: {"id": 8, "name": "Loop B", "parent_category_id": 7},
        }
        client = BackofficeClient("http://backoffice.test", transport=httpx.MockTransport(fake_api))

        assert [c["name"] for c in client.get_category_lineage(7)] == ["Loop B", "Loop A"]

    def test_delete_with_children_is_refused_locally(self, api, fake_api):
        with pytest.raises(CategoryHasChildrenError) as exc:
            api.delete_category(1)

        assert exc.value.status_code == 409
        assert [c["name"] for c in exc.value.children] == ["Shoes"]
        assert fake_api.paths("DELETE") == []

    def test_delete_leaf(self, api, fake_api):
        api.delete_category(4, categories=list(CATEGORIES.values()))

        assert fake_api.paths("DELETE") == ["/v1/product_categories/4"]


class TestAgainstApp:
    """End to end through the Flask app."""

    @pytest.fixture
    def api(self, app, admin_user):
        tokens = TokenStore()
        client = BackofficeClient("http://backoffice.test", tokens, transport=httpx.WSGITransport(app=app))
        tokens.set(client.login(ADMIN_EMAIL, ADMIN_PASSWORD))
        yield client
        client.close()

    def test_me(self, api, admin_user):
        assert api.me()["id"] == admin_user.id

    def test_category_workflow(self, api):
        shoes = api.create_category("Shoes")
        trail = api.create_category("Trail", parent_category_id=shoes["id"])

        tree = api.get_category_tree()
        assert [(n.name, [c.name for c in n.children]) for n in tree] == [("Shoes", ["Trail"])]
        assert [c["name"] for c in api.get_category_lineage(trail["id"])] == ["Shoes", "Trail"]

        with pytest.raises(CategoryHasChildrenError):
            api.delete_category(shoes["id"])

        api.delete_category(trail["id"])
        api.delete_category(shoes["id"])
        assert api.fetch_all_categories() == []

    def test_hero_image_round_trip(self, api, cloudflare):
        category = api.create_category("Boots")

        updated = api.set_category_hero_image(
            category["id"], b"\x89PNG\r\n\x1a\n", filename="hero.png", content_type="image/png"
        )
        hero = updated["hero_image"]
        assert hero.startswith("https://imagedelivery.net/test-hash/category_hero-")

        cleared = api.remove_category_hero_image(category["id"], hero)
        assert cleared["hero_image"] is None
        assert [r.method for r in cloudflare.requests] == ["POST", "DELETE"]

    def test_preferences(self, api, db_session):
        from backoffice.services.system_service import seed_defaults

        seed_defaults()

        assert api.update_preference("site_name", "Shoe Barn")["value"] == "Shoe Barn"
        prefs = {p["key"]: p["value"] for p in api.list_preferences()}
        assert prefs["site_name"] == "Shoe Barn"

    def test_product_categories(self, api, db_session):
        from backoffice.models import Product

        product = Product(sku="P-1", name="Boot")
        db_session.add(product)
        db_session.commit()
        a = api.create_category("A")
        b = api.create_category("B")

        assert [c["name"] for c in api.set_product_categories(product.id, [a["id"]])] == ["A"]
        assert [c["name"] for c in api.add_product_categories(product.id, [b["id"]])] == ["A", "B"]
        api.remove_product_category(product.id, a["id"])
        assert [c["name"] for c in api.list_product_categories(product.id)] == ["B"]
