"""
Cloudflare media proxy tests.

Cloudflare is replaced by the `cloudflare` fixture (an httpx.MockTransport),
so these assert on the requests the proxy sends as well as on its responses.
"""

import io

import pytest

from backoffice.services.media_service import (
    build_image_key,
    extract_image_id,
    is_cloudflare_url,
)

from conftest import data_of

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
OLD_URL = "https://imagedelivery.net/test-hash/avatar-1-1700000000000/public"


def upload(client, headers, data=PNG_BYTES, filename="face.png", content_type="image/png", **form):
    body = dict(form)
    if data is not None:
        body["avatar"] = (io.BytesIO(data), filename, content_type)
    return client.post(
        '/admin/cloudflare-avatar', data=body, headers=headers, content_type='multipart/form-data'
    )


class TestUpload:

    def test_avatar_defaults_owner_to_caller(self, client, admin_headers, admin_user, cloudflare):
        response = upload(client, admin_headers)

        assert response.status_code == 200
        public_url = data_of(response)["publicUrl"]
        assert public_url.endswith("/public")
        assert extract_image_id(public_url).startswith(f"avatar-{admin_user.id}-")
        (sent,) = cloudflare.of_method("POST")
        assert sent.headers["Authorization"] == "Bearer test-token"
        assert sent.url.path == "/client/v4/accounts/test-account/images/v1"

    def test_category_hero_uses_category_id(self, client, admin_headers, cloudflare):
        response = upload(client, admin_headers, imageType="category_hero", categoryId="42")

        assert response.status_code == 200
        assert extract_image_id(data_of(response)["publicUrl"]).startswith("category_hero-42-")

    def test_old_image_deleted_first(self, client, admin_headers, cloudflare):
        response = upload(client, admin_headers, oldAvatarUrl=OLD_URL)

        assert response.status_code == 200
        assert [r.method for r in cloudflare.requests] == ["DELETE", "POST"]
        assert cloudflare.requests[0].url.path.endswith("/avatar-1-1700000000000")

    def test_failed_old_delete_does_not_block_upload(self, client, admin_headers, cloudflare):
        cloudflare.fail_deletes = True

        response = upload(client, admin_headers, oldAvatarUrl=OLD_URL)

        assert response.status_code == 200
        assert len(cloudflare.of_method("POST")) == 1

    def test_non_cloudflare_old_url_left_alone(self, client, admin_headers, cloudflare):
        upload(client, admin_headers, oldAvatarUrl="https://cdn.example.com/a/public")

        assert cloudflare.of_method("DELETE") == []

    def test_missing_file(self, client, admin_headers, cloudflare):
        response = upload(client, admin_headers, data=None, imageType="avatar")

        assert response.status_code == 400
        assert response.get_json()["message"] == "No file uploaded"

    def test_rejects_non_image(self, client, admin_headers, cloudflare):
        response = upload(client, admin_headers, data=b"%PDF-1.7", filename="doc.pdf", content_type="application/pdf")

        assert response.status_code == 400
        assert cloudflare.requests == []

    def test_rejects_oversized(self, app, client, admin_headers, cloudflare, monkeypatch):
        monkeypatch.setitem(app.config, "MEDIA_MAX_UPLOAD_BYTES", 16)

        response = upload(client, admin_headers)

        assert response.status_code == 400
        assert response.get_json()["message"] == "File exceeds the 16 byte limit"
        assert cloudflare.requests == []

    def test_request_over_content_length_is_413(self, app, client, admin_headers, cloudflare, monkeypatch):
        monkeypatch.setitem(app.config, "MAX_CONTENT_LENGTH", 32)

        response = upload(client, admin_headers)

        assert response.status_code == 413
        assert response.get_json() == {"status": "error", "message": "Request body too large"}
        assert cloudflare.requests == []

    def test_rejects_unknown_image_type(self, client, admin_headers, cloudflare):
        assert upload(client, admin_headers, imageType="banner").status_code == 400

    @pytest.mark.parametrize("image_type, field", [("category_hero", "categoryId"), ("product_media", "mediaId")])
    def test_owner_id_required(self, client, admin_headers, cloudflare, image_type, field):
        response = upload(client, admin_headers, imageType=image_type)

        assert response.status_code == 400
        assert response.get_json()["errors"][0]["field"] == field

    def test_upload_failure_is_500(self, client, admin_headers, cloudflare):
        cloudflare.fail_uploads = True

        response = upload(client, admin_headers)

        assert response.status_code == 500
        assert response.get_json()["message"] == "Internal server error"

    def test_customer_forbidden(self, client, customer_headers, cloudflare):
        assert upload(client, customer_headers).status_code == 403
        assert cloudflare.requests == []


class TestDelete:

    def test_delete(self, client, admin_headers, cloudflare):
        response = client.delete(
            '/admin/cloudflare-image',
            json={"imageUrl": OLD_URL, "imageType": "avatar", "entityId": 1},
            headers=admin_headers,
        )

        assert response.status_code == 200
        assert data_of(response) == {"deleted": True}
        (sent,) = cloudflare.of_method("DELETE")
        assert sent.url.path.endswith("/images/v1/avatar-1-1700000000000")

    def test_query_string_form(self, client, admin_headers, cloudflare):
        response = client.delete(f'/admin/cloudflare-image?imageUrl={OLD_URL}', headers=admin_headers)

        assert response.status_code == 200

    def test_already_gone(self, client, admin_headers, cloudflare):
        cloudflare.missing_ids.add("avatar-1-1700000000000")

        response = client.delete('/admin/cloudflare-image', json={"imageUrl": OLD_URL}, headers=admin_headers)

        assert response.status_code == 200
        assert data_of(response) == {"deleted": False}

    def test_missing_url(self, client, admin_headers, cloudflare):
        assert client.delete('/admin/cloudflare-image', json={}, headers=admin_headers).status_code == 400

    def test_foreign_url(self, client, admin_headers, cloudflare):
        response = client.delete(
            '/admin/cloudflare-image', json={"imageUrl": "https://cdn.example.com/x/public"}, headers=admin_headers
        )

        assert response.status_code == 400
        assert cloudflare.requests == []

    def test_cloudflare_failure_is_500(self, client, admin_headers, cloudflare):
        cloudflare.fail_deletes = True

        response = client.delete('/admin/cloudflare-image', json={"imageUrl": OLD_URL}, headers=admin_headers)

        assert response.status_code == 500


class TestUrlHelpers:

    @pytest.mark.parametrize("url, expected", [
        ("https://imagedelivery.net/h/id/public", True),
        ("https://images.imagedelivery.net/h/id/public", True),
        ("https://imagedelivery.net.evil.test/h/id/public", False),
        ("https://cdn.example.com/h/id/public", False),
        ("", False),
        (None, False),
    ])
    def test_is_cloudflare_url(self, url, expected):
        assert is_cloudflare_url(url) is expected

    def test_custom_delivery_base(self):
        assert is_cloudflare_url("https://img.shop.test/cdn/h/id/public", "https://img.shop.test/cdn")

    def test_extract_image_id(self):
        assert extract_image_id("https://imagedelivery.net/h/product_media-9-5/public") == "product_media-9-5"
        assert extract_image_id("https://imagedelivery.net/h/product_media-9-5/thumbnail") is None

    def test_build_image_key(self):
        assert build_image_key("avatar", 7, now=1700000000.5) == "avatar-7-1700000000500"
