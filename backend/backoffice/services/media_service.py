# backend/backoffice/services/media_service.py
"""
Media Service (Cloudflare Images)

The back office never stores image bytes. Uploads are forwarded to
Cloudflare Images and the caller gets back a public delivery URL
(https://imagedelivery.net/<account hash>/<image id>/public), which the
client then saves on the owning row with a normal update request.

Replacing an image deletes the previous one first. That delete is best
effort: if it fails the failure is logged and the upload goes ahead, so a
broken old image never blocks a new one.
"""
from __future__ import annotations

import json
import re
import time
from urllib.parse import urlparse

import httpx
from flask import current_app

from ..validation import ValidationError

CLOUDFLARE_API_BASE = "https://api.cloudflare.com/client/v4"
CLOUDFLARE_DELIVERY_HOST = "imagedelivery.net"

IMAGE_TYPES = ("avatar", "category_hero", "product_media")

_IMAGE_ID_RE = re.compile(r"/([^/]+)/public")


class MediaStorageError(RuntimeError):
    """The image store rejected a request or could not be reached."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class CloudflareImagesClient:
    """
    Minimal Cloudflare Images API client.

    `transport` is passed to httpx.Client; tests hand in an
    httpx.MockTransport so nothing leaves the process.
    """

    def __init__(
        self,
        account_id: str,
        api_token: str,
        *,
        api_base: str = CLOUDFLARE_API_BASE,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.images_url = f"{api_base.rstrip('/')}/accounts/{account_id}/images/v1"
        self._http = httpx.Client(
            headers={"Authorization": f"Bearer {api_token}"},
            timeout=timeout,
            transport=transport,
        )

    def close(self) -> None:
        self._http.close()

    def _send(self, method: str, url: str, **kwargs) -> dict:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise MediaStorageError(f"Cloudflare request failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = {}
        if not isinstance(body, dict):
            body = {}

        if response.is_error or not body.get("success"):
            errors = body.get("errors")
            raise MediaStorageError(
                f"Cloudflare {method} {url} returned {response.status_code}: {errors or response.text[:200]}",
                status_code=response.status_code,
            )
        return body

    def upload_image(
        self,
        data: bytes,
        *,
        image_id: str,
        filename: str,
        content_type: str,
        metadata: dict | None = None,
    ) -> dict:
        """
        Upload bytes under a custom image id.

        Returns {"id": ..., "public_url": ...}; the public URL is the
        "public" variant when present, otherwise the first variant.
        """
        body = self._send(
            "POST",
            self.images_url,
            files={"file": (filename, data, content_type)},
            data={
                "id": image_id,
                "metadata": json.dumps(metadata or {}),
                "requireSignedURLs": "false",
            },
        )
        result = body.get("result") or {}
        variants = result.get("variants") or []
        if not variants:
            raise MediaStorageError("Cloudflare upload returned no delivery URL")
        public_url = next((v for v in variants if v.rstrip("/").endswith("/public")), variants[0])
        return {"id": result.get("id", image_id), "public_url": public_url}

    def delete_image(self, image_id: str) -> bool:
        """
        Delete one image. Returns False if Cloudflare no longer has it.
        """
        try:
            self._send("DELETE", f"{self.images_url}/{image_id}")
        except MediaStorageError as e:
            if e.status_code == 404:
                return False
            raise
        return True


def is_cloudflare_url(url: str | None, delivery_base: str | None = None) -> bool:
    """True for Cloudflare Images delivery URLs (or the configured custom delivery base)."""
    if not url or not isinstance(url, str):
        return False
    if delivery_base and url.startswith(delivery_base.rstrip("/") + "/"):
        return True
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return False
    return host == CLOUDFLARE_DELIVERY_HOST or host.endswith("." + CLOUDFLARE_DELIVERY_HOST)


def extract_image_id(url: str | None) -> str | None:
    """The <image id> segment of .../<image id>/public, or None."""
    if not url:
        return None
    match = _IMAGE_ID_RE.search(urlparse(url).path)
    return match.group(1) if match else None


def build_image_key(image_type: str, owner_id, now: float | None = None) -> str:
    """Storage key: {imageType}-{ownerId}-{epoch millis}."""
    millis = int((time.time() if now is None else now) * 1000)
    return f"{image_type}-{owner_id}-{millis}"


def get_media_client() -> CloudflareImagesClient:
    """
    The app-wide client, built on first use from config.

    Tests (or alternative deployments) may place their own client at
    app.extensions["media_client"] beforehand.
    """
    app = current_app._get_current_object()
    client = app.extensions.get("media_client")
    if client is not None:
        return client

    account_id = app.config.get("CLOUDFLARE_ACCOUNT_ID")
    api_token = app.config.get("CLOUDFLARE_API_TOKEN")
    if not account_id or not api_token:
        raise MediaStorageError("Cloudflare credentials are not configured")

    client = CloudflareImagesClient(
        account_id,
        api_token,
        timeout=app.config.get("MEDIA_REQUEST_TIMEOUT", 30.0),
    )
    app.extensions["media_client"] = client
    return client


def replace_image(
    client: CloudflareImagesClient,
    data: bytes,
    *,
    image_type: str,
    owner_id,
    filename: str,
    content_type: str,
    old_url: str | None = None,
    uploaded_by: int | None = None,
) -> dict:
    """
    Upload a new image, deleting `old_url` first when it is a Cloudflare image.

    Returns {"id", "public_url"}.

    Raises:
        MediaStorageError: If the upload itself fails
    """
    delivery_base = current_app.config.get("CLOUDFLARE_IMAGES_BASE_URL")
    if old_url and is_cloudflare_url(old_url, delivery_base):
        old_id = extract_image_id(old_url)
        if old_id:
            try:
                client.delete_image(old_id)
            except MediaStorageError:
                current_app.logger.warning(
                    "Could not delete previous %s image %s; continuing with upload", image_type, old_id,
                    exc_info=True,
                )

    key = build_image_key(image_type, owner_id)
    return client.upload_image(
        data,
        image_id=key,
        filename=filename or key,
        content_type=content_type,
        metadata={"imageType": image_type, "ownerId": str(owner_id), "uploadedBy": uploaded_by},
    )


def remove_image(client: CloudflareImagesClient, url: str) -> bool:
    """
    Delete the image behind a delivery URL.

    Raises:
        ValidationError: If the URL is not a Cloudflare Images delivery URL
        MediaStorageError: If Cloudflare refuses the delete
    """
    delivery_base = current_app.config.get("CLOUDFLARE_IMAGES_BASE_URL")
    image_id = extract_image_id(url) if is_cloudflare_url(url, delivery_base) else None
    if not image_id:
        raise ValidationError(
            "imageUrl is not a Cloudflare image URL",
            errors=[{"field": "imageUrl", "message": "imageUrl is not a Cloudflare image URL"}],
        )
    return client.delete_image(image_id)
