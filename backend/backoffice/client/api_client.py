# Overview: HTTP client for the back-office API; explicit token provider, category tree helpers, hero image flow.

# backend/backoffice/client/api_client.py
"""
Back-office API client.

The session is explicit: every request asks the injected `token_provider`
for the current bearer token, so nothing is read from ambient storage.
A TokenStore is the simplest provider; any zero-argument callable works.

Category helpers fetch the flat list once and hand it to
backoffice.category_tree, the same module the server uses.
"""
from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

import httpx

from ..category_tree import (
    CategoryNode,
    build_category_tree,
    category_lineage,
    find_children,
)

# Server-side MAX_PAGE_LIMIT
PAGE_SIZE = 1000


class ApiError(Exception):
    """Non-success envelope (or a transport failure) from the API."""

    def __init__(self, message: str, status_code: Optional[int] = None, errors: Optional[list] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.errors = errors or []


class CategoryHasChildrenError(ApiError):
    """Raised before any request when a category still has children."""

    def __init__(self, category_id: int, children: list):
        names = ", ".join(str(c.get("name")) for c in children)
        super().__init__(f"Category {category_id} still has child categories: {names}", 409)
        self.category_id = category_id
        self.children = children


class TokenStore:
    """In-memory token holder; callable, so it can be passed as a token provider."""

    def __init__(self, token: Optional[str] = None):
        self._token = token

    def __call__(self) -> Optional[str]:
        return self._token

    def set(self, token: Optional[str]) -> None:
        self._token = token

    def clear(self) -> None:
        self._token = None


class BackofficeClient:
    def __init__(
        self,
        base_url: str,
        token_provider: Optional[Callable[[], Optional[str]]] = None,
        *,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.token_provider = token_provider
        self.client = httpx.Client(base_url=self.base_url, timeout=timeout, transport=transport)

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> "BackofficeClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _headers(self, authenticated: bool) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if authenticated and self.token_provider is not None:
            token = self.token_provider()
            if token:
                headers["Authorization"] = f"Bearer {token}"
        return headers

    def _request(self, method: str, path: str, *, authenticated: bool = True, **kwargs) -> Any:
        """Send one request and return the envelope's `data`."""
        try:
            response = self.client.request(method, path, headers=self._headers(authenticated), **kwargs)
        except httpx.HTTPError as e:
            raise ApiError(f"{method} {path} failed: {e}") from e

        try:
            body = response.json()
        except ValueError:
            body = None
        if not isinstance(body, dict):
            raise ApiError(f"{method} {path} returned a non-JSON response", response.status_code)

        if response.is_error or body.get("status") != "success":
            raise ApiError(
                body.get("message") or f"{method} {path} failed",
                response.status_code,
                body.get("errors"),
            )
        return body.get("data")

    # --- auth -------------------------------------------------------------

    def login(self, email: str, password: str) -> str:
        """Returns the bearer token; storing it is the caller's job."""
        data = self._request(
            "POST", "/v1/adminAuth/login",
            authenticated=False,
            json={"email": email, "password": password},
        )
        return data["token"]

    def me(self) -> dict:
        return self._request("GET", "/v1/adminAuth/me")["admin"]

    def logout(self) -> None:
        self._request("POST", "/v1/adminAuth/logout")

    # --- categories -------------------------------------------------------

    def list_categories(
        self,
        page: int = 1,
        limit: int = 20,
        order_by: str = "id",
        order: str = "asc",
    ) -> dict:
        return self._request(
            "GET", "/v1/product_categories",
            params={"page": page, "limit": limit, "orderBy": order_by, "order": order},
        )

    def fetch_all_categories(self) -> List[dict]:
        categories: List[dict] = []
        page = 1
        while True:
            result = self.list_categories(page=page, limit=PAGE_SIZE)
            batch = result.get("categories") or []
            categories.extend(batch)
            if not batch or len(categories) >= result.get("total", 0):
                return categories
            page += 1

    def get_category(self, category_id: int) -> dict:
        """{"category": {...}, "lineage": [ancestor names]}"""
        return self._request("GET", f"/v1/product_categories/{category_id}")

    def get_category_tree(self, categories: Optional[List[dict]] = None) -> List[CategoryNode]:
        """Assembled locally from the flat list (fetched when not given)."""
        if categories is None:
            categories = self.fetch_all_categories()
        return build_category_tree(categories)

    def get_category_lineage(self, category_id: int, categories: Optional[List[dict]] = None) -> List[dict]:
        """
        Root -> category breadcrumb.

        Uses `categories` when the flat list is already at hand, otherwise
        fetches one category per hop.
        """
        if categories is not None:
            category = next((c for c in categories if c.get("id") == category_id), None)
            if category is not None:
                return category_lineage(category, categories, fetch_parent=self._fetch_category_or_none)

        category = self.get_category(category_id)["category"]
        return category_lineage(category, fetch_parent=self._fetch_category_or_none)

    def _fetch_category_or_none(self, category_id: int) -> Optional[dict]:
        try:
            return self.get_category(category_id)["category"]
        except ApiError as e:
            if e.status_code == 404:
                return None
            raise

    def create_category(self, name: str, **fields) -> dict:
        payload = {"name": name, **fields}
        return self._request("POST", "/v1/product_categories", json=payload)["category"]

    def update_category(self, category_id: int, **fields) -> dict:
        return self._request("PUT", f"/v1/product_categories/{category_id}", json=fields)["category"]

    def delete_category(self, category_id: int, categories: Optional[List[dict]] = None) -> None:
        """
        Delete a category, refusing locally if it still has children.

        Raises:
            CategoryHasChildrenError: Without contacting the delete endpoint
        """
        if categories is None:
            categories = self.fetch_all_categories()
        children = find_children(categories, category_id)
        if children:
            raise CategoryHasChildrenError(category_id, children)
        self._request("DELETE", f"/v1/product_categories/{category_id}")

    # --- media ------------------------------------------------------------

    def upload_image(
        self,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        image_type: str = "avatar",
        old_url: Optional[str] = None,
        **owner_fields,
    ) -> str:
        """
        Upload through the media proxy and return the public URL.

        owner_fields are sent as form fields (userId, categoryId, mediaId).
        """
        form = {"imageType": image_type}
        if old_url:
            form["oldAvatarUrl"] = old_url
        form.update({k: str(v) for k, v in owner_fields.items() if v is not None})
        result = self._request(
            "POST", "/admin/cloudflare-avatar",
            files={"avatar": (filename, data, content_type)},
            data=form,
        )
        return result["publicUrl"]

    def delete_image(self, image_url: str, *, image_type: Optional[str] = None, entity_id: Optional[int] = None) -> bool:
        payload: Dict[str, Any] = {"imageUrl": image_url}
        if image_type:
            payload["imageType"] = image_type
        if entity_id is not None:
            payload["entityId"] = entity_id
        return self._request("DELETE", "/admin/cloudflare-image", json=payload)["deleted"]

    def set_category_hero_image(
        self,
        category_id: int,
        data: bytes,
        *,
        filename: str,
        content_type: str,
        old_url: Optional[str] = None,
    ) -> dict:
        """
        Upload a hero image, then save its URL on the category.

        Two requests, not atomic: if the second fails the uploaded image is
        left unreferenced.
        """
        public_url = self.upload_image(
            data,
            filename=filename,
            content_type=content_type,
            image_type="category_hero",
            old_url=old_url,
            categoryId=category_id,
        )
        return self.update_category(category_id, hero_image=public_url)

    def remove_category_hero_image(self, category_id: int, image_url: str) -> dict:
        """Delete the stored image, then clear hero_image on the category."""
        self.delete_image(image_url, image_type="category_hero", entity_id=category_id)
        return self.update_category(category_id, hero_image=None)

    # --- product categories -----------------------------------------------

    def list_product_categories(self, product_id: int) -> List[dict]:
        return self._request("GET", f"/v1/products/{product_id}/categories")["categories"]

    def set_product_categories(self, product_id: int, category_ids: List[int]) -> List[dict]:
        return self._request(
            "PUT", f"/v1/products/{product_id}/categories", json={"category_ids": category_ids},
        )["categories"]

    def add_product_categories(self, product_id: int, category_ids: List[int]) -> List[dict]:
        return self._request(
            "POST", f"/v1/products/{product_id}/categories", json={"category_ids": category_ids},
        )["categories"]

    def remove_product_category(self, product_id: int, category_id: int) -> None:
        self._request("DELETE", f"/v1/products/{product_id}/categories/{category_id}")

    # --- system -----------------------------------------------------------

    def list_preferences(self) -> List[dict]:
        return self._request("GET", "/v1/system/preferences", authenticated=False)["preferences"]

    def update_preference(self, key: str, value: str) -> dict:
        return self._request("PUT", f"/v1/system/preferences/{key}", json={"value": value})["preference"]
