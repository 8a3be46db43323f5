"""
Typed HTTP helpers for the print shop API.

One method per endpoint. Any non-2xx response raises ``ApiError`` carrying a
fixed, endpoint-specific message; callers show it to the user and leave their
own state unchanged. Nothing is retried.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

import httpx

from .upload_selection import LocalDocument

logger = logging.getLogger(__name__)


class ApiError(Exception):
    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class PrintShopClient:
    """
    Thin wrapper over an ``httpx.Client``.

    Args:
        base_url: API origin, e.g. ``http://localhost:3001``; ignored when
            ``http`` is given
        http: Pre-configured client (FastAPI's ``TestClient`` works here)
        timeout: Request timeout in seconds for the default client
    """

    def __init__(self, base_url: str = "", http: Optional[httpx.Client] = None, timeout: float = 30.0) -> None:
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "PrintShopClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def _request(self, method: str, url: str, failure_message: str, **kwargs: Any) -> Any:
        try:
            response = self._http.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error(f"{method} {url} failed: {exc}")
            raise ApiError(failure_message) from exc
        if not response.is_success:
            logger.error(f"{method} {url} returned {response.status_code}: {response.text}")
            raise ApiError(failure_message, status_code=response.status_code)
        return response.json()

    # Orders

    def get_orders(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/orders", "Failed to fetch orders")

    def create_order(self, order_data: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", "/api/orders", "Failed to create order", json=order_data)

    def get_order(self, order_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/api/orders/{order_id}", "Failed to fetch order")

    def update_order_status(self, order_id: str, status: str) -> Dict[str, Any]:
        return self._request("PUT", f"/api/orders/{order_id}", "Failed to update order", json={"status": status})

    def delete_all_orders(self) -> Dict[str, Any]:
        return self._request("DELETE", "/api/orders", "Failed to delete orders")

    # Files

    def upload_files(self, documents: Sequence[LocalDocument]) -> List[Dict[str, Any]]:
        files = [("files", (doc.name, doc.data, doc.content_type)) for doc in documents]
        return self._request("POST", "/api/upload", "Failed to upload files", files=files)

    def get_files(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/api/files", "Failed to fetch files")

    def delete_all_files(self) -> Dict[str, Any]:
        return self._request("DELETE", "/api/files", "Failed to delete files")

    # Admin

    def login(self, username: str, password: str) -> Dict[str, Any]:
        return self._request(
            "POST",
            "/api/admin/login",
            "Invalid credentials",
            json={"username": username, "password": password},
        )
