"""
Cart API Client

HTTP wrapper around the cart endpoints. Every call is scoped to one user
through the X-User-ID header; failures surface as ``CartApiError`` carrying
the server's error message.
"""

import logging
from typing import Any, Optional

import requests

logger = logging.getLogger(__name__)

GUEST_USER_ID = "guest"
DEFAULT_BASE_URL = "http://localhost:3000/api/v1"


class CartApiError(Exception):
    def __init__(self, message: str, status: Optional[int] = None, reason: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.reason = reason


class CartApi:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        user_id: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = 10.0,
    ):
        self.base_url = base_url.rstrip("/")
        self.user_id = user_id or GUEST_USER_ID
        self.timeout = timeout
        self._session = session or requests.Session()

    def _request(self, method: str, path: str, body: Optional[dict] = None, params: Optional[dict] = None) -> dict[str, Any]:
        url = f"{self.base_url}{path}"
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
            "X-User-ID": self.user_id,
        }
        try:
            response = self._session.request(
                method,
                url,
                json=body,
                params=params,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            logger.error("Cart request %s %s failed: %s", method, path, e)
            raise CartApiError("Could not reach the cart service") from e

        try:
            payload = response.json()
        except ValueError:
            payload = None
        if not isinstance(payload, dict):
            payload = {}

        if response.status_code >= 400:
            message = payload.get("error") or "API request failed"
            logger.warning("Cart request %s %s rejected (%s): %s", method, path, response.status_code, message)
            raise CartApiError(message, status=response.status_code, reason=payload.get("reason"))
        return payload

    # --- cart ---

    def get_cart(self) -> dict:
        return self._request("GET", "/cart").get("data") or {}

    def add_item(self, product: dict, quantity: int = 1) -> dict:
        return self._request("POST", "/cart/add", {"product": product, "quantity": quantity})

    def update_item(self, item_id: str, quantity: int) -> dict:
        return self._request("PUT", f"/cart/item/{item_id}", {"quantity": quantity})

    def remove_item(self, item_id: str) -> dict:
        return self._request("DELETE", f"/cart/item/{item_id}")

    def clear(self) -> dict:
        return self._request("DELETE", "/cart/clear")

    def validate(self) -> dict:
        return self._request("POST", "/cart/validate")

    # --- saved for later ---

    def save_for_later(self, item_id: str) -> dict:
        return self._request("POST", f"/saved/item/{item_id}")

    def move_to_cart(self, item_id: str) -> dict:
        return self._request("DELETE", f"/saved/item/{item_id}", params={"action": "move"})

    def remove_saved_item(self, item_id: str) -> dict:
        return self._request("DELETE", f"/saved/item/{item_id}")

    # --- promo codes ---

    def apply_promo_code(self, code: str) -> dict:
        return self._request("POST", "/promo/apply", {"code": code}).get("promoCode") or {}

    def remove_promo_code(self) -> dict:
        return self._request("DELETE", "/promo/remove")

    def close(self) -> None:
        self._session.close()
