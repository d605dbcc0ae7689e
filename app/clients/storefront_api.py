# app/clients/storefront_api.py

import logging
from typing import Any, List, Optional

import httpx

from app.core.exceptions import UpstreamFailure, error_for_status

logger = logging.getLogger(__name__)


class StorefrontAPIClient:
    """
    Async client of the storefront REST API, used by the cart store and the PC builder.
    Errors are raised as the storefront error taxonomy: HTTP error statuses are
    mapped back by code, network errors and unexpected bodies become UpstreamFailure.
    """
    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 20.0,
    ):
        self.base_url = base_url.rstrip("/")
        timeouts = httpx.Timeout(timeout, read=timeout * 3)
        self.async_client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeouts,
            transport=transport,
        )
        self.set_token(token)

    def set_token(self, token: Optional[str]):
        """Bearer credential of the logged in user, None for a guest."""
        self.token = token
        if token:
            self.async_client.headers["Authorization"] = f"Bearer {token}"
        else:
            self.async_client.headers.pop("Authorization", None)

    async def aclose(self):
        await self.async_client.aclose()

    async def _request(self, method: str, endpoint: str, **kwargs) -> Any:
        """
        Performs a request and returns the decoded JSON body.
        """
        try:
            response = await self.async_client.request(method, endpoint, **kwargs)
            response.raise_for_status()
            return response.json()
        except httpx.RequestError as e:
            logger.error(f"Network error during {method} request to {e.request.url!r}.", exc_info=True)
            raise UpstreamFailure(f"Network error: {e}") from e
        except httpx.HTTPStatusError as e:
            logger.error(f"HTTP error during {method} request to {e.request.url!r}: {e.response.text}")
            raise error_for_status(e.response.status_code, _error_message(e.response)) from e
        except ValueError as e:
            logger.error(f"Invalid JSON in response to {method} {endpoint}.", exc_info=True)
            raise UpstreamFailure("Unexpected response from the store.") from e

    async def get(self, endpoint: str, params: dict = None) -> Any:
        return await self._request("GET", endpoint, params=params)

    async def post(self, endpoint: str, json: dict = None) -> Any:
        return await self._request("POST", endpoint, json=json)

    async def put(self, endpoint: str, json: dict = None) -> Any:
        return await self._request("PUT", endpoint, json=json)

    async def delete(self, endpoint: str, params: dict = None) -> Any:
        return await self._request("DELETE", endpoint, params=params)

    # --- Cart ---

    async def get_cart(self) -> List[dict]:
        data = await self.get("/api/cart")
        if not isinstance(data, list):
            raise UpstreamFailure("Unexpected cart payload.")
        return data

    async def add_cart_item(self, item: dict) -> dict:
        return await self.post("/api/cart", json={"item": item})

    async def sync_cart(self, local_cart: List[dict]) -> dict:
        return await self.post("/api/cart/sync", json={"localCart": local_cart})

    async def update_cart_item(self, item_id, quantity: int) -> dict:
        return await self.put(f"/api/cart/{item_id}", json={"quantity": quantity})

    async def remove_cart_item(self, item_id) -> dict:
        return await self.delete(f"/api/cart/{item_id}")

    async def clear_cart(self) -> dict:
        return await self.delete("/api/cart")

    # --- Catalog / builder ---

    async def get_components(
        self, category: str, cpu_socket_id: Optional[int] = None, ram_type_id: Optional[int] = None
    ) -> List[dict]:
        params = {"category": category}
        if cpu_socket_id is not None:
            params["cpu_socket_id"] = cpu_socket_id
        if ram_type_id is not None:
            params["ram_type_id"] = ram_type_id
        data = await self.get("/api/builder/components", params=params)
        if not isinstance(data, list):
            raise UpstreamFailure("Unexpected components payload.")
        return data

    async def get_packages(self) -> List[dict]:
        return await self.get("/api/packages")

    # --- Orders ---

    async def submit_order(self) -> dict:
        return await self.post("/api/orders")


def _error_message(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    if isinstance(body, dict):
        return body.get("error") or body.get("detail")
    return None
