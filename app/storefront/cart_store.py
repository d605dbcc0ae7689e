# app/storefront/cart_store.py

import logging
from abc import ABC, abstractmethod
from typing import Awaitable, Callable, List, Optional, Union

from app.clients.storefront_api import StorefrontAPIClient
from app.core import locales
from app.core.exceptions import InvalidArgument, StorefrontError, Unauthorized, UpstreamFailure
from app.schemas.cart import CartLine, CartNotification, CatalogItem, ItemKey, VirtualItem, parse_item_key
from app.storefront.storage import CART_KEY, SessionStorage

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[CartNotification], None]


# --- Backends ---

class CartBackend(ABC):
    """Where the cart lives. The store talks to exactly one backend at a time."""
    mode: str

    @abstractmethod
    async def load(self) -> List[CartLine]:
        """Authoritative lines of the cart."""

    @abstractmethod
    async def add(self, item: Union[CatalogItem, VirtualItem], quantity: int) -> None: ...

    @abstractmethod
    async def set_quantity(self, key: ItemKey, quantity: int) -> None: ...

    @abstractmethod
    async def remove(self, key: ItemKey) -> None: ...

    @abstractmethod
    async def clear(self) -> None: ...


class LocalBackend(CartBackend):
    """Guest cart persisted in the session storage."""
    mode = "local"

    def __init__(self, storage: SessionStorage):
        self.storage = storage

    async def load(self) -> List[CartLine]:
        raw_lines = await self.storage.get(CART_KEY)
        if raw_lines is None:
            return []
        if not isinstance(raw_lines, list):
            logger.warning("Stored cart is not a list, ignoring it.")
            return []

        lines: List[CartLine] = []
        seen = set()
        for raw_line in raw_lines:
            try:
                line = CartLine.from_wire(raw_line)
            except (StorefrontError, ValueError):
                logger.warning(f"Skipping invalid stored cart line: {raw_line!r}")
                continue
            if line.key in seen:
                continue
            seen.add(line.key)
            lines.append(line)
        return lines

    async def save(self, lines: List[CartLine]) -> None:
        try:
            await self.storage.set(CART_KEY, [line.to_wire() for line in lines])
        except OSError as e:
            logger.error("Failed to persist the local cart.", exc_info=True)
            raise UpstreamFailure("Could not save the cart on this device.") from e

    async def add(self, item: Union[CatalogItem, VirtualItem], quantity: int) -> None:
        lines = await self.load()
        for index, line in enumerate(lines):
            if line.key == item.key:
                lines[index] = line.model_copy(update={"quantity": line.quantity + quantity})
                break
        else:
            lines.append(CartLine(item=item, quantity=quantity))
        await self.save(lines)

    async def set_quantity(self, key: ItemKey, quantity: int) -> None:
        lines = await self.load()
        for index, line in enumerate(lines):
            if line.key == key:
                lines[index] = line.model_copy(update={"quantity": quantity})
                await self.save(lines)
                return
        logger.info(f"Item {key.value!r} is not in the local cart, nothing to update.")

    async def remove(self, key: ItemKey) -> None:
        lines = await self.load()
        remaining = [line for line in lines if line.key != key]
        if len(remaining) != len(lines):
            await self.save(remaining)

    async def clear(self) -> None:
        await self.storage.remove(CART_KEY)


class RemoteBackend(CartBackend):
    """Cart of an authenticated user, persisted by the storefront API."""
    mode = "remote"

    def __init__(self, api: StorefrontAPIClient):
        self.api = api

    async def load(self) -> List[CartLine]:
        lines = []
        for raw_line in await self.api.get_cart():
            try:
                lines.append(CartLine.from_wire(raw_line))
            except (StorefrontError, ValueError):
                logger.warning(f"Skipping malformed cart line from the server: {raw_line!r}")
        return lines

    async def add(self, item: Union[CatalogItem, VirtualItem], quantity: int) -> None:
        line = CartLine(item=item, quantity=quantity)
        await self.api.add_cart_item(line.to_wire())

    async def set_quantity(self, key: ItemKey, quantity: int) -> None:
        await self.api.update_cart_item(key.value, quantity)

    async def remove(self, key: ItemKey) -> None:
        await self.api.remove_cart_item(key.value)

    async def clear(self) -> None:
        await self.api.clear_cart()


# --- Store ---

class CartStore:
    """
    Single source of truth for the cart shown to the user.

    Guests use the local backend. After login the remote backend is used and
    the guest cart is merged into the server cart once. Every mutation is
    followed by a refresh, so the in-memory snapshot always comes from the
    backend, never from optimistic guesses about the server.
    """

    def __init__(
        self,
        storage: SessionStorage,
        api: Optional[StorefrontAPIClient] = None,
        on_notify: Optional[NotifyCallback] = None,
    ):
        self.api = api
        self.on_notify = on_notify
        self._local = LocalBackend(storage)
        self._backend: CartBackend = self._local
        self._lines: List[CartLine] = []

    @property
    def mode(self) -> str:
        return self._backend.mode

    # --- Session ---

    async def init(self, identity: Optional[str] = None) -> None:
        """
        Picks the backend for the identity (bearer token) or for a guest.
        A non-empty guest cart is synced to the server exactly once.
        """
        if identity:
            if self.api is None:
                raise ValueError("An API client is required for an authenticated cart.")
            self.api.set_token(identity)
            self._backend = RemoteBackend(self.api)
            await self.sync_local_to_remote()
        else:
            if self.api is not None:
                self.api.set_token(None)
            self._backend = self._local
        await self.refresh()

    async def logout(self, stash: bool = False) -> None:
        """Back to the guest cart. With `stash` the user's cart is kept on this device."""
        if stash and self.mode == RemoteBackend.mode:
            await self._local.save(self._lines)
        await self.init(None)

    async def sync_local_to_remote(self) -> bool:
        """
        Submits the guest cart to the server merge. The local lines are dropped
        once the server accepted the request, even if one of its batches failed,
        so they are never submitted again. If the request itself fails they are
        kept for the next login.
        """
        local_lines = await self._local.load()
        if not local_lines:
            return True
        try:
            result = await self.api.sync_cart([line.to_wire() for line in local_lines])
        except StorefrontError as e:
            logger.error(f"Cart sync failed, keeping {len(local_lines)} local lines: {e.message}")
            self._notify("error", e.message)
            return False

        failed_batches = result.get("failedBatches") or []
        if failed_batches:
            logger.warning(f"Cart sync partially failed for batches {failed_batches}, local cart dropped anyway.")
        else:
            logger.info(f"Synced {len(local_lines)} local cart lines to the server.")
        await self._local.clear()
        return True

    # --- Reads ---

    async def refresh(self) -> None:
        """Re-reads the backend. On failure the cart is shown empty instead of crashing."""
        try:
            self._lines = await self._backend.load()
        except StorefrontError as e:
            logger.warning(f"Could not load the {self.mode} cart, showing it empty: {e.message}")
            self._lines = []

    def get_lines(self) -> List[CartLine]:
        return [line.model_copy(deep=True) for line in self._lines]

    def get_item_count(self) -> int:
        return sum(line.quantity for line in self._lines)

    def get_total(self) -> float:
        return round(sum(line.subtotal for line in self._lines), 2)

    # --- Mutations ---

    async def add_item(self, item: Union[CatalogItem, VirtualItem], quantity: int = 1) -> None:
        """Additive: adding the same item twice adds the quantity twice."""
        _check_quantity(quantity)
        if not isinstance(item, (CatalogItem, VirtualItem)):
            raise InvalidArgument(locales.ERROR_INVALID_ITEM)
        await self._mutate(
            self._backend.add(item, quantity),
            locales.SUCCESS_ITEM_ADDED.format(name=item.name or "Item"),
        )

    async def update_quantity(self, item_id: Union[int, str], quantity: int) -> None:
        """Absolute set. Zero or less removes the line."""
        if isinstance(quantity, bool) or not isinstance(quantity, int):
            raise InvalidArgument(locales.ERROR_INVALID_ITEM)
        if quantity <= 0:
            await self.remove_item(item_id)
            return
        key = parse_item_key(item_id)
        await self._mutate(self._backend.set_quantity(key, quantity), locales.SUCCESS_QUANTITY_UPDATED)

    async def remove_item(self, item_id: Union[int, str]) -> None:
        key = parse_item_key(item_id)
        await self._mutate(self._backend.remove(key), locales.SUCCESS_ITEM_REMOVED_FROM_CART)

    async def clear(self) -> None:
        await self._mutate(self._backend.clear(), locales.SUCCESS_CART_CLEARED)

    async def checkout(self) -> dict:
        """Places an order for the server cart. Guests have to log in first."""
        if self.mode != RemoteBackend.mode:
            raise Unauthorized(locales.ERROR_LOGIN_REQUIRED)
        return await self._mutate(self.api.submit_order(), locales.SUCCESS_ORDER_CREATED)

    # --- Internals ---

    async def _mutate(self, operation: Awaitable, success_message: str):
        try:
            result = await operation
        except StorefrontError as e:
            self._notify("error", e.message)
            raise
        finally:
            await self.refresh()
        self._notify("success", success_message)
        return result

    def _notify(self, level: str, message: str) -> None:
        if self.on_notify is not None:
            self.on_notify(CartNotification(level=level, message=message))


def _check_quantity(quantity) -> None:
    if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
        raise InvalidArgument(locales.ERROR_INVALID_ITEM)
