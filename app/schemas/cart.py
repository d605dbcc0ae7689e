# app/schemas/cart.py
from typing import Annotated, Dict, List, Literal, NamedTuple, Optional, Union
from pydantic import BaseModel, ConfigDict, Field, StrictInt, StrictStr, field_validator

from app.core import locales
from app.core.exceptions import InvalidArgument

CATALOG = "catalog"
VIRTUAL = "virtual"

PACKAGE_PREFIX = "pkg-"
BUILD_PREFIX = "build-"
VIRTUAL_PREFIXES = (PACKAGE_PREFIX, BUILD_PREFIX)


def is_virtual_id(value: str) -> bool:
    return value.startswith(VIRTUAL_PREFIXES) and value not in VIRTUAL_PREFIXES


class ItemKey(NamedTuple):
    """Identity of a cart line. 5 and "pkg-5" never produce the same key."""
    kind: str
    value: Union[int, str]


# --- Items that can be put in a cart ---

class CatalogItem(BaseModel):
    """Product from the catalog. Name, price and image are refreshed from the server."""
    kind: Literal["catalog"] = CATALOG
    product_id: int = Field(gt=0)
    name: str = ""
    price: float = 0.0
    image: Optional[str] = None

    @property
    def item_id(self) -> int:
        return self.product_id

    @property
    def key(self) -> ItemKey:
        return ItemKey(CATALOG, self.product_id)


class VirtualItem(BaseModel):
    """Package or custom build. Display fields are fixed when the item is created."""
    kind: Literal["virtual"] = VIRTUAL
    virtual_id: str
    name: str
    price: float = Field(ge=0)
    image: Optional[str] = None

    @field_validator('virtual_id')
    @classmethod
    def validate_prefix(cls, v: str) -> str:
        if not is_virtual_id(v):
            raise ValueError(locales.ERROR_INVALID_ITEM_ID)
        return v

    @property
    def item_id(self) -> str:
        return self.virtual_id

    @property
    def key(self) -> ItemKey:
        return ItemKey(VIRTUAL, self.virtual_id)


StoreItem = Annotated[Union[CatalogItem, VirtualItem], Field(discriminator="kind")]


class CartLine(BaseModel):
    item: StoreItem
    quantity: int = Field(gt=0)

    @property
    def item_id(self) -> Union[int, str]:
        return self.item.item_id

    @property
    def key(self) -> ItemKey:
        return self.item.key

    @property
    def name(self) -> str:
        return self.item.name

    @property
    def unit_price(self) -> float:
        return self.item.price

    @property
    def image_url(self) -> Optional[str]:
        return self.item.image

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def to_wire(self) -> dict:
        return {
            "id": self.item_id,
            "name": self.name,
            "price": self.unit_price,
            "image": self.image_url,
            "quantity": self.quantity,
        }

    @classmethod
    def from_wire(cls, data: dict) -> "CartLine":
        wire = CartLineWire.model_validate(data)
        return cls(item=wire.to_item(), quantity=wire.quantity)


# --- Wire format: {id, name, price, image, quantity} ---

class CartLineWire(BaseModel):
    # Strict so that "5" is never silently read as product 5
    id: Union[StrictInt, StrictStr]
    name: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    quantity: int

    def to_item(self) -> Union[CatalogItem, VirtualItem]:
        return item_from_wire(self.id, self.name, self.price, self.image)


def item_from_wire(item_id: Union[int, str], name: Optional[str] = None, price: Optional[float] = None,
                   image: Optional[str] = None) -> Union[CatalogItem, VirtualItem]:
    """Builds the tagged item from the loose wire shape."""
    if isinstance(item_id, int):
        if item_id <= 0:
            raise InvalidArgument(locales.ERROR_INVALID_ITEM_ID)
        return CatalogItem(product_id=item_id, name=name or "", price=price or 0.0, image=image)

    if not is_virtual_id(item_id):
        raise InvalidArgument(locales.ERROR_INVALID_ITEM_ID)
    if not name or price is None or price < 0:
        raise InvalidArgument(locales.ERROR_VIRTUAL_ITEM_FIELDS)
    return VirtualItem(virtual_id=item_id, name=name, price=price, image=image)


def parse_item_key(raw: Union[int, str]) -> ItemKey:
    """
    Resolves an item id as it appears in a URL path or in client code.
    All-digit strings are catalog product ids, prefixed strings are virtual ids.
    """
    if isinstance(raw, int) and not isinstance(raw, bool):
        if raw <= 0:
            raise InvalidArgument(locales.ERROR_INVALID_ITEM_ID)
        return ItemKey(CATALOG, raw)
    if isinstance(raw, str):
        if raw.isdigit() and int(raw) > 0:
            return ItemKey(CATALOG, int(raw))
        if is_virtual_id(raw):
            return ItemKey(VIRTUAL, raw)
    raise InvalidArgument(locales.ERROR_INVALID_ITEM_ID)


# --- Request bodies ---

class CartItemIn(BaseModel):
    id: Union[StrictInt, StrictStr]
    name: Optional[str] = None
    price: Optional[float] = None
    image: Optional[str] = None
    quantity: StrictInt

class CartItemAdd(BaseModel):
    item: CartItemIn

class CartSyncRequest(BaseModel):
    local_cart: List[CartLineWire] = Field(default_factory=list, alias="localCart")

    model_config = ConfigDict(populate_by_name=True)

class CartQuantityUpdate(BaseModel):
    quantity: StrictInt


# --- Responses ---

class CartLineOut(BaseModel):
    id: Union[int, str]
    name: str
    price: float
    image: Optional[str] = None
    quantity: int

class MessageResponse(BaseModel):
    message: str

class CartSyncResponse(BaseModel):
    message: str
    updated: Dict[str, int] = Field(default_factory=dict)
    failed_batches: List[str] = Field(default_factory=list, serialization_alias="failedBatches")


class CartNotification(BaseModel):
    level: str  # "success" or "error"
    message: str
