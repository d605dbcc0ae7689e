# app/storefront/builder.py

import logging
import uuid
from typing import Dict, FrozenSet, Iterable, List, NamedTuple, Optional

from app.clients.storefront_api import StorefrontAPIClient
from app.core import locales
from app.core.exceptions import InvalidArgument, StorefrontError
from app.schemas.cart import BUILD_PREFIX, VirtualItem
from app.schemas.product import BuildCategory, Component
from app.storefront.cart_store import CartStore
from app.storefront.storage import BUILD_KEY, SessionStorage

logger = logging.getLogger(__name__)

DEFAULT_PLACEHOLDER_IMAGE = "/assets/images/pc_build_placeholder.png"


class Slot(NamedTuple):
    # Category that must be filled before this one can be chosen
    requires: Optional[BuildCategory] = None
    # Attribute that has to match the component selected in `requires`
    compat_key: Optional[str] = None


SLOTS: Dict[BuildCategory, Slot] = {
    BuildCategory.CPUS: Slot(),
    BuildCategory.MOTHERBOARDS: Slot(requires=BuildCategory.CPUS, compat_key="cpu_socket_id"),
    BuildCategory.RAM: Slot(requires=BuildCategory.MOTHERBOARDS, compat_key="ram_type_id"),
    BuildCategory.STORAGE: Slot(requires=BuildCategory.MOTHERBOARDS),
    BuildCategory.PSUS: Slot(requires=BuildCategory.MOTHERBOARDS),
    BuildCategory.CASINGS: Slot(requires=BuildCategory.MOTHERBOARDS),
    BuildCategory.GRAPHICS_CARDS: Slot(requires=BuildCategory.MOTHERBOARDS),
    BuildCategory.MONITORS: Slot(requires=BuildCategory.MOTHERBOARDS),
}

DEFAULT_REQUIRED_CATEGORIES: FrozenSet[BuildCategory] = frozenset({
    BuildCategory.CPUS,
    BuildCategory.MOTHERBOARDS,
    BuildCategory.RAM,
    BuildCategory.STORAGE,
    BuildCategory.PSUS,
    BuildCategory.CASINGS,
})


def _dependents(category: BuildCategory) -> List[BuildCategory]:
    """Categories whose compatibility is decided by `category`."""
    return [
        dependent for dependent, slot in SLOTS.items()
        if slot.requires == category and slot.compat_key
    ]


class PCBuilder:
    """
    In-progress PC configuration, one optional component per category.

    Compatibility is never stored: the socket and RAM type are read from the
    current CPU and motherboard. Changing or clearing an upstream component
    clears the dependents it no longer fits. The build is saved in the
    session storage after every change.
    """

    def __init__(
        self,
        storage: SessionStorage,
        catalog: Optional[StorefrontAPIClient] = None,
        required_categories: Iterable[BuildCategory] = DEFAULT_REQUIRED_CATEGORIES,
        placeholder_image: str = DEFAULT_PLACEHOLDER_IMAGE,
    ):
        self.storage = storage
        self.catalog = catalog
        self.required_categories = frozenset(BuildCategory(c) for c in required_categories)
        self.placeholder_image = placeholder_image
        self._build: Dict[BuildCategory, Optional[Component]] = {category: None for category in SLOTS}

    # --- Persistence ---

    async def load(self) -> None:
        """Resumes a build saved in this session."""
        saved = await self.storage.get(BUILD_KEY)
        if not isinstance(saved, dict):
            return
        for raw_category, raw_component in saved.items():
            try:
                category = BuildCategory(raw_category)
                self._build[category] = Component.model_validate(raw_component) if raw_component else None
            except ValueError:
                logger.warning(f"Ignoring invalid saved build slot {raw_category!r}.")

    async def _save(self) -> None:
        await self.storage.set(BUILD_KEY, {
            category.value: component.model_dump() if component else None
            for category, component in self._build.items()
        })

    # --- Derived values ---

    @property
    def build(self) -> Dict[BuildCategory, Optional[Component]]:
        return dict(self._build)

    @property
    def compatibility(self) -> Dict[str, Optional[int]]:
        cpu = self._build[BuildCategory.CPUS]
        motherboard = self._build[BuildCategory.MOTHERBOARDS]
        cpu_socket_id = cpu.cpu_socket_id if cpu and cpu.cpu_socket_id is not None else None
        if cpu_socket_id is None and motherboard is not None:
            cpu_socket_id = motherboard.cpu_socket_id
        return {
            "cpu_socket_id": cpu_socket_id,
            "ram_type_id": motherboard.ram_type_id if motherboard else None,
        }

    @property
    def total_price(self) -> float:
        return round(sum(c.effective_price for c in self._build.values() if c is not None), 2)

    @property
    def is_complete(self) -> bool:
        return all(self._build[category] is not None for category in self.required_categories)

    def can_choose(self, category: BuildCategory) -> bool:
        required = SLOTS[_parse_category(category)].requires
        return required is None or self._build[required] is not None

    # --- Transitions ---

    async def select(self, category: BuildCategory, component: Component) -> None:
        category = _parse_category(category)
        if not self.can_choose(category):
            raise InvalidArgument(locales.ERROR_CATEGORY_LOCKED.format(required=SLOTS[category].requires.value))
        if component.category and component.category != category.value:
            raise InvalidArgument(locales.ERROR_WRONG_CATEGORY.format(name=component.name, category=category.value))

        self._build[category] = component
        for dependent in _dependents(category):
            key = SLOTS[dependent].compat_key
            expected = getattr(component, key)
            selected = self._build[dependent]
            if selected is not None and expected is not None and getattr(selected, key) != expected:
                logger.info(f"{dependent.value} '{selected.name}' no longer fits {category.value} '{component.name}'.")
                self._clear(dependent)
        await self._save()

    async def deselect(self, category: BuildCategory) -> None:
        self._clear(_parse_category(category))
        await self._save()

    def _clear(self, category: BuildCategory) -> None:
        self._build[category] = None
        for dependent in _dependents(category):
            self._clear(dependent)

    async def reset(self) -> None:
        self._build = {category: None for category in SLOTS}
        await self.storage.remove(BUILD_KEY)

    # --- Catalog ---

    async def list_components(self, category: BuildCategory) -> List[Component]:
        """
        Components for the picker of `category`, narrowed by the compatibility
        context. Catalog failures show an empty picker.
        """
        category = _parse_category(category)
        if self.catalog is None:
            return []
        filters = {}
        compat_key = SLOTS[category].compat_key
        if compat_key:
            value = self.compatibility[compat_key]
            if value is not None:
                filters[compat_key] = value
        try:
            raw_components = await self.catalog.get_components(category.value, **filters)
        except StorefrontError as e:
            logger.warning(f"Could not load {category.value} components: {e.message}")
            return []

        components = []
        for raw_component in raw_components:
            try:
                components.append(Component.model_validate(raw_component))
            except ValueError:
                logger.warning(f"Skipping malformed component: {raw_component!r}")
        return components

    # --- Finalize ---

    async def finalize(self, cart: CartStore) -> VirtualItem:
        """Adds the build to the cart as one virtual line and starts over."""
        if not self.is_complete:
            raise InvalidArgument(locales.ERROR_BUILD_INCOMPLETE)

        casing = self._build[BuildCategory.CASINGS]
        item = VirtualItem(
            virtual_id=f"{BUILD_PREFIX}{uuid.uuid4().hex}",
            name=locales.BUILD_ITEM_NAME,
            price=self.total_price,
            image=casing.image if casing and casing.image else self.placeholder_image,
        )
        await cart.add_item(item, 1)
        await self.reset()
        logger.info(f"Build {item.virtual_id} added to cart for {item.price}.")
        return item


def _parse_category(category) -> BuildCategory:
    try:
        return BuildCategory(category)
    except ValueError:
        raise InvalidArgument(locales.ERROR_UNKNOWN_CATEGORY.format(category=category))
