# tests/test_builder.py

import pytest
from unittest.mock import AsyncMock

from app.core import locales
from app.core.exceptions import InvalidArgument, UpstreamFailure
from app.schemas.package import Package
from app.schemas.product import BuildCategory, Component
from app.storefront.builder import DEFAULT_PLACEHOLDER_IMAGE, PCBuilder
from app.storefront.cart_store import CartStore
from app.storefront.storage import BUILD_KEY


CPU_S1 = Component(id=1, name="CPU S1", category="CPUs", price=200, cpu_socket_id=1)
CPU_S1_BIS = Component(id=11, name="CPU S1 Pro", category="CPUs", price=300, cpu_socket_id=1)
CPU_S2 = Component(id=2, name="CPU S2", category="CPUs", price=250, cpu_socket_id=2)
BOARD_S1 = Component(id=3, name="Board S1 R1", category="Motherboards", price=150, cpu_socket_id=1, ram_type_id=1)
RAM_R1 = Component(id=5, name="RAM R1", category="RAM", price=80, ram_type_id=1)
SSD = Component(id=7, name="SSD 1TB", category="Storage", price=100, sale_price=90)
PSU = Component(id=8, name="PSU 650W", category="PSUs", price=70)
CASE = Component(id=9, name="Tower Case", category="Casings", price=60, image="case.png")
GPU = Component(id=12, name="GPU", category="Graphics Cards", price=400)


@pytest.fixture
def builder(storage) -> PCBuilder:
    return PCBuilder(storage)


async def fill(builder: PCBuilder, *components: Component):
    for component in components:
        await builder.select(BuildCategory(component.category), component)


# --- Eligibility ---

async def test_only_cpus_are_choosable_at_start(builder):
    assert builder.can_choose(BuildCategory.CPUS)
    assert not builder.can_choose(BuildCategory.MOTHERBOARDS)
    assert not builder.can_choose(BuildCategory.RAM)
    assert not builder.can_choose(BuildCategory.STORAGE)


async def test_motherboard_unlocks_the_rest(builder):
    await fill(builder, CPU_S1, BOARD_S1)
    assert all(builder.can_choose(category) for category in BuildCategory)


async def test_select_locked_category(builder):
    with pytest.raises(InvalidArgument) as exc_info:
        await builder.select(BuildCategory.MOTHERBOARDS, BOARD_S1)
    assert exc_info.value.message == locales.ERROR_CATEGORY_LOCKED.format(required="CPUs")


async def test_select_component_of_other_category(builder):
    with pytest.raises(InvalidArgument):
        await builder.select(BuildCategory.CPUS, BOARD_S1)


async def test_unknown_category(builder):
    with pytest.raises(InvalidArgument):
        await builder.select("Toasters", CPU_S1)


# --- Compatibility and cascade ---

async def test_compatibility_follows_selection(builder):
    assert builder.compatibility == {"cpu_socket_id": None, "ram_type_id": None}
    await fill(builder, CPU_S1, BOARD_S1)
    assert builder.compatibility == {"cpu_socket_id": 1, "ram_type_id": 1}


async def test_changing_cpu_to_other_socket_clears_dependents(builder):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1, SSD)

    await builder.select(BuildCategory.CPUS, CPU_S2)

    build = builder.build
    assert build[BuildCategory.CPUS] == CPU_S2
    assert build[BuildCategory.MOTHERBOARDS] is None
    assert build[BuildCategory.RAM] is None
    assert build[BuildCategory.STORAGE] == SSD
    assert builder.compatibility == {"cpu_socket_id": 2, "ram_type_id": None}
    assert not builder.is_complete
    assert builder.total_price == 340.0


async def test_changing_cpu_within_socket_keeps_dependents(builder):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1)

    await builder.select(BuildCategory.CPUS, CPU_S1_BIS)

    build = builder.build
    assert build[BuildCategory.MOTHERBOARDS] == BOARD_S1
    assert build[BuildCategory.RAM] == RAM_R1


async def test_deselecting_cpu_clears_transitively(builder):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1)

    await builder.deselect(BuildCategory.CPUS)

    build = builder.build
    assert build[BuildCategory.CPUS] is None
    assert build[BuildCategory.MOTHERBOARDS] is None
    assert build[BuildCategory.RAM] is None


async def test_deselecting_motherboard_clears_ram(builder):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1)

    await builder.deselect(BuildCategory.MOTHERBOARDS)

    assert builder.build[BuildCategory.RAM] is None
    assert builder.build[BuildCategory.CPUS] == CPU_S1


# --- Totals, completeness, finalize ---

async def test_total_uses_effective_prices(builder):
    await fill(builder, CPU_S1, BOARD_S1, SSD)
    assert builder.total_price == 440.0


async def test_completeness_needs_required_categories_only(builder):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1, SSD, PSU)
    assert not builder.is_complete

    await fill(builder, CASE)
    assert builder.is_complete

    await builder.deselect(BuildCategory.PSUS)
    assert not builder.is_complete


async def test_finalize_incomplete_build(builder, storage):
    await fill(builder, CPU_S1, BOARD_S1)
    cart = CartStore(storage)
    await cart.init(None)

    with pytest.raises(InvalidArgument):
        await builder.finalize(cart)
    assert cart.get_lines() == []


async def test_finalize_adds_one_virtual_line_and_resets(builder, storage):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1, SSD, PSU, CASE, GPU)
    cart = CartStore(storage)
    await cart.init(None)

    item = await builder.finalize(cart)

    assert item.virtual_id.startswith("build-")
    assert item.name == locales.BUILD_ITEM_NAME
    assert item.price == 1050.0
    assert item.image == "case.png"
    lines = cart.get_lines()
    assert len(lines) == 1
    assert lines[0].item_id == item.virtual_id
    assert lines[0].quantity == 1

    assert all(component is None for component in builder.build.values())
    assert await storage.get(BUILD_KEY) is None


async def test_each_finalized_build_is_a_separate_line(builder, storage):
    cart = CartStore(storage)
    await cart.init(None)
    for _ in range(2):
        await fill(builder, CPU_S1, BOARD_S1, RAM_R1, SSD, PSU, CASE)
        await builder.finalize(cart)

    assert len(cart.get_lines()) == 2


async def test_finalize_uses_placeholder_without_case_image(storage):
    builder = PCBuilder(storage, required_categories=[BuildCategory.CPUS])
    await fill(builder, CPU_S1)
    cart = CartStore(storage)
    await cart.init(None)

    item = await builder.finalize(cart)
    assert item.image == DEFAULT_PLACEHOLDER_IMAGE


# --- Persistence ---

async def test_build_is_resumed_from_storage(builder, storage):
    await fill(builder, CPU_S1, BOARD_S1, RAM_R1)

    resumed = PCBuilder(storage)
    await resumed.load()

    assert resumed.build == builder.build
    assert resumed.compatibility == {"cpu_socket_id": 1, "ram_type_id": 1}


async def test_load_ignores_unknown_saved_slots(storage):
    await storage.set(BUILD_KEY, {"CPUs": CPU_S1.model_dump(), "Toasters": None})

    builder = PCBuilder(storage)
    await builder.load()
    assert builder.build[BuildCategory.CPUS] == CPU_S1


async def test_reset(builder, storage):
    await fill(builder, CPU_S1)
    await builder.reset()

    assert builder.build[BuildCategory.CPUS] is None
    assert await storage.get(BUILD_KEY) is None


# --- Component lists ---

@pytest.fixture
def catalog():
    catalog = AsyncMock()
    catalog.get_components.return_value = [BOARD_S1.model_dump()]
    return catalog


async def test_motherboards_are_filtered_by_cpu_socket(storage, catalog):
    builder = PCBuilder(storage, catalog=catalog)
    await fill(builder, CPU_S1)

    components = await builder.list_components(BuildCategory.MOTHERBOARDS)

    catalog.get_components.assert_awaited_once_with("Motherboards", cpu_socket_id=1)
    assert components == [BOARD_S1]


async def test_ram_is_filtered_by_motherboard_ram_type(storage, catalog):
    builder = PCBuilder(storage, catalog=catalog)
    await fill(builder, CPU_S1, BOARD_S1)

    await builder.list_components(BuildCategory.RAM)
    catalog.get_components.assert_awaited_once_with("RAM", ram_type_id=1)


async def test_other_categories_are_not_filtered(storage, catalog):
    builder = PCBuilder(storage, catalog=catalog)
    await fill(builder, CPU_S1, BOARD_S1)

    await builder.list_components(BuildCategory.STORAGE)
    catalog.get_components.assert_awaited_once_with("Storage")


async def test_catalog_failure_gives_empty_list(storage, catalog):
    catalog.get_components.side_effect = UpstreamFailure()
    builder = PCBuilder(storage, catalog=catalog)

    assert await builder.list_components(BuildCategory.CPUS) == []


async def test_malformed_components_are_skipped(storage, catalog):
    catalog.get_components.return_value = [{"id": 1}, CPU_S1.model_dump()]
    builder = PCBuilder(storage, catalog=catalog)

    assert await builder.list_components(BuildCategory.CPUS) == [CPU_S1]


# --- Packages ---

def test_package_goes_to_cart_as_virtual_item():
    package = Package(id=3, name="Office Pack", image_url="office.png", price_complete=999.99, price_unit_only=799)

    item = package.as_cart_item()
    assert (item.virtual_id, item.name, item.price, item.image) == ("pkg-3", "Office Pack", 999.99, "office.png")

    unit_only = package.as_cart_item(unit_only=True)
    assert unit_only.price == 799.0
    assert unit_only.virtual_id == "pkg-3-unit"
    assert unit_only.name == "Office Pack (unit only)"

    no_unit_price = Package(id=4, name="Pack", image_url="p.png", price_complete=10).as_cart_item(unit_only=True)
    assert no_unit_price.virtual_id == "pkg-4"
