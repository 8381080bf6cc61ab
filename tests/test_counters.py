"""Best-effort analytics counters."""

from models import Product
from utils.counters import increment_counter


async def test_increment_counter_updates_every_row(seed, session_factory, lagos):
    state, area, market = lagos
    vendor = await seed.vendor(state, area, market)
    first = await seed.product(vendor, name="Rice")
    second = await seed.product(vendor, name="Beans")

    await increment_counter(session_factory, Product, "views", [first.id, second.id])
    await increment_counter(session_factory, Product, "views", [first.id], amount=2)

    assert (await seed.fetch(Product, first.id)).views == 3
    assert (await seed.fetch(Product, second.id)).views == 1


async def test_increment_counter_ignores_empty_ids(session_factory):
    await increment_counter(session_factory, Product, "views", [])


async def test_increment_counter_swallows_storage_errors(caplog):
    def broken_factory():
        raise RuntimeError("connection refused")

    await increment_counter(broken_factory, Product, "views", ["ignored"])
    assert "Failed to increment products.views" in caplog.text
