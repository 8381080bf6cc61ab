from datetime import datetime, timedelta
import uuid

from models import Product
from routers.search.ordering import (
    TIEBREAK,
    SortKey,
    order_by_clauses,
    product_sort_plan,
    shop_sort_plan,
    sort_in_memory,
)
from routers.search.schemas import SortBy


def test_every_plan_ends_with_the_tiebreak():
    for sort_by in SortBy:
        for is_geo in (False, True):
            assert product_sort_plan(sort_by, is_geo)[-2:] == TIEBREAK
            assert shop_sort_plan(sort_by, is_geo)[-2:] == TIEBREAK


def test_product_relevance_puts_distance_first_for_geo():
    assert product_sort_plan(SortBy.RELEVANCE, False)[:2] == (SortKey("views", True), SortKey("created", True))
    assert product_sort_plan(SortBy.RELEVANCE, True)[0] == SortKey("distance")


def test_distance_sort_without_coordinates_falls_back_to_newest():
    assert product_sort_plan(SortBy.DISTANCE, False)[0] == SortKey("created", True)
    assert shop_sort_plan(SortBy.DISTANCE, False)[0] == SortKey("created", True)


def test_price_sorts():
    assert product_sort_plan(SortBy.PRICE_LOW, False)[0] == SortKey("price")
    assert product_sort_plan(SortBy.PRICE_HIGH, False)[0] == SortKey("price", True)
    assert shop_sort_plan(SortBy.PRICE_LOW, False)[:2] == (SortKey("unpriced"), SortKey("min_price"))
    assert shop_sort_plan(SortBy.PRICE_HIGH, False)[0] == SortKey("max_price", True)


def test_shop_default_order():
    assert shop_sort_plan(SortBy.RELEVANCE, False)[:3] == (
        SortKey("featured", True), SortKey("verified", True), SortKey("rating", True),
    )


def test_order_by_clauses_render_direction():
    clauses = order_by_clauses(
        (SortKey("price"), SortKey("views", True)),
        {"price": Product.price, "views": Product.views},
    )
    assert [str(clause) for clause in clauses] == ["products.price ASC", "products.views DESC"]


def test_sort_in_memory_is_a_stable_multi_key_sort():
    base = datetime(2024, 1, 1)
    ids = sorted(uuid.uuid4() for _ in range(4))
    rows = [
        {"distance": 2.0, "views": 5, "created": base, "id": ids[0]},
        {"distance": 1.0, "views": 1, "created": base + timedelta(days=1), "id": ids[1]},
        {"distance": 1.0, "views": 9, "created": base, "id": ids[2]},
        {"distance": 1.0, "views": 9, "created": base, "id": ids[3]},
    ]
    getters = {name: (lambda row, name=name: row[name]) for name in ("distance", "views", "created", "id")}

    ordered = sort_in_memory(rows, product_sort_plan(SortBy.RELEVANCE, True), getters)
    assert [row["id"] for row in ordered] == [ids[2], ids[3], ids[1], ids[0]]


def test_sort_in_memory_does_not_mutate_input():
    rows = [{"price": 3}, {"price": 1}]
    sort_in_memory(rows, (SortKey("price"),), {"price": lambda row: row["price"]})
    assert rows == [{"price": 3}, {"price": 1}]
