"""
Sort plans shared by SQL ordering and in-memory ordering

A sort plan is a tuple of SortKey. Non-geo searches turn it into ORDER BY clauses;
geo searches (where distance is computed in Python) apply the same plan to the
candidate rows, so both paths rank identically. Every plan ends with creation
order then id, so equal keys always come back in the same order.
"""
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple
from .schemas import SortBy


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


TIEBREAK = (SortKey("created"), SortKey("id"))


def product_sort_plan(sort_by: SortBy, is_geo: bool) -> Tuple[SortKey, ...]:
    if sort_by == SortBy.PRICE_LOW:
        plan = (SortKey("price"),)
    elif sort_by == SortBy.PRICE_HIGH:
        plan = (SortKey("price", True),)
    elif sort_by == SortBy.DISTANCE:
        plan = (SortKey("distance"),) if is_geo else (SortKey("created", True),)
    elif sort_by == SortBy.RATING:
        plan = (SortKey("rating", True),)
    elif sort_by == SortBy.NEWEST:
        plan = (SortKey("created", True),)
    elif sort_by == SortBy.POPULARITY:
        plan = (SortKey("views", True),)
    else:
        plan = (SortKey("views", True), SortKey("created", True))
        if is_geo:
            plan = (SortKey("distance"),) + plan
    return plan + TIEBREAK


def shop_sort_plan(sort_by: SortBy, is_geo: bool) -> Tuple[SortKey, ...]:
    if sort_by == SortBy.RATING:
        plan = (SortKey("rating", True),)
    elif sort_by == SortBy.POPULARITY:
        plan = (SortKey("views", True),)
    elif sort_by == SortBy.NEWEST:
        plan = (SortKey("created", True),)
    elif sort_by == SortBy.DISTANCE:
        plan = (SortKey("distance"),) if is_geo else (SortKey("created", True),)
    elif sort_by == SortBy.PRICE_LOW:
        # Shops without approved listings carry a 0 price range and go last
        plan = (SortKey("unpriced"), SortKey("min_price"))
    elif sort_by == SortBy.PRICE_HIGH:
        plan = (SortKey("max_price", True),)
    else:
        plan = (SortKey("featured", True), SortKey("verified", True), SortKey("rating", True))
        if is_geo:
            plan = (SortKey("distance"),) + plan
    return plan + TIEBREAK


def order_by_clauses(plan: Iterable[SortKey], columns: Dict[str, object]) -> List:
    """ORDER BY for a non-geo plan; `distance` never reaches SQL"""
    return [
        columns[key.field].desc() if key.descending else columns[key.field].asc()
        for key in plan
    ]


def sort_in_memory(rows: list, plan: Tuple[SortKey, ...], getters: Dict[str, Callable]) -> list:
    """Stable multi-key sort: apply keys from least to most significant"""
    ordered = list(rows)
    for key in reversed(plan):
        ordered.sort(key=getters[key.field], reverse=key.descending)
    return ordered
