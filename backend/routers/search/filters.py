"""
Match/query builder

Turns validated filter objects into lists of SQLAlchemy boolean expressions.
Nothing in here touches a session; the result-producing modules decide how the
conditions are joined, counted, ordered and paginated.
"""
from sqlalchemy import and_, or_, select
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement
from sqlalchemy.sql.elements import ColumnElement
from models import Product, Vendor, ProductStatus
from utils.geo import bounding_box
from typing import List, Optional

LIKE_ESCAPE = "\\"


def escape_like(value: str) -> str:
    return (
        value.replace(LIKE_ESCAPE, LIKE_ESCAPE * 2)
        .replace("%", LIKE_ESCAPE + "%")
        .replace("_", LIKE_ESCAPE + "_")
    )


def contains_text(column, value: str) -> ColumnElement:
    """Case-insensitive substring match"""
    return column.ilike(f"%{escape_like(value)}%", escape=LIKE_ESCAPE)


class json_array_items(FunctionElement):
    """Rows of a JSON string array, one per element, exposed as column `value`"""
    name = "json_array_items"
    inherit_cache = True


@compiles(json_array_items)
def _compile_json_each(element, compiler, **kw):
    return "json_each(%s)" % compiler.process(element.clauses, **kw)


@compiles(json_array_items, "postgresql")
def _compile_jsonb_array_elements_text(element, compiler, **kw):
    # A JSON null or object has no elements to match
    column = "CAST(%s AS JSONB)" % compiler.process(element.clauses, **kw)
    return (
        "jsonb_array_elements_text(CASE WHEN jsonb_typeof(%s) = 'array' THEN %s ELSE '[]'::jsonb END)"
        % (column, column)
    )


def json_list_match(column, pattern: str) -> ColumnElement:
    items = json_array_items(column).table_valued("value")
    return select(items.c.value).where(items.c.value.ilike(pattern, escape=LIKE_ESCAPE)).exists()


def json_list_contains_text(column, value: str) -> ColumnElement:
    """Case-insensitive substring match against any element of a JSON string array"""
    return json_list_match(column, f"%{escape_like(value)}%")


def json_list_has_value(column, value: str) -> ColumnElement:
    """Case-insensitive whole-element match against a JSON string array"""
    return json_list_match(column, escape_like(value))


def product_text_match(query: str) -> ColumnElement:
    return or_(
        contains_text(Product.name, query),
        contains_text(Product.description, query),
        contains_text(Product.brand, query),
        json_list_contains_text(Product.tags, query),
    )


def listed_products(status: ProductStatus = ProductStatus.APPROVED) -> List[ColumnElement]:
    return [Product.is_active == True, Product.status == status.value]


def product_location_conditions(filters) -> List[ColumnElement]:
    conditions = []
    if filters.state_id is not None:
        conditions.append(Product.state_id == filters.state_id)
    if filters.area_id is not None:
        conditions.append(Product.area_id == filters.area_id)
    if filters.market_id is not None:
        conditions.append(Product.market_id == filters.market_id)
    return conditions


def price_conditions(column, min_price: Optional[float], max_price: Optional[float]) -> List[ColumnElement]:
    conditions = []
    if min_price is not None:
        conditions.append(column >= min_price)
    if max_price is not None:
        conditions.append(column <= max_price)
    return conditions


def build_product_conditions(filters, status: ProductStatus = ProductStatus.APPROVED) -> List[ColumnElement]:
    """
    Product-side predicate shared by product search and comparison.
    An empty filter set matches every active listing with the given status (approved by default).
    """
    conditions = listed_products(status)

    if filters.query:
        conditions.append(product_text_match(filters.query))

    if filters.category:
        conditions.append(Product.category == filters.category)
    if filters.subcategory:
        conditions.append(Product.subcategory == filters.subcategory)
    if filters.brand:
        conditions.append(contains_text(Product.brand, filters.brand))

    conditions.extend(price_conditions(Product.price, filters.min_price, filters.max_price))

    if filters.in_stock is not None:
        conditions.append(Product.in_stock == filters.in_stock)

    conditions.extend(product_location_conditions(filters))

    sku = getattr(filters, "sku", None)
    if sku:
        conditions.append(Product.sku == sku)
    barcode = getattr(filters, "barcode", None)
    if barcode:
        conditions.append(Product.barcode == barcode)

    return conditions


def vendor_visibility_conditions(verified_only: bool = False) -> List[ColumnElement]:
    """Listings of a deactivated vendor are never shown, whatever the product row says"""
    conditions = [Vendor.is_active == True]
    if verified_only:
        conditions.append(Vendor.is_verified == True)
    return conditions


def build_shop_conditions(filters) -> List[ColumnElement]:
    conditions = vendor_visibility_conditions(filters.verified_only)

    if filters.query:
        conditions.append(or_(
            contains_text(Vendor.business_name, filters.query),
            contains_text(Vendor.business_description, filters.query),
            json_list_contains_text(Vendor.categories, filters.query),
            json_list_contains_text(Vendor.tags, filters.query),
        ))

    if filters.state_id is not None:
        conditions.append(Vendor.state_id == filters.state_id)
    if filters.area_id is not None:
        conditions.append(Vendor.area_id == filters.area_id)
    if filters.market_id is not None:
        conditions.append(Vendor.market_id == filters.market_id)

    vendor_type = getattr(filters, "vendor_type", None)
    if vendor_type is not None:
        conditions.append(Vendor.vendor_type == vendor_type.value)

    is_open = getattr(filters, "is_open", None)
    if is_open is not None:
        conditions.append(Vendor.is_open == is_open)

    if filters.category:
        conditions.append(json_list_has_value(Vendor.categories, filters.category))

    return conditions


def build_facet_conditions(filters) -> List[ColumnElement]:
    """Base predicate for facets: text and category only, never the chosen location"""
    conditions = listed_products()
    if filters.query:
        conditions.append(product_text_match(filters.query))
    if filters.category:
        conditions.append(Product.category == filters.category)
    conditions.extend(vendor_visibility_conditions())
    return conditions


def geo_box_condition(latitude_column, longitude_column, filters) -> ColumnElement:
    """Coarse prefilter for a proximity search; rows without a stored point never match"""
    min_lat, max_lat, min_lon, max_lon = bounding_box(filters.latitude, filters.longitude, filters.max_distance)
    return and_(
        latitude_column.is_not(None),
        longitude_column.is_not(None),
        latitude_column.between(min_lat, max_lat),
        longitude_column.between(min_lon, max_lon),
    )
