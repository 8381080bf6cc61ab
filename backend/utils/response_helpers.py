"""
Response helper utilities for handling UUID conversions and model validation
"""
from typing import Any, Dict, List
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel
import math
import uuid


def convert_uuids_to_strings(obj: Any) -> Any:
    """
    Recursively convert UUID objects to strings in any data structure
    """
    if isinstance(obj, uuid.UUID):
        return str(obj)
    elif isinstance(obj, dict):
        return {key: convert_uuids_to_strings(value) for key, value in obj.items()}
    elif isinstance(obj, (list, tuple)):
        return [convert_uuids_to_strings(item) for item in obj]
    else:
        return obj


def model_to_dict(instance) -> Dict[str, Any]:
    """
    Column values of a SQLAlchemy model, skipping internal attributes
    """
    return {
        key: value
        for key, value in instance.__dict__.items()
        if not key.startswith('_')
    }


def safe_model_validate(model_class: BaseModel, data: Any) -> BaseModel:
    """
    Safely validate a model by converting UUIDs to strings first
    """
    if not isinstance(data, dict) and hasattr(data, '__dict__'):
        # If it's a SQLAlchemy model, convert to dict first
        data = model_to_dict(data)

    return model_class.model_validate(convert_uuids_to_strings(data))


def safe_model_validate_list(model_class: BaseModel, data_list: List[Any]) -> List[BaseModel]:
    """
    Safely validate a list of models by converting UUIDs to strings first
    """
    return [safe_model_validate(model_class, item) for item in data_list]


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0


class CamelModel(BaseModel):
    """
    Base schema for the public API: snake_case in Python, camelCase on the wire
    """
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class PaginatedResponse(CamelModel):
    total: int
    page: int
    limit: int
    total_pages: int


def location_ref_to_dict(node) -> Dict[str, Any]:
    """Convert a State/Area/Market row (or None) to an {id, name[, type]} reference"""
    if node is None:
        return None
    ref = {'id': str(node.id), 'name': node.name}
    if hasattr(node, 'type'):
        ref['type'] = node.type
    return ref
