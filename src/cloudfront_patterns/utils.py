"""
Shared helpers for construct property handling.
"""

from dataclasses import fields, is_dataclass, replace
from typing import Any, Dict, Mapping, Optional, TypeVar

T = TypeVar("T")


def explicit_props(props: Any) -> Dict[str, Any]:
    """
    Get the properties a caller actually set.

    Mappings count every key present. Dataclasses count every field
    whose value is not None.
    """
    if isinstance(props, Mapping):
        return dict(props)
    if is_dataclass(props) and not isinstance(props, type):
        return {
            f.name: getattr(props, f.name)
            for f in fields(props)
            if getattr(props, f.name) is not None
        }
    raise TypeError(f"Cannot read properties from {type(props).__name__}")


def override_props(default_props: T, user_props: Optional[Any] = None) -> T:
    """
    Shallow-merge user supplied properties over defaults.

    Every top-level property the caller set replaces the default value
    entirely; nested structures are never merged. A partial nested value
    (e.g. a logging config with only a prefix) drops the other default
    sub-fields.

    Args:
        default_props: Defaults, as a dataclass instance or a mapping
        user_props: Caller overrides, as a dataclass instance or a mapping

    Returns:
        New properties of the same kind as default_props
    """
    if user_props is None:
        return default_props

    overrides = explicit_props(user_props)

    if is_dataclass(default_props) and not isinstance(default_props, type):
        return replace(default_props, **overrides)

    merged = dict(default_props)
    merged.update(overrides)
    return merged
