"""JSON matchers acting as validators or placeholders for volatile data."""

from .any_value import AnyMatcher
from .base import get_path, set_path, split_path
from .custom import CustomCallback, CustomMatcher
from .type_check import TypeMatcher

# Short constructor names used at call sites: match_json(doc, Any("id"))
Any = AnyMatcher
Custom = CustomMatcher
Type = TypeMatcher

__all__ = [
    "Any",
    "AnyMatcher",
    "Custom",
    "CustomCallback",
    "CustomMatcher",
    "Type",
    "TypeMatcher",
    "get_path",
    "set_path",
    "split_path",
]
