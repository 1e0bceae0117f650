"""Value mapping - ValueRef resolution and the transform DSL."""

from .schemas import MappingSource
from .service import MappingResult, map_entries, resolve_ref
from .transforms import TRANSFORMS, apply_transform, parse_transform, to_text

__all__ = [
    "MappingSource",
    "MappingResult",
    "map_entries",
    "resolve_ref",
    "TRANSFORMS",
    "apply_transform",
    "parse_transform",
    "to_text",
]
