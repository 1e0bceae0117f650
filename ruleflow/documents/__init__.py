"""Documents - loading application bundles from YAML/JSON files."""

from .schemas import ApplicationBundle
from .loader import DocumentLoader, read_document

__all__ = [
    "ApplicationBundle",
    "DocumentLoader",
    "read_document",
]
