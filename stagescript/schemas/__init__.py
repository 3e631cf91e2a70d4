"""Versioned document loaders and validators."""

from stagescript.schemas.document_v1 import dump_document, item_input, load_document, validate_document

__all__ = [
    "load_document",
    "dump_document",
    "item_input",
    "validate_document",
]
