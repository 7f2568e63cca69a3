# Knowledge Mining - Storage Package
"""
Azure Blob Storage document operations.
"""

from .storage_service import (
    DEFAULT_PAGE_SIZE,
    MAX_ITEMS_PER_REQUEST,
    StorageService,
    download_document,
    get_documents,
    merge_key_values,
    remove_empty_tags,
)

__all__ = [
    "DEFAULT_PAGE_SIZE",
    "MAX_ITEMS_PER_REQUEST",
    "StorageService",
    "download_document",
    "get_documents",
    "merge_key_values",
    "remove_empty_tags",
]
