# backend/chronicle/storage/__init__.py
from .blobs import BlobStore, compute_asset_id
from .metadata import MetadataStore
from .generations import Generation, GenerationManager
from .store import Store

__all__ = [
    "BlobStore", "compute_asset_id",
    "MetadataStore",
    "Generation", "GenerationManager",
    "Store"
]
