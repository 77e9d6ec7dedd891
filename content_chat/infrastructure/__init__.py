"""
Infrastructure layer: clients for external services.
"""
from .content_store_client import IContentStoreClient
from .contentstack_client import ContentstackClient

__all__ = ["ContentstackClient", "IContentStoreClient"]
