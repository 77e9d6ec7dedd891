"""
Content store client interface.

Defines the contract for headless CMS providers that supply and accept
content entries (Contentstack today).
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from ..domain.entities import ContentEntry


class IContentStoreClient(ABC):
    """
    Abstract interface for content store clients.

    Implementations must translate transport and upstream errors into
    ContentFetchException (reads) or ContentStoreException (writes).
    """

    @abstractmethod
    async def fetch_entries(self, content_type: str, limit: int = 50) -> List[ContentEntry]:
        """
        Fetch entries of one content type.

        Args:
            content_type: Content type UID (e.g. "tour")
            limit: Maximum number of entries to fetch

        Returns:
            Entries in store order, empty list if none

        Raises:
            ContentFetchException: If the store cannot be reached or rejects the call
        """
        pass

    @abstractmethod
    async def create_entry(
        self,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Create an entry and return it as stored."""
        pass

    @abstractmethod
    async def update_entry(
        self,
        uid: str,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Replace an entry's fields and return it as stored."""
        pass

    @abstractmethod
    async def publish_entry(self, uid: str, content_type: str = "tours") -> Dict[str, Any]:
        """Publish an entry to the configured environment."""
        pass

    @abstractmethod
    async def delete_entry(self, uid: str, content_type: str = "tour") -> Dict[str, Any]:
        """Delete an entry."""
        pass

    @abstractmethod
    async def get_content_types(self) -> List[Dict[str, Any]]:
        """List the content types of the stack."""
        pass

    async def close(self) -> None:
        """Release network resources."""
        return None

    def get_health_status(self) -> dict:
        """
        Get client health status.

        Returns:
            Dictionary describing configuration state
        """
        return {"configured": True}
