"""
Content service layer.

Orchestrates content retrieval from the content store and the two search
variants used by the API and by chatbots:

- Plain search: weighted substring scoring over title, description and
  every string field of an entry.
- Intelligent search: synonym-enhanced query, exact-phrase bonus and
  fuzzy-match bonus. Any failure on this path degrades to plain search.
"""

from typing import Any, Dict, List, Optional

import structlog

from ..domain.entities import (
    CONTEXT_DESCRIPTION_FIELDS,
    BulkCreateResult,
    ContentEntry,
    SearchQuery,
    get_description,
    get_title,
)
from ..infrastructure.content_store_client import IContentStoreClient
from ..metrics import ingested_entries_total, search_fallbacks_total, track_search
from ..search.query_enhancer import enhance_query
from ..search.ranker import rank_entries, take_first
from ..search.relevance_scorer import (
    INTELLIGENT_SEARCH_WEIGHTS,
    PLAIN_SEARCH_WEIGHTS,
    RelevanceScorer,
)

logger = structlog.get_logger(__name__)

DEFAULT_FETCH_LIMIT = 100


def format_entries_for_context(entries: List[ContentEntry], header: str = "") -> str:
    """
    Render entries as "Title: ...\\nDescription: ..." blocks for an LLM prompt.

    Blocks are separated by a blank line and prefixed with header.
    """
    blocks = [
        f"Title: {get_title(entry)}\n"
        f"Description: {get_description(entry, CONTEXT_DESCRIPTION_FIELDS)}"
        for entry in entries
    ]
    return header + "\n\n".join(blocks)


class ContentService:
    """
    Content retrieval and search service.

    Every search fetches a fresh snapshot of entries; nothing is cached
    and scored results are built from copies of the fetched entries.
    """

    def __init__(
        self,
        client: IContentStoreClient,
        fetch_limit: int = DEFAULT_FETCH_LIMIT,
        plain_scorer: Optional[RelevanceScorer] = None,
        intelligent_scorer: Optional[RelevanceScorer] = None,
    ):
        """
        Initialize content service.

        Args:
            client: Content store client (candidate fetcher)
            fetch_limit: Entries fetched per search call
            plain_scorer: Scorer for plain search
            intelligent_scorer: Scorer for intelligent search
        """
        self.client = client
        self.fetch_limit = fetch_limit
        self.plain_scorer = plain_scorer or RelevanceScorer(PLAIN_SEARCH_WEIGHTS)
        self.intelligent_scorer = intelligent_scorer or RelevanceScorer(
            INTELLIGENT_SEARCH_WEIGHTS
        )

    async def list_entries(
        self, content_type: str = "tours", limit: int = 50
    ) -> List[ContentEntry]:
        """
        List entries of a content type.

        Raises:
            ContentFetchException: If the content store call fails
        """
        return await self.client.fetch_entries(content_type, limit)

    async def search_content(
        self,
        query: Optional[str],
        content_type: str = "tours",
        max_results: Any = 10,
    ) -> List[ContentEntry]:
        """
        Plain search.

        An empty query returns the first max_results entries unscored.

        Args:
            query: Free-text query
            content_type: Content type to search
            max_results: Maximum number of results

        Returns:
            Entries annotated with score and relevance, best first

        Raises:
            ContentFetchException: If entries cannot be fetched
        """
        return await self._plain_search(SearchQuery(query, content_type, max_results))

    async def _plain_search(self, search: SearchQuery) -> List[ContentEntry]:
        try:
            entries = await self.client.fetch_entries(search.content_type, self.fetch_limit)
        except Exception:
            track_search("plain", "error")
            raise

        if not search.query:
            results = take_first(entries, search.max_results)
            track_search("plain", "success", len(results))
            return results

        ranked = rank_entries(
            entries,
            lambda entry: self.plain_scorer.score(entry, search.query),
            search.max_results,
        )

        logger.info(
            "Content search completed",
            query=search.query,
            content_type=search.content_type,
            candidates=len(entries),
            results=len(ranked),
        )
        track_search("plain", "success", len(ranked))
        return [match.to_dict() for match in ranked]

    async def intelligent_search(
        self,
        query: Optional[str],
        content_type: str = "tour",
        max_results: Any = 10,
    ) -> List[ContentEntry]:
        """
        Synonym-enhanced, fuzzy-aware search.

        Degrade on enhancement failure: if anything on the enhanced path
        fails (including the fetch), the error is logged and plain search
        is run with the same parameters instead.

        Args:
            query: Free-text query
            content_type: Content type to search
            max_results: Maximum number of results

        Returns:
            Entries annotated with score and relevance, best first

        Raises:
            ContentFetchException: Only if the plain-search fallback fails too
        """
        search = SearchQuery(query, content_type, max_results)
        try:
            return await self._enhanced_search(search)
        except Exception as e:
            logger.warning(
                "Intelligent search failed, falling back to plain search",
                query=query,
                content_type=content_type,
                error=str(e),
                exc_info=True,
            )
            search_fallbacks_total.inc()
            track_search("intelligent", "fallback")
            return await self._plain_search(search)

    async def _enhanced_search(self, search: SearchQuery) -> List[ContentEntry]:
        entries = await self.client.fetch_entries(search.content_type, self.fetch_limit)

        if not search.query or not entries:
            results = take_first(entries, search.max_results)
            track_search("intelligent", "success", len(results))
            return results

        enhanced = enhance_query(search.query)
        ranked = rank_entries(
            entries,
            lambda entry: self.intelligent_scorer.score(entry, search.query, enhanced),
            search.max_results,
        )

        logger.info(
            "Intelligent search completed",
            query=search.query,
            enhanced_query=enhanced,
            content_type=search.content_type,
            candidates=len(entries),
            results=len(ranked),
        )
        track_search("intelligent", "success", len(ranked))
        return [match.to_dict() for match in ranked]

    async def create_entry(
        self,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Create a single entry."""
        return await self.client.create_entry(title, description, content_type, additional_fields)

    async def update_entry(
        self,
        uid: str,
        title: str,
        description: Optional[str] = None,
        content_type: str = "tours",
        additional_fields: Optional[Dict[str, Any]] = None,
    ) -> ContentEntry:
        """Update a single entry."""
        return await self.client.update_entry(
            uid, title, description, content_type, additional_fields
        )

    async def publish_entry(self, uid: str, content_type: str = "tours") -> Dict[str, Any]:
        """Publish a single entry."""
        return await self.client.publish_entry(uid, content_type)

    async def delete_entry(self, uid: str, content_type: str = "tour") -> Dict[str, Any]:
        """Delete a single entry."""
        return await self.client.delete_entry(uid, content_type)

    async def get_content_types(self) -> List[Dict[str, Any]]:
        """List content types of the stack."""
        return await self.client.get_content_types()

    async def bulk_create_entries(
        self,
        entries: List[Dict[str, Any]],
        content_type: str = "tour",
        publish: bool = False,
    ) -> BulkCreateResult:
        """
        Create entries one by one, optionally publishing each.

        A failing entry is recorded and does not stop the batch.

        Args:
            entries: Items with title, description and additional_fields
            content_type: Target content type
            publish: Publish each entry after creation

        Returns:
            BulkCreateResult listing successful and failed items
        """
        result = BulkCreateResult()

        for item in entries:
            title = item.get("title")
            try:
                entry = await self.client.create_entry(
                    title=title,
                    description=item.get("description"),
                    content_type=content_type,
                    additional_fields=item.get("additional_fields") or {},
                )

                if publish:
                    await self.client.publish_entry(entry.get("uid"), content_type)

                result.successful.append(
                    {"uid": entry.get("uid"), "title": entry.get("title"), "published": publish}
                )
                ingested_entries_total.labels(outcome="created").inc()
            except Exception as e:
                logger.warning("Bulk entry creation failed", title=title, error=str(e))
                result.failed.append({"title": title, "error": str(e)})
                ingested_entries_total.labels(outcome="failed").inc()

        logger.info(
            "Bulk creation finished",
            content_type=content_type,
            successful=len(result.successful),
            failed=len(result.failed),
        )
        return result
