"""
HTTP client for the backend graph/path service.
"""
import logging
from typing import Any, Dict, List, Optional
import httpx
from pydantic import ValidationError

from config import API_CONFIG
from models.entities import Suggestion
from models.errors import PathNetworkError, PathServerError

logger = logging.getLogger(__name__)

class GraphApiClient:
    """Service for talking to the search, shortest-path and photo endpoints."""

    def __init__(self,
                 base_url: Optional[str] = None,
                 client: Optional[httpx.AsyncClient] = None,
                 api_config: Optional[Dict[str, Any]] = None):
        """
        Initialize the client.

        Args:
            base_url: Backend base URL (default from API_CONFIG)
            client: Preconfigured httpx client, mainly for tests
            api_config: Override for endpoint paths
        """
        self.config = {**API_CONFIG, **(api_config or {})}
        self.base_url = base_url or self.config["base_url"]
        # Phase timeouts are enforced by the pipeline, not the transport
        self._client = client or httpx.AsyncClient(base_url=self.base_url, timeout=None)

    async def aclose(self):
        await self._client.aclose()

    async def search_entities(self, query: str) -> List[Suggestion]:
        """
        Search people by name.

        Args:
            query: Free text typed by the user

        Returns:
            Relevance-ranked suggestions; the first one is the best match
        """
        if not query or not query.strip():
            return []

        resp = await self._client.get(self.config["search_path"], params={"q": query.strip()})
        resp.raise_for_status()
        return self.parse_search_items(resp.json())

    @staticmethod
    def parse_search_items(items: Any) -> List[Suggestion]:
        """
        Turn the search endpoint's JSON list into suggestions, skipping malformed items.
        """
        if not isinstance(items, list):
            return []

        suggestions = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                suggestions.append(Suggestion(
                    id=item.get("nconst") or item.get("id"),
                    display_name=item.get("name") or item.get("displayName") or "",
                    photo_url=item.get("photoUrl")
                ))
            except ValidationError:
                logger.debug(f"Skipping malformed search item: {item}")
        return suggestions

    async def shortest_path(self, first_id: str, second_id: str, max_results: int = 5) -> List[str]:
        """
        Query the shortest paths between two identifiers.

        Args:
            first_id: Start identifier
            second_id: End identifier
            max_results: Maximum number of path variants requested

        Returns:
            Raw text blocks, one per path variant

        Raises:
            PathServerError: Non-success status or an error body
            PathNetworkError: The service could not be reached
        """
        try:
            resp = await self._client.get(
                self.config["path_query_path"],
                params={"id1": first_id, "id2": second_id, "max": max_results}
            )
        except httpx.TransportError as e:
            raise PathNetworkError(detail=f"Path service unreachable: {str(e)}") from e

        if resp.status_code != 200:
            raise PathServerError(resp.status_code, detail=f"Backend error: {resp.status_code} {resp.reason_phrase}")

        try:
            data = resp.json()
        except ValueError as e:
            raise PathServerError(resp.status_code, detail="Path service returned invalid JSON") from e

        if not isinstance(data, dict):
            raise PathServerError(resp.status_code, detail="Path service returned an unexpected payload")
        if data.get("error"):
            raise PathServerError(None, detail=str(data["error"]))

        results = data.get("results")
        if not isinstance(results, list):
            return []
        return [block for block in results if isinstance(block, str)]

    async def entity_photo(self, entity_id: str, display_name: str = "") -> Optional[str]:
        """
        Look up a portrait URL for a person.

        Args:
            entity_id: Stable identifier
            display_name: Name sent along for the backend's lookup

        Returns:
            Photo URL, or None when the backend has none
        """
        resp = await self._client.get(
            self.config["photo_path"],
            params={"actorId": entity_id, "actorName": display_name}
        )
        if resp.status_code != 200:
            return None
        data = resp.json()
        if not isinstance(data, dict):
            return None
        return data.get("photoUrl") or None

    async def graph_status(self) -> Dict[str, Any]:
        """
        Report whether the backend is still building its graph.

        Returns:
            Dict with "building" and "status" keys
        """
        resp = await self._client.get(self.config["status_path"])
        resp.raise_for_status()
        data = resp.json()
        return {
            "building": bool(data.get("building", False)),
            "status": data.get("status", "")
        }
