"""
Search orchestrator: two search slots plus the resolve -> query submission flow.
"""
import logging
import time
from typing import Dict, Any, List, Optional

from config import CACHE_CONFIG, SEARCH_CONFIG, FEATURES
from models.state import ConnectionState, initial_state
from pipeline.graph import build_connection_graph
from pipeline.response_generation import format_chain, loading_message, render_chain
from services.cache_service import RequestCache
from services.graph_api_client import GraphApiClient
from services.photo_service import PhotoFanout
from services.search_slot import SearchSlot
from utils.monitoring import SearchSystemMonitor

logger = logging.getLogger(__name__)

class SearchOrchestrator:
    """Service composing both search slots, the shared cache and the connection graph."""

    def __init__(self,
                 api_client=None,
                 cache: Optional[RequestCache] = None,
                 config: Optional[Dict[str, Any]] = None,
                 persist_path: Optional[str] = None,
                 fetch_photos: Optional[bool] = None):
        """
        Initialize the orchestrator.

        Args:
            api_client: Backend client (default GraphApiClient from API_CONFIG)
            cache: Shared request cache (default RequestCache from CACHE_CONFIG)
            config: Overrides for SEARCH_CONFIG values such as timeouts
            persist_path: Cache file for hydrate/persist; empty disables persistence
            fetch_photos: Whether to run photo lookups for suggestions and paths
        """
        logger.info("Initializing search orchestrator")
        self.settings = {**SEARCH_CONFIG, **(config or {})}
        self.api_client = api_client or GraphApiClient()
        self.cache = cache or RequestCache()
        self.persist_path = CACHE_CONFIG["persist_path"] if persist_path is None else persist_path
        self.fetch_photos = FEATURES["fetch_photos"] if fetch_photos is None else fetch_photos

        self.first = SearchSlot("first", self.api_client, self.cache, self.settings, self.fetch_photos)
        self.second = SearchSlot("second", self.api_client, self.cache, self.settings, self.fetch_photos)
        self.photos = PhotoFanout(self.api_client)
        self.graph = build_connection_graph()
        self.monitor = SearchSystemMonitor()

        self.loading = False
        self.last_result: Optional[ConnectionState] = None
        self._loading_started: Optional[float] = None

    def slot(self, name: str) -> SearchSlot:
        if name == "first":
            return self.first
        if name == "second":
            return self.second
        raise KeyError(f"Unknown search slot: {name}")

    async def start(self):
        """Hydrate the cache from disk (if configured) and start the periodic sweep."""
        if self.persist_path:
            self.cache.hydrate(self.persist_path)
        self.cache.start_sweeper()

    async def close(self):
        """Cancel everything in flight, persist the cache and release the HTTP client."""
        self.first.close()
        self.second.close()
        self.photos.cancel_all()
        await self.cache.stop_sweeper()
        if self.persist_path:
            self.cache.persist(self.persist_path)
        if hasattr(self.api_client, "aclose"):
            await self.api_client.aclose()
        logger.info("Search orchestrator closed")

    async def submit(self) -> Dict[str, Any]:
        """
        Run the two-phase flow for the current slot contents.

        Returns:
            Response dict; failures come back as an error code and one message
        """
        self.photos.cancel_all()

        state = initial_state(
            first_input=self.first.text,
            second_input=self.second.text,
            first_selection_id=self.first.selected_id,
            second_selection_id=self.second.selected_id
        )

        start_time = time.time()
        self.loading = True
        self._loading_started = start_time
        try:
            result = await self.graph.ainvoke(state, config={
                "configurable": {
                    "api_client": self.api_client,
                    "cache": self.cache,
                    "settings": self.settings
                }
            })
        except Exception as e:
            # System level exception handling
            logger.error(f"Submission error: {str(e)}")
            result = {
                **state,
                "error": "SEARCH_FAILED",
                "response": "Something went wrong. Please try again."
            }
        finally:
            self.loading = False
            self._loading_started = None

        execution_time = time.time() - start_time
        logger.info(f"Submission completed in {execution_time:.2f}s, "
                    f"error: {result.get('error') or 'none'}")
        self.monitor.log_submission(result, execution_time)
        self.last_result = result

        if self.fetch_photos and not result.get("error"):
            self.photos.start(
                entity
                for chain in result.get("paths", [])
                if chain is not None
                for entity in chain.entities
            )

        return self._prepare_response(result)

    async def find_connection(self, first: str, second: str) -> Dict[str, Any]:
        """
        Submit two raw names (or identifiers) without going through suggestions.

        Args:
            first: Text for the first person
            second: Text for the second person

        Returns:
            Response dict as returned by submit()
        """
        self.first.set_text(first)
        self.second.set_text(second)
        return await self.submit()

    def current_loading_message(self) -> Optional[str]:
        """Progress text while a submission runs, None otherwise."""
        if not self.loading or self._loading_started is None:
            return None
        return loading_message(time.time() - self._loading_started, self.settings["slow_loading_after"])

    def rendered_paths(self) -> List[List[Dict[str, Any]]]:
        """Render nodes for the last result, with whatever photos have arrived so far."""
        if not self.last_result or self.last_result.get("error"):
            return []
        return [render_chain(chain, self.photos.photos) for chain in self.last_result.get("paths", [])]

    def _prepare_response(self, result: Dict[str, Any]) -> Dict[str, Any]:
        """
        Prepare the response object from the final state.

        Args:
            result: The final connection state

        Returns:
            Formatted response suitable for API return
        """
        paths = result.get("paths", []) if not result.get("error") else []
        return {
            "response": result.get("response") or "",
            "error": result.get("error"),
            "first_id": result.get("first_id"),
            "second_id": result.get("second_id"),
            "from_cache": result.get("from_cache", False),
            "paths": paths,
            "chains": [format_chain(chain) for chain in paths],
            "rendered": [render_chain(chain, self.photos.photos) for chain in paths]
        }
