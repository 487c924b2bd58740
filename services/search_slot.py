"""
Typeahead search slot: debounce, supersession, suggestions and selection for one input.
"""
import asyncio
import logging
from enum import Enum
from typing import Any, Dict, List, Optional

import httpx

from config import SEARCH_CONFIG, FEATURES
from models.entities import Entity, Suggestion
from services.cache_service import RequestCache, search_cache_key
from services.photo_service import PhotoFanout
from services.query import CancellableQuery

logger = logging.getLogger(__name__)

class SlotState(str, Enum):
    IDLE = "IDLE"
    TYPING = "TYPING"
    SEARCHING = "SEARCHING"
    SUGGESTED = "SUGGESTED"
    SELECTED = "SELECTED"

class SearchTrigger(str, Enum):
    DEBOUNCE = "DEBOUNCE"
    EXPLICIT = "EXPLICIT"

class SearchSlot:
    """
    One search input. Owns its debounce timer, its in-flight query and a freshness
    token; a response tagged with an old token is dropped without touching state.
    """

    def __init__(self,
                 name: str,
                 api_client,
                 cache: Optional[RequestCache] = None,
                 config: Optional[Dict[str, Any]] = None,
                 fetch_photos: Optional[bool] = None):
        """
        Initialize the slot.

        Args:
            name: Slot label used in logs ("first" / "second")
            api_client: Object exposing async search_entities(query) and entity_photo(...)
            cache: Shared request cache; searches skip the network on a fresh hit
            config: Overrides for SEARCH_CONFIG values
            fetch_photos: Whether to enrich suggestions with photos
        """
        self.name = name
        self.api_client = api_client
        self.cache = cache
        self.config = {**SEARCH_CONFIG, **(config or {})}
        self.fetch_photos = FEATURES["fetch_photos"] if fetch_photos is None else fetch_photos

        self.state = SlotState.IDLE
        self.text = ""
        self.suggestions: List[Suggestion] = []
        self.selection: Optional[Entity] = None
        self.show_suggestions = False
        self.focused = False

        self._token = 0
        self._debounce = CancellableQuery(f"{name} debounce timer")
        self._query = CancellableQuery(f"{name} search")
        self._photos = PhotoFanout(api_client, on_photo=self._apply_photo)

    @property
    def token(self) -> int:
        return self._token

    @property
    def selected_id(self) -> Optional[str]:
        return self.selection.id if self.selection else None

    def on_input(self, text: str):
        """
        Handle an edit of the input text.

        Clears the selection, cancels the pending timer and any in-flight search,
        and schedules a debounced search for non-empty text.
        """
        if self._apply_text(text):
            self.show_suggestions = True
            self._debounce.supersede(self._debounced_search())

    def set_text(self, text: str):
        """Programmatic input: like on_input, but never schedules a search."""
        self._apply_text(text)

    def _apply_text(self, text: str) -> bool:
        self.text = text
        self.selection = None
        self._cancel_pending()
        self.suggestions = []

        if not text:
            self.show_suggestions = False
            self.state = SlotState.IDLE
            return False

        self.state = SlotState.TYPING
        return True

    def trigger_search(self, source: SearchTrigger = SearchTrigger.EXPLICIT) -> bool:
        """
        Issue a search for the current text.

        Args:
            source: DEBOUNCE when the timer fired, EXPLICIT for a confirm key or search control

        Returns:
            True if a query was issued
        """
        if source == SearchTrigger.EXPLICIT:
            self._debounce.cancel()

        if len(self.text.strip()) < self.config["min_query_length"]:
            logger.debug(f"[{self.name}] Query too short, not searching: '{self.text}'")
            return False

        self._issue_query()
        return True

    def on_suggestions_received(self, items: List[Suggestion], token: int) -> bool:
        """
        Store suggestions from a search response.

        Args:
            items: Suggestions in relevance order
            token: Freshness token the query was issued with

        Returns:
            False if the response was stale and ignored
        """
        if token != self._token:
            logger.debug(f"[{self.name}] Dropping stale response (token {token}, current {self._token})")
            return False

        self.suggestions = list(items[:self.config["max_suggestions"]])
        self.state = SlotState.SUGGESTED if self.suggestions else SlotState.TYPING

        if self.fetch_photos and self.suggestions:
            self._photos.start(self.suggestions)
        return True

    def select_suggestion(self, item: Suggestion):
        """Confirm a suggestion as this slot's selection."""
        self._cancel_pending()
        self.selection = item.to_entity()
        self.text = item.display_name
        self.suggestions = []
        self.show_suggestions = False
        self.focused = False
        self.state = SlotState.SELECTED
        logger.info(f"[{self.name}] Selected {item.display_name} ({item.id})")

    def focus(self):
        self.focused = True
        self.show_suggestions = True

    def blur(self):
        self.focused = False
        self.show_suggestions = False

    def close(self):
        """Cancel everything this slot owns."""
        self._cancel_pending()

    async def wait_idle(self, include_photos: bool = True):
        """Wait until no timer, search or photo lookup owned by the slot is running."""
        while self._debounce.active or self._query.active:
            await self._debounce.wait()
            await self._query.wait()
        if include_photos:
            await self._photos.wait()

    def _cancel_pending(self):
        self._debounce.cancel()
        self._query.cancel()
        self._photos.cancel_all()
        # Invalidate any response already on its way back
        self._token += 1

    def _issue_query(self):
        self._photos.cancel_all()
        self._token += 1
        token = self._token
        self.state = SlotState.SEARCHING
        self._query.supersede(self._run_search(self.text.strip(), token))

    async def _debounced_search(self):
        await asyncio.sleep(self.config["debounce_seconds"])
        self.trigger_search(SearchTrigger.DEBOUNCE)

    async def _run_search(self, query: str, token: int):
        key = search_cache_key(query)
        cached = self.cache.get(key) if self.cache else None

        if cached is not None:
            logger.debug(f"[{self.name}] Cache hit for '{query}'")
            items = Suggestion.from_records(cached)
        else:
            try:
                items = await self.api_client.search_entities(query)
            except (httpx.HTTPError, ValueError) as e:
                logger.warning(f"[{self.name}] Search failed for '{query}': {str(e)}")
                if token == self._token:
                    self.suggestions = []
                    self.state = SlotState.TYPING
                return

            if self.cache is not None:
                self.cache.put(key, [item.model_dump(exclude={"photo_url"}) for item in items])

        self.on_suggestions_received(items, token)

    def _apply_photo(self, entity_id: str, photo_url: str):
        # Suggestions are replaced wholesale, so only patch the current list
        self.suggestions = [
            s.model_copy(update={"photo_url": photo_url}) if s.id == entity_id else s
            for s in self.suggestions
        ]
