"""
Best-effort portrait lookups fanned out per entity.
"""
import asyncio
import logging
from typing import Callable, Dict, Iterable, Optional, Set

import httpx

from config import API_CONFIG
from models.entities import Entity

logger = logging.getLogger(__name__)

class PhotoFanout:
    """
    Runs one photo lookup per entity. Lookups are unordered and independent: a failing
    lookup leaves that entity on its placeholder and never affects the others.
    Starting a new batch cancels everything still running from the previous one.
    """

    def __init__(self,
                 api_client,
                 on_photo: Optional[Callable[[str, str], None]] = None,
                 timeout: Optional[float] = None):
        """
        Initialize the fan-out.

        Args:
            api_client: Object exposing async entity_photo(entity_id, display_name)
            on_photo: Called with (entity_id, photo_url) as each photo arrives
            timeout: Per-lookup timeout in seconds
        """
        self.api_client = api_client
        self.on_photo = on_photo
        self.timeout = timeout if timeout is not None else API_CONFIG["photo_timeout"]
        self.photos: Dict[str, str] = {}
        self._tasks: Set[asyncio.Task] = set()

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    def start(self, entities: Iterable[Entity]):
        """
        Replace the current batch with lookups for the given entities.

        Entities without an id, and ids already looked up in this batch, are skipped.
        """
        self.cancel_all()
        self.photos = {}

        seen = set()
        for entity in entities:
            if not entity.id or entity.id in seen:
                continue
            seen.add(entity.id)
            task = asyncio.create_task(self._lookup(entity))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

    def cancel_all(self):
        """Cancel every lookup still running."""
        cancelled = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                cancelled += 1
        if cancelled:
            logger.debug(f"Cancelled {cancelled} photo lookups")

    async def wait(self):
        """Wait until the current batch has settled."""
        if self._tasks:
            await asyncio.wait(set(self._tasks))

    def photo_for(self, entity_id: Optional[str]) -> Optional[str]:
        if not entity_id:
            return None
        return self.photos.get(entity_id)

    async def _lookup(self, entity: Entity):
        try:
            photo_url = await asyncio.wait_for(
                self.api_client.entity_photo(entity.id, entity.display_name),
                timeout=self.timeout
            )
        except asyncio.TimeoutError:
            logger.debug(f"Photo lookup timed out for {entity.id}")
            return
        except (httpx.HTTPError, ValueError) as e:
            logger.debug(f"Photo lookup failed for {entity.id}: {str(e)}")
            return

        if not photo_url:
            return

        self.photos[entity.id] = photo_url
        if self.on_photo:
            self.on_photo(entity.id, photo_url)
