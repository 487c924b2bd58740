"""
Input validation and phase 1 of a submission: turning both inputs into stable identifiers.
"""
import asyncio
import logging
import re
import time
from typing import Optional

import httpx
from langchain_core.runnables import RunnableConfig

from models.entities import STABLE_ID_PATTERN, Suggestion
from models.errors import (
    ConnectionSearchError,
    InputInvalidError,
    ResolutionFailureError,
    ResolutionTimeoutError,
)
from models.state import ConnectionState
from services.cache_service import RequestCache, search_cache_key

logger = logging.getLogger(__name__)

def record_error(state: ConnectionState, error: ConnectionSearchError) -> ConnectionState:
    """Store an error's code and user message in the state."""
    return {
        **state,
        "error": error.code,
        "error_message": error.user_message,
        "metadata": {
            **(state.get("metadata", {})),
            "error_detail": error.detail
        }
    }

def validate_input(state: ConnectionState) -> ConnectionState:
    """
    Each side needs a confirmed selection or some text to resolve.

    Args:
        state: The current connection state

    Returns:
        Updated state, with INPUT_INVALID recorded when a side is empty
    """
    for side in ("first", "second"):
        has_selection = bool(state.get(f"{side}_selection_id"))
        has_text = bool((state.get(f"{side}_input") or "").strip())
        if not has_selection and not has_text:
            logger.info(f"Submission rejected: no input for the {side} person")
            return record_error(state, InputInvalidError(detail=f"Empty {side} input"))

    return {
        **state,
        "metadata": {
            **(state.get("metadata", {})),
            "submitted_at": time.time()
        }
    }

async def resolve_identifier(text: str,
                             selection_id: Optional[str],
                             api_client,
                             cache: Optional[RequestCache] = None) -> Optional[str]:
    """
    Resolve one input to a stable identifier.

    Args:
        text: Raw text typed by the user
        selection_id: Identifier of a confirmed suggestion, used as-is
        api_client: Object exposing async search_entities(query)
        cache: Shared request cache for name searches

    Returns:
        The identifier, or None if nothing matched
    """
    if selection_id:
        return selection_id

    text = (text or "").strip()
    if not text:
        return None
    if re.fullmatch(STABLE_ID_PATTERN, text):
        return text

    key = search_cache_key(text)
    cached = cache.get(key) if cache else None
    if cached is not None:
        logger.debug(f"Resolved '{text}' from cache")
        suggestions = Suggestion.from_records(cached)
        return suggestions[0].id if suggestions else None

    try:
        suggestions = await api_client.search_entities(text)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"Name search failed while resolving '{text}': {str(e)}")
        return None

    if cache is not None:
        cache.put(key, [s.model_dump(exclude={"photo_url"}) for s in suggestions])

    return suggestions[0].id if suggestions else None

async def resolve_entities(state: ConnectionState, config: RunnableConfig) -> ConnectionState:
    """
    Resolve both inputs concurrently under one shared timeout.

    Args:
        state: The current connection state
        config: Runnable config carrying api_client, cache and settings

    Returns:
        Updated state with first_id/second_id, or a resolution error
    """
    configurable = config["configurable"]
    api_client = configurable["api_client"]
    cache = configurable.get("cache")
    timeout = configurable["settings"]["resolution_timeout"]

    logger.info(f"Resolving '{state['first_input']}' and '{state['second_input']}'")

    try:
        first_id, second_id = await asyncio.wait_for(
            asyncio.gather(
                resolve_identifier(state["first_input"], state.get("first_selection_id"), api_client, cache),
                resolve_identifier(state["second_input"], state.get("second_selection_id"), api_client, cache),
            ),
            timeout=timeout
        )
    except asyncio.TimeoutError:
        logger.warning(f"Resolution timed out after {timeout}s")
        return record_error(state, ResolutionTimeoutError(detail=f"Resolution exceeded {timeout}s"))

    if not first_id:
        return record_error(state, ResolutionFailureError(state["first_input"].strip()))
    if not second_id:
        return record_error(state, ResolutionFailureError(state["second_input"].strip()))

    logger.info(f"Resolved identifiers: {first_id}, {second_id}")
    return {
        **state,
        "first_id": first_id,
        "second_id": second_id
    }
