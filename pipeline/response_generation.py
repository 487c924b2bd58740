"""
Response generation and presentation-neutral rendering of path chains.
"""
import logging
from typing import Any, Dict, List, Optional

from config import SEARCH_CONFIG
from models.entities import PathChain
from models.errors import ERROR_MESSAGES, PathParseError
from models.state import ConnectionState

logger = logging.getLogger(__name__)

PERSON_URL = "https://www.imdb.com/name/{id}/"
TITLE_URL = "https://www.imdb.com/title/{id}/"
PLACEHOLDER_GLYPH = "?"

LOADING_MESSAGE = "Finding shortest path"
SLOW_LOADING_MESSAGE = "Still loading, stay patient"

def build_response(state: ConnectionState) -> ConnectionState:
    """
    Summarise the parsed paths for the user.

    Args:
        state: State with parsed paths

    Returns:
        Updated state with the response message
    """
    found = [p for p in state.get("paths", []) if p is not None]

    if not found:
        response = PathParseError.user_message
    elif len(found) == 1:
        response = f"Found a path with {found[0].degrees} connection(s)."
    else:
        response = f"Found {len(found)} shortest paths with {found[0].degrees} connection(s)."

    logger.info(f"Built response: {response}")
    return {
        **state,
        "response": response
    }

def handle_error(state: ConnectionState) -> ConnectionState:
    """
    Turn the recorded error into exactly one user-facing message.

    Args:
        state: State with an error code

    Returns:
        Updated state with the error response and no paths
    """
    error_code = state.get("error")
    response = state.get("error_message") or ERROR_MESSAGES.get(
        error_code, "Something went wrong. Please try again."
    )
    logger.info(f"Generating error response for: {error_code}")

    return {
        **state,
        "response": response,
        "paths": []
    }

def render_chain(chain: Optional[PathChain], photos: Optional[Dict[str, str]] = None) -> List[Dict[str, Any]]:
    """
    Build the alternating entity/title nodes for one path.

    Links are only produced where an id is known; anything else renders as plain
    text, and entities without a photo get an initial-letter placeholder.

    Args:
        chain: Parsed chain, or None for a variant that failed to parse
        photos: Entity id -> photo URL for lookups that have completed

    Returns:
        Render nodes; a single "empty" node when there is no chain
    """
    if chain is None:
        return [{"kind": "empty", "text": PathParseError.user_message}]

    photos = photos or {}
    nodes = []
    for index, entity in enumerate(chain.entities):
        name = entity.display_name or PLACEHOLDER_GLYPH
        nodes.append({
            "kind": "entity",
            "id": entity.id,
            "name": name,
            "url": PERSON_URL.format(id=entity.id) if entity.id else None,
            "photo_url": photos.get(entity.id) if entity.id else None,
            "placeholder": name[0].upper()
        })

        if index < len(chain.titles):
            title = chain.titles[index]
            nodes.append({
                "kind": "title",
                "id": title.id,
                "name": title.name or PLACEHOLDER_GLYPH,
                "url": TITLE_URL.format(id=title.id) if title.id else None
            })

    return nodes

def format_chain(chain: Optional[PathChain]) -> str:
    """One-line text rendering, e.g. 'Tom Hanks -[Apollo 13]-> Kevin Bacon'."""
    if chain is None:
        return PathParseError.user_message

    parts = []
    for index, entity in enumerate(chain.entities):
        parts.append(entity.display_name or PLACEHOLDER_GLYPH)
        if index < len(chain.titles):
            parts.append(f"-[{chain.titles[index].name}]->")
    return " ".join(parts)

def loading_message(elapsed: float, slow_after: Optional[float] = None) -> str:
    """Progress text for a running submission; softens after a few seconds."""
    if slow_after is None:
        slow_after = SEARCH_CONFIG["slow_loading_after"]
    return SLOW_LOADING_MESSAGE if elapsed >= slow_after else LOADING_MESSAGE
