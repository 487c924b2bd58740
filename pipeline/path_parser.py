"""
Parser for the line-oriented path payload returned by the shortest-path service.

A block looks like:

    START_ID:nm0000158
    END_ID:nm0000102
    Tom Hanks -> Kevin Bacon
    ACTOR_IDS:nm0000158,nm0000102,
    MOVIE_IDS:tt0112384,
    MOVIE_TITLES:Apollo 13,
"""
import logging
from typing import Dict, List, Optional, Tuple

from models.entities import Entity, PathChain, TitleRef
from models.errors import PathParseError

logger = logging.getLogger(__name__)

# Marker prefix -> field name
MARKERS = {
    "START_ID:": "start_id",
    "END_ID:": "end_id",
    "ACTOR_IDS:": "entity_ids",
    "MOVIE_IDS:": "title_ids",
    "MOVIE_TITLES:": "title_names",
}

NAME_SEPARATOR = " -> "
FIELD_DELIMITER = ","
UNKNOWN_TITLE_ID = "unknown"
UNKNOWN_TITLE_NAME = "Unknown Title"

def classify_line(line: str) -> Tuple[Optional[str], str]:
    """
    Match a line against the marker table.

    Args:
        line: One line of the block

    Returns:
        (field name, remainder) for marker lines, (None, line) otherwise
    """
    for prefix, field in MARKERS.items():
        if line.startswith(prefix):
            return field, line[len(prefix):]
    return None, line

def split_fields(value: str) -> List[str]:
    """Split a list-valued marker line, discarding empty fields."""
    return [part.strip() for part in value.split(FIELD_DELIMITER) if part.strip()]

def extract_fields(raw: str) -> Dict[str, object]:
    """
    Single pass over the block collecting marker values and the names line.

    Raises:
        PathParseError: Fewer than two lines
    """
    lines = raw.strip().split("\n")
    if len(lines) < 2:
        raise PathParseError(detail=f"Path block has {len(lines)} line(s)")

    fields: Dict[str, object] = {
        "start_id": None,
        "end_id": None,
        "entity_ids": [],
        "title_ids": [],
        "title_names": [],
        "names_line": None,
    }

    for line in lines:
        line = line.rstrip("\r")
        field, value = classify_line(line)
        if field is None:
            if fields["names_line"] is None and line.strip():
                fields["names_line"] = line.strip()
            continue
        # First occurrence wins
        if field in ("start_id", "end_id"):
            if fields[field] is None:
                fields[field] = value.strip() or None
        elif not fields[field]:
            fields[field] = split_fields(value)

    return fields

def parse_path_block(raw: str, requested_start_id: Optional[str] = None) -> PathChain:
    """
    Parse one raw path block into a chain oriented from the start entity.

    Args:
        raw: Raw text block for one path variant
        requested_start_id: Identifier the chain should start from; used when it is one of
            the block's endpoints or when the block carries no START_ID marker

    Returns:
        The normalised chain

    Raises:
        PathParseError: The block is too short or has no names line
    """
    fields = extract_fields(raw)

    if not fields["names_line"]:
        raise PathParseError(detail="Path block has no names line")

    names = fields["names_line"].split(NAME_SEPARATOR)
    entity_ids = list(fields["entity_ids"])
    title_ids = list(fields["title_ids"])
    title_names = list(fields["title_names"])

    start_id = fields["start_id"]
    # Cached blocks are shared by both query orders; the requester's end wins when it is one
    if requested_start_id and entity_ids and requested_start_id in (entity_ids[0], entity_ids[-1]):
        start_id = requested_start_id
    elif start_id is None:
        start_id = requested_start_id

    if start_id and entity_ids and entity_ids[0] != start_id:
        names.reverse()
        entity_ids.reverse()
        title_names.reverse()
        title_ids.reverse()

    entities = [
        Entity(id=entity_ids[i] if i < len(entity_ids) else None, display_name=name.strip())
        for i, name in enumerate(names)
    ]

    titles = []
    for i in range(len(entities) - 1):
        title_id = title_ids[i] if i < len(title_ids) else None
        if title_id == UNKNOWN_TITLE_ID:
            title_id = None
        name = title_names[i] if i < len(title_names) else UNKNOWN_TITLE_NAME
        titles.append(TitleRef(name=name, id=title_id))

    if len(entity_ids) != len(names) or len(title_ids) < len(titles):
        logger.debug(f"Partial path data: {len(names)} names, {len(entity_ids)} ids, {len(title_ids)} title ids")

    return PathChain(
        entities=entities,
        titles=titles,
        start_id=start_id,
        end_id=fields["end_id"]
    )

def parse_path_results(raw_results: List[str], requested_start_id: Optional[str] = None) -> List[Optional[PathChain]]:
    """
    Parse every variant; a block that fails to parse becomes None (rendered as "no path found").
    """
    chains: List[Optional[PathChain]] = []
    for index, raw in enumerate(raw_results):
        try:
            chains.append(parse_path_block(raw, requested_start_id))
        except PathParseError as e:
            logger.warning(f"Could not parse path variant {index + 1}: {e.detail}")
            chains.append(None)
    return chains
