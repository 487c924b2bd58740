"""
Entity, suggestion and path models shared by the search slots and the path pipeline.
"""
import logging
from typing import Any, List, Optional
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

logger = logging.getLogger(__name__)

# Stable identifiers for people, e.g. "nm0000158"
STABLE_ID_PATTERN = r"^nm\d+$"

class Entity(BaseModel):
    """A public figure. Identity is the id; the display name may change across searches."""
    model_config = ConfigDict(frozen=True)

    # None only inside partially-populated path payloads
    id: Optional[str] = None
    display_name: str

class Suggestion(Entity):
    """A typeahead result for one search call."""
    id: str
    photo_url: Optional[str] = None

    @field_validator("id")
    @classmethod
    def validate_id(cls, v):
        """Suggestions are only useful when they can become a selection."""
        if not v:
            raise ValueError("Suggestion requires an id")
        return v

    def to_entity(self) -> Entity:
        return Entity(id=self.id, display_name=self.display_name)

    @classmethod
    def from_records(cls, records: List[Any]) -> List["Suggestion"]:
        """Rebuild suggestions from cached dicts, dropping any that no longer validate."""
        if not isinstance(records, list):
            return []

        suggestions = []
        for record in records:
            if not isinstance(record, dict):
                continue
            try:
                suggestions.append(cls(**record))
            except ValidationError:
                logger.debug(f"Dropping cached suggestion without a valid id: {record}")
        return suggestions

class TitleRef(BaseModel):
    """A shared work connecting two entities."""
    model_config = ConfigDict(frozen=True)

    name: str
    id: Optional[str] = None

class PathSegment(BaseModel):
    """One hop of a path: two entities joined by a title."""
    model_config = ConfigDict(frozen=True)

    source: Entity
    target: Entity
    title: TitleRef

class PathChain(BaseModel):
    """
    Ordered entities with len(entities) - 1 interleaved titles.

    titles[i] connects entities[i] and entities[i + 1].
    """
    model_config = ConfigDict(frozen=True)

    entities: List[Entity] = Field(default_factory=list)
    titles: List[TitleRef] = Field(default_factory=list)
    start_id: Optional[str] = None
    end_id: Optional[str] = None

    @property
    def segments(self) -> List[PathSegment]:
        return [
            PathSegment(source=self.entities[i], target=self.entities[i + 1], title=self.titles[i])
            for i in range(len(self.entities) - 1)
        ]

    @property
    def degrees(self) -> int:
        """Number of titles between the two endpoints."""
        return len(self.titles)
