from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Room(BaseModel):
    """A single puzzle unit inside a hall.

    ``description`` is treated as opaque, pre-sanitized rich text; it is handed
    to the rendering layer untouched. ``key`` is the normalized match target
    authored with the content.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1, description="Room identifier, unique within its hall")
    title: str = Field("", description="Display title")
    description: str = Field("", description="Rich text description, may embed links")
    image: Optional[str] = Field(default=None, description="Optional single image reference")
    images: List[str] = Field(default_factory=list, description="Additional image references")
    key: str = Field(..., description="Pre-normalized unlock key")
    hints: List[str] = Field(default_factory=list, description="Ordered, progressively revealed hints")

    @field_validator("images", "hints", mode="before")
    @classmethod
    def none_as_empty(cls, v: Any) -> Any:
        return [] if v is None else v

    @property
    def image_refs(self) -> List[str]:
        """All image references in display order (``image`` first, then ``images``)."""
        refs = [self.image] if self.image else []
        refs.extend(self.images)
        return refs

    @property
    def hint_count(self) -> int:
        return len(self.hints)


class Hall(BaseModel):
    """A named, ordered collection of rooms forming one playthrough track."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(..., min_length=1, description="Hall identifier")
    display_name: str = Field(..., alias="displayName", description="Display name")
    rooms: List[Room] = Field(default_factory=list, description="Rooms in unlock order")

    @model_validator(mode="after")
    def unique_room_ids(self) -> "Hall":
        seen: set[str] = set()
        for room in self.rooms:
            if room.id in seen:
                raise ValueError(f"Duplicate room id '{room.id}' in hall '{self.id}'")
            seen.add(room.id)
        return self

    @classmethod
    def from_document(cls, hall_id: str, document: Dict[str, Any]) -> "Hall":
        """Build a hall from its content document; the id comes from the lookup key."""
        return cls.model_validate({**document, "id": hall_id})

    def index_of(self, room_id: str) -> int:
        for idx, room in enumerate(self.rooms):
            if room.id == room_id:
                return idx
        raise KeyError(room_id)

    def room(self, room_id: str) -> Room:
        return self.rooms[self.index_of(room_id)]
