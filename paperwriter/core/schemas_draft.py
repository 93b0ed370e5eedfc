"""Pydantic schemas for position paper drafts.

A draft is the root aggregate of the writer: the three identifying strings,
one answer map per field layer, the assembled final paper, and whatever
reference material the student imported. Models serialize with camelCase
aliases so persisted JSON keeps the browser-storage layout.
"""

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

DRAFT_SCHEMA_VERSION = 2
DEFAULT_DELEGATION = "Our delegation"


class Layer(str, Enum):
    """The four authoring layers, ordered leaves first."""

    COMPREHENSION = "comprehension"  # Layer 4
    IDEA_FORMATION = "ideaFormation"  # Layer 3
    PARAGRAPH_COMPONENTS = "paragraphComponents"  # Layer 2
    FINAL_PAPER = "finalPaper"  # Layer 1


LAYER_ORDER: list[Layer] = [
    Layer.COMPREHENSION,
    Layer.IDEA_FORMATION,
    Layer.PARAGRAPH_COMPONENTS,
    Layer.FINAL_PAPER,
]

# Layers whose content is a question id -> answer map
FIELD_LAYERS: list[Layer] = [
    Layer.COMPREHENSION,
    Layer.IDEA_FORMATION,
    Layer.PARAGRAPH_COMPONENTS,
]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def generate_draft_id() -> str:
    """Generate a unique draft id (``draft-<epoch ms>-<random>``)."""
    return f"draft-{int(_now().timestamp() * 1000)}-{uuid.uuid4().hex[:7]}"


class CamelModel(BaseModel):
    """Base model that reads and writes camelCase keys."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class BookmarkSection(CamelModel):
    """One bookmarked heading and the content underneath it."""

    id: str = ""
    heading_text: str = ""
    content: str = ""


class BookmarkSource(CamelModel):
    """An imported reference document (a background guide page)."""

    pathname: str = ""
    title: str = ""
    heading_ids: list[str] = Field(default_factory=list)
    heading_texts: list[str] = Field(default_factory=list)
    sections: list[BookmarkSection] = Field(default_factory=list)
    imported_at: Optional[datetime] = None


class ClassifiedBookmark(BookmarkSection):
    """A bookmark section tagged with a comprehension category."""

    category: str = "other"
    confidence: float = 0.0
    classified_by: str = "regex"
    classified_at: datetime = Field(default_factory=_now)


class DraftLayers(CamelModel):
    """Answer maps for the three field layers plus the final paper text."""

    comprehension: dict[str, str] = Field(default_factory=dict)
    idea_formation: dict[str, str] = Field(default_factory=dict)
    paragraph_components: dict[str, str] = Field(default_factory=dict)
    final_paper: str = ""

    def field_map(self, layer: Layer) -> dict[str, str]:
        """Return the answer map for a field layer."""
        if layer == Layer.COMPREHENSION:
            return self.comprehension
        if layer == Layer.IDEA_FORMATION:
            return self.idea_formation
        if layer == Layer.PARAGRAPH_COMPONENTS:
            return self.paragraph_components
        raise ValueError(f"{layer.value} is not a field layer")


class PaperContext(CamelModel):
    """Read-only projection of a draft's identifying fields."""

    country: str = ""
    committee: str = ""
    topic: str = ""

    def is_complete(self) -> bool:
        return bool(self.country.strip() and self.committee.strip() and self.topic.strip())


class Draft(CamelModel):
    """A student's position paper draft."""

    id: str = Field(default_factory=generate_draft_id)
    version: int = DRAFT_SCHEMA_VERSION
    created_at: datetime = Field(default_factory=_now)
    updated_at: datetime = Field(default_factory=_now)
    country: str = ""
    committee: str = ""
    topic: str = ""
    layers: DraftLayers = Field(default_factory=DraftLayers)
    imported_bookmarks: list[BookmarkSource] = Field(default_factory=list)
    classified_bookmarks: list[ClassifiedBookmark] = Field(default_factory=list)

    def get_answer(self, layer: Layer, question_id: str) -> str:
        """Read one answer; missing answers read as empty string."""
        if layer == Layer.FINAL_PAPER:
            return self.layers.final_paper
        return self.layers.field_map(layer).get(question_id, "") or ""

    def set_answer(self, layer: Layer, question_id: str, value: str) -> None:
        """Write one answer. Usable directly as an autofill update callback."""
        if layer == Layer.FINAL_PAPER:
            self.layers.final_paper = value
            return
        self.layers.field_map(layer)[question_id] = value

    def paper_context(self) -> PaperContext:
        return PaperContext(country=self.country, committee=self.committee, topic=self.topic)

    def all_sections(self) -> list[BookmarkSection]:
        """Flatten the sections of every imported source."""
        return [section for source in self.imported_bookmarks for section in source.sections]
