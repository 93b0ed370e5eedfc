"""Schemas for the AI polish contract and autofill results."""

from typing import Literal, Optional

from pydantic import BaseModel, Field

from paperwriter.core.schemas_draft import CamelModel

AITransformType = Literal[
    "bullets-to-paragraph",
    "expand-sentence",
    "formalize",
    "combine-solutions",
]

VALID_AI_TRANSFORMS: tuple[str, ...] = (
    "bullets-to-paragraph",
    "expand-sentence",
    "formalize",
    "combine-solutions",
)

# Layers a polish request may target; anything else gets the casual length rule
PolishTargetLayer = Literal["ideaFormation", "paragraphComponents"]


class PriorContext(CamelModel):
    """Evidence the student already wrote, sent along with a polish request.

    Only the fields that are set are rendered into the prompt.
    """

    why_important: Optional[str] = None
    key_events: Optional[str] = None
    country_position: Optional[str] = None
    past_actions: Optional[str] = None
    proposed_solutions: Optional[str] = None
    # Headings of every imported background guide section
    background_guide_topics: Optional[list[str]] = None
    # Markdown excerpts of the most relevant imported sections
    background_guide_content: Optional[str] = None

    def to_payload(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class PolishResult(BaseModel):
    """Outcome of one polish call.

    ``polished_text`` is always safe to display: on failure it is the
    original input.
    """

    success: bool
    polished_text: str
    error: Optional[str] = None


class AutofillResult(BaseModel):
    """Summary of one autofill run, for caller feedback only."""

    fields_updated: int = 0
    updated_fields: list[str] = Field(default_factory=list)
    ai_polished_count: int = 0
    errors: list[str] = Field(default_factory=list)

    def record_update(self, question_id: str) -> None:
        self.fields_updated += 1
        self.updated_fields.append(question_id)
