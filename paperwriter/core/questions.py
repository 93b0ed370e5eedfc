"""Question definitions and the effective-value resolver.

The question set is the dependency graph of the writer. Each field optionally
names the fields it is derived from and the transform that derives it:

    Layer 4 comprehension  ->  Layer 3 idea formation  ->  Layer 2 components

A field's effective value is its own answer when the student wrote one,
otherwise the transform applied to the effective values of its sources. An
answer at any layer pins that branch of the graph.

The graph is validated when this module is imported: every source lives in a
strictly earlier layer, which makes the resolver terminate without a runtime
cycle guard.
"""

from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from paperwriter.core.schemas_draft import FIELD_LAYERS, LAYER_ORDER, DEFAULT_DELEGATION, Layer
from paperwriter.core.transforms import SINGLE_SOURCE_TRANSFORMS, TRANSFORMS, run_transform

# accessor(layer, question_id) -> stored answer ("" when unset)
Accessor = Callable[[Layer, str], str]

PARAGRAPH_ORDER = ["intro", "background", "position", "solutions", "conclusion"]

PARAGRAPH_LABELS = {
    "intro": "Introduction",
    "background": "Background",
    "position": "Country Position",
    "solutions": "Proposed Solutions",
    "conclusion": "Conclusion",
}


class QuestionGraphError(ValueError):
    """Raised when the static question graph is malformed."""


@dataclass(frozen=True)
class AutoPopulateSource:
    """Where a field's value comes from when the student left it blank."""

    question_ids: str  # comma-separated
    transform: str = "direct"

    @property
    def source_ids(self) -> list[str]:
        return [qid.strip() for qid in self.question_ids.split(",") if qid.strip()]

    @property
    def is_multi_source(self) -> bool:
        return len(self.source_ids) > 1


@dataclass(frozen=True)
class QuestionDefinition:
    """Static metadata for one field."""

    id: str
    layer: Layer
    translation_key: str
    paragraph: Optional[str] = None
    category: Optional[str] = None
    auto_populate_from: Optional[AutoPopulateSource] = None


def _comprehension(question_id: str, category: str) -> QuestionDefinition:
    return QuestionDefinition(
        id=question_id,
        layer=Layer.COMPREHENSION,
        translation_key=question_id,
        category=category,
    )


def _idea(question_id: str, paragraph: str, sources: str) -> QuestionDefinition:
    # Idea formation stays rough on purpose
    return QuestionDefinition(
        id=question_id,
        layer=Layer.IDEA_FORMATION,
        translation_key=question_id,
        paragraph=paragraph,
        auto_populate_from=AutoPopulateSource(sources, "combine-ideas"),
    )


def _component(question_id: str, paragraph: str, sources: str, transform: str = "direct") -> QuestionDefinition:
    return QuestionDefinition(
        id=question_id,
        layer=Layer.PARAGRAPH_COMPONENTS,
        translation_key=question_id,
        paragraph=paragraph,
        auto_populate_from=AutoPopulateSource(sources, transform),
    )


COMPREHENSION_CATEGORY_GROUPS: dict[str, list[str]] = {
    "topicFundamentals": ["topicDefinition", "keyTerms", "scope"],
    "historicalContext": ["origin", "timeline", "evolution"],
    "currentSituation": ["presentState", "keyStatistics", "recentDevelopments"],
    "stakeholders": ["affectedPopulations", "keyActors", "powerDynamics"],
    "existingEfforts": ["unActions", "regionalEfforts", "successStories", "failures"],
    "pointsOfContention": ["majorDebates", "competingInterests", "barriers"],
    "countrySpecific": ["countryInvolvement", "pastPositions", "countryInterests", "allies", "constraints"],
}


QUESTIONS: tuple[QuestionDefinition, ...] = (
    # Layer 4: comprehension
    *(
        _comprehension(question_id, category)
        for category, question_ids in COMPREHENSION_CATEGORY_GROUPS.items()
        for question_id in question_ids
    ),
    # Layer 3: idea formation
    _idea("hookIdea", "intro", "topicDefinition,scope"),
    _idea("thesisIdea", "intro", "pastPositions,countryInterests"),
    _idea("historyIdea", "background", "origin,timeline,evolution"),
    _idea("situationIdea", "background", "presentState,keyStatistics,recentDevelopments"),
    _idea("positionIdea", "position", "countryInvolvement,pastPositions"),
    _idea("evidenceIdea", "position", "allies,constraints"),
    _idea("solutionIdea", "solutions", "unActions,successStories"),
    _idea("alternateIdea", "solutions", "regionalEfforts,failures"),
    _idea("stakesIdea", "conclusion", "affectedPopulations,keyActors"),
    _idea("contentionIdea", "conclusion", "majorDebates,competingInterests,barriers"),
    # Layer 2: paragraph components
    _component("introSentence", "intro", "hookIdea"),
    _component("broadContext", "intro", "scope,keyStatistics", "combine-sentences"),
    _component("alternatePerspective", "intro", "contentionIdea"),
    _component("callToAction", "intro", "stakesIdea"),
    _component("thesis", "intro", "thesisIdea"),
    _component("bgIntroSentence", "background", "historyIdea"),
    _component("keyFact1", "background", "keyStatistics", "bullets-to-text"),
    _component("analysis1", "background", "situationIdea"),
    _component("keyFact2", "background", "timeline", "bullets-to-text"),
    _component("analysis2", "background", "evolution"),
    _component("bgSummary", "background", "presentState,recentDevelopments", "combine-sentences"),
    _component("posIntroSentence", "position", "positionIdea"),
    _component("positionStatement", "position", "pastPositions"),
    _component("posEvidence", "position", "evidenceIdea"),
    _component("posAnalysis", "position", "countryInterests,constraints", "combine-sentences"),
    _component("reasoning", "position", "countryInvolvement", "bullets-to-text"),
    _component("solIntroSentence", "solutions", "solutionIdea"),
    _component("solutionProposal", "solutions", "solutionIdea,alternateIdea", "combine-solutions"),
    _component("solEvidence", "solutions", "successStories", "bullets-to-text"),
    _component("connectionToSolution", "solutions", "barriers"),
    _component("alternateSolution", "solutions", "alternateIdea"),
    _component("summaryEvidence", "conclusion", "situationIdea"),
    _component("summaryPosition", "conclusion", "positionIdea"),
    _component("summarySolution", "conclusion", "solutionIdea,alternateIdea", "combine-solutions"),
)

_QUESTIONS_BY_ID: dict[str, QuestionDefinition] = {q.id: q for q in QUESTIONS}


def get_questions_for_layer(layer: Layer) -> list[QuestionDefinition]:
    """Get questions for a specific layer, in definition order."""
    return [q for q in QUESTIONS if q.layer == layer]


def get_question_by_id(question_id: str) -> Optional[QuestionDefinition]:
    return _QUESTIONS_BY_ID.get(question_id)


def get_questions_for_paragraph(layer: Layer, paragraph: str) -> list[QuestionDefinition]:
    return [q for q in QUESTIONS if q.layer == layer and q.paragraph == paragraph]


def get_comprehension_category_groups() -> dict[str, list[QuestionDefinition]]:
    return {
        category: [_QUESTIONS_BY_ID[qid] for qid in question_ids]
        for category, question_ids in COMPREHENSION_CATEGORY_GROUPS.items()
    }


def get_effective_value_recursive(question_id: str, accessor: Accessor, country: str = "") -> str:
    """
    Resolve a field to its effective value.

    For example ``keyStatistics`` (L4) -> ``situationIdea`` (L3) ->
    ``analysis1`` (L2): if both ``analysis1`` and ``situationIdea`` are
    blank, the chain is followed back to ``keyStatistics`` and every transform
    along the way is applied.

    Args:
        question_id: Field to resolve
        accessor: Reads the stored answer for ``(layer, question_id)``
        country: Acting country, used by ``combine-solutions``

    Returns:
        The student's own answer, the derived value, or "" when neither exists
    """
    question = get_question_by_id(question_id)
    if question is None:
        return ""

    own_value = accessor(question.layer, question_id) or ""
    if own_value.strip():
        return own_value

    if question.auto_populate_from is None:
        return ""

    return compute_local_value(question, accessor, country)


def compute_local_value(question: QuestionDefinition, accessor: Accessor, country: str = "") -> str:
    """Derive a field from its sources, ignoring the field's own answer."""
    source = question.auto_populate_from
    if source is None:
        return ""

    values = [get_effective_value_recursive(sid, accessor, country) for sid in source.source_ids]
    return run_transform(source.transform, values, country or DEFAULT_DELEGATION)


def validate_question_graph(questions: Iterable[QuestionDefinition]) -> None:
    """
    Check the static graph invariants.

    Raises:
        QuestionGraphError: On duplicate ids, unknown sources or transforms,
            a single-source transform with several sources, or an edge that
            does not point at a strictly earlier layer
    """
    questions = list(questions)
    by_id: dict[str, QuestionDefinition] = {}
    for question in questions:
        if question.id in by_id:
            raise QuestionGraphError(f"Duplicate question id: {question.id}")
        if question.layer not in FIELD_LAYERS:
            raise QuestionGraphError(f"{question.id} is defined on non-field layer {question.layer.value}")
        by_id[question.id] = question

    for question in questions:
        source = question.auto_populate_from
        if source is None:
            continue
        if question.layer == Layer.COMPREHENSION:
            raise QuestionGraphError(f"Comprehension question {question.id} cannot be auto-populated")
        if source.transform not in TRANSFORMS:
            raise QuestionGraphError(f"{question.id} uses unknown transform {source.transform!r}")
        if not source.source_ids:
            raise QuestionGraphError(f"{question.id} has an empty source list")
        if source.transform in SINGLE_SOURCE_TRANSFORMS and source.is_multi_source:
            raise QuestionGraphError(f"{question.id}: {source.transform!r} takes exactly one source")

        target_index = LAYER_ORDER.index(question.layer)
        for sid in source.source_ids:
            dependency = by_id.get(sid)
            if dependency is None:
                raise QuestionGraphError(f"{question.id} depends on unknown question {sid}")
            if LAYER_ORDER.index(dependency.layer) >= target_index:
                raise QuestionGraphError(
                    f"{question.id} ({question.layer.value}) depends on {sid} ({dependency.layer.value})"
                )


def max_resolution_depth(questions: Iterable[QuestionDefinition] = QUESTIONS) -> int:
    """Longest chain of auto-populate hops in the graph."""
    by_id = {q.id: q for q in questions}
    depths: dict[str, int] = {}

    def depth(question_id: str) -> int:
        if question_id not in depths:
            source = by_id[question_id].auto_populate_from
            depths[question_id] = 0 if source is None else 1 + max(depth(s) for s in source.source_ids)
        return depths[question_id]

    return max((depth(qid) for qid in by_id), default=0)


validate_question_graph(QUESTIONS)
