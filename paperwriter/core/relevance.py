"""Keyword relevance ranking for imported bookmark sections.

Keeps polish prompts small and on topic without an embedding index: sections
are scored by keyword overlap with a query, headings counting three times as
much as body text. Purely local and deterministic.
"""

import re

from paperwriter.core.schemas_draft import BookmarkSection, Draft
from paperwriter.core.schemas_polish import PriorContext

HEADING_WEIGHT = 3
CONTENT_WEIGHT = 1
DEFAULT_SECTION_LIMIT = 3
MAX_BACKGROUND_CONTENT_CHARS = 3000
TRUNCATION_MARKER = "\n\n[...truncated]"

STOP_WORDS = frozenset(
    {
        "a", "about", "above", "after", "again", "against", "all", "also", "am", "an", "and",
        "any", "are", "as", "at", "be", "because", "been", "before", "being", "below",
        "between", "both", "but", "by", "can", "could", "did", "do", "does", "doing", "down",
        "during", "each", "few", "for", "from", "further", "had", "has", "have", "having",
        "he", "her", "here", "hers", "him", "his", "how", "i", "if", "in", "into", "is", "it",
        "its", "itself", "just", "many", "may", "me", "more", "most", "much", "must", "my",
        "no", "nor", "not", "now", "of", "off", "on", "once", "only", "or", "other", "our",
        "ours", "out", "over", "own", "same", "she", "should", "so", "some", "such", "than",
        "that", "the", "their", "theirs", "them", "then", "there", "these", "they", "this",
        "those", "through", "to", "too", "under", "until", "up", "very", "was", "we", "were",
        "what", "when", "where", "which", "while", "who", "whom", "why", "will", "with",
        "would", "you", "your", "yours",
    }
)

_PUNCTUATION_RE = re.compile(r"[^\w\s]")


def extract_keywords(text: str) -> set[str]:
    """Lowercase, drop punctuation, split on whitespace, remove noise words."""
    cleaned = _PUNCTUATION_RE.sub(" ", (text or "").lower())
    return {token for token in cleaned.split() if len(token) > 2 and token not in STOP_WORDS}


def score_section(section: BookmarkSection, query_keywords: set[str]) -> int:
    heading_hits = len(extract_keywords(section.heading_text) & query_keywords)
    content_hits = len(extract_keywords(section.content) & query_keywords)
    return HEADING_WEIGHT * heading_hits + CONTENT_WEIGHT * content_hits


def select_relevant_sections(
    sections: list[BookmarkSection],
    query_context: str,
    limit: int = DEFAULT_SECTION_LIMIT,
) -> list[BookmarkSection]:
    """
    Pick the sections most related to a query.

    Args:
        sections: Candidate bookmark sections
        query_context: Free text describing what the prompt is about
        limit: Maximum sections returned

    Returns:
        Input unchanged when it already fits in ``limit``; otherwise the top
        ``limit`` sections by score, ties kept in input order
    """
    if len(sections) <= limit:
        return sections

    query_keywords = extract_keywords(query_context)
    ranked = sorted(sections, key=lambda section: score_section(section, query_keywords), reverse=True)
    return ranked[:limit]


def format_sections_markdown(sections: list[BookmarkSection]) -> str:
    """Render sections as ``### heading`` blocks, capped in length."""
    blocks = []
    for section in sections:
        heading = section.heading_text.strip()
        content = section.content.strip()
        if not heading and not content:
            continue
        blocks.append(f"### {heading}\n\n{content}" if heading else content)

    rendered = "\n\n".join(blocks)
    if len(rendered) > MAX_BACKGROUND_CONTENT_CHARS:
        rendered = rendered[:MAX_BACKGROUND_CONTENT_CHARS] + TRUNCATION_MARKER
    return rendered


def _imported_headings(draft: Draft) -> list[str]:
    headings: list[str] = []
    for source in draft.imported_bookmarks:
        texts = source.heading_texts or [section.heading_text for section in source.sections]
        headings.extend(text for text in texts if text and text.strip())
    return headings


def _answer(answers: dict[str, str], question_id: str) -> str | None:
    value = answers.get(question_id, "") or ""
    return value if value.strip() else None


def gather_prior_context(draft: Draft, query_context: str = "") -> PriorContext:
    """
    Collect what the student already wrote as evidence for a polish prompt.

    Args:
        draft: The current draft
        query_context: Extra text describing the field being polished

    Returns:
        PriorContext with only the slots that have content
    """
    comprehension = draft.layers.comprehension
    ideas = draft.layers.idea_formation

    prior = PriorContext(
        why_important=_answer(comprehension, "presentState"),
        key_events=_answer(comprehension, "timeline"),
        country_position=_answer(comprehension, "pastPositions"),
        past_actions=_answer(comprehension, "countryInvolvement"),
        proposed_solutions=_answer(ideas, "solutionIdea"),
    )

    headings = _imported_headings(draft)
    if headings:
        prior.background_guide_topics = headings

    sections = draft.all_sections()
    if sections:
        known_answers = [
            prior.why_important,
            prior.key_events,
            prior.country_position,
            prior.past_actions,
        ]
        query = " ".join(part for part in [query_context, draft.topic, draft.country, *known_answers] if part)
        content = format_sections_markdown(select_relevant_sections(sections, query))
        if content:
            prior.background_guide_content = content

    return prior
