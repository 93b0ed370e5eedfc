"""Final paper assembly from paragraph components.

Only ``layers.paragraph_components`` is read: autofill is responsible for
materializing derived values first. Headings and labels go through the
translation callable; student text is emitted verbatim.
"""

import re
from typing import Callable, Optional

from paperwriter.core.questions import PARAGRAPH_ORDER
from paperwriter.core.schemas_draft import Draft
from paperwriter.core.transforms import ensure_terminal_punctuation

# t(key, values=None) -> translated string
Translate = Callable[..., str]

PARAGRAPH_FIELDS: dict[str, list[str]] = {
    "intro": ["introSentence", "broadContext", "alternatePerspective", "callToAction", "thesis"],
    "background": ["bgIntroSentence", "keyFact1", "analysis1", "keyFact2", "analysis2", "bgSummary"],
    "position": ["posIntroSentence", "positionStatement", "posEvidence", "posAnalysis", "reasoning"],
    "solutions": ["solIntroSentence", "solutionProposal", "solEvidence", "connectionToSolution", "alternateSolution"],
    "conclusion": ["summaryEvidence", "summaryPosition", "summarySolution"],
}

# paragraph -> (heading key, placeholder key)
_SECTION_KEYS: dict[str, tuple[str, str]] = {
    "intro": ("finalPaperTemplate.introduction", "finalPaperTemplate.introPlaceholder"),
    "background": ("finalPaperTemplate.background", "finalPaperTemplate.backgroundPlaceholder"),
    "position": ("finalPaperTemplate.position", "finalPaperTemplate.positionPlaceholder"),
    "solutions": ("finalPaperTemplate.solutions", "finalPaperTemplate.solutionsPlaceholder"),
    "conclusion": ("finalPaperTemplate.conclusion", "finalPaperTemplate.conclusionPlaceholder"),
}


def combine_to_paragraph(fragments: list[Optional[str]]) -> str:
    """Join non-blank fragments, each ending in exactly one terminal mark."""
    return " ".join(ensure_terminal_punctuation(f) for f in fragments if f and f.strip())


def generate_paragraph_preview(draft: Draft, paragraph: str) -> str:
    """
    Assemble one paragraph from its components.

    Args:
        draft: Draft to read
        paragraph: One of ``PARAGRAPH_FIELDS``

    Returns:
        The paragraph text, or "" when every component is blank

    Raises:
        ValueError: If the paragraph name is unknown
    """
    if paragraph not in PARAGRAPH_FIELDS:
        raise ValueError(f"Unknown paragraph: {paragraph}")

    components = draft.layers.paragraph_components
    return combine_to_paragraph([components.get(key) for key in PARAGRAPH_FIELDS[paragraph]])


def generate_position_paper_template(draft: Draft, t: Translate) -> str:
    """
    Render the whole position paper as Markdown.

    Args:
        draft: Draft to read
        t: Translation callable for headings, labels and placeholders

    Returns:
        Markdown document: title, committee and topic labels, five ``##``
        sections (a bracketed placeholder for any empty one) and a footer
    """
    country = draft.country or "[Country]"
    lines: list[str] = [
        f"# {t('finalPaperTemplate.title', {'country': country})}",
        "",
        f"**{t('finalPaperTemplate.committeeLabel')}:** {draft.committee or '[Committee]'}",
        f"**{t('finalPaperTemplate.topicLabel')}:** {draft.topic or '[Topic]'}",
        "",
        "---",
        "",
    ]

    for paragraph in PARAGRAPH_ORDER:
        heading_key, placeholder_key = _SECTION_KEYS[paragraph]
        body = generate_paragraph_preview(draft, paragraph)
        lines.extend([f"## {t(heading_key)}", "", body or f"[{t(placeholder_key)}]", ""])

    lines.extend(["---", "", f"*{t('finalPaperTemplate.footer', {'country': country})}*"])
    return "\n".join(lines)


_HEADING_RE = re.compile(r"^#{1,3}\s+", re.MULTILINE)
_BOLD_RE = re.compile(r"\*\*(.+?)\*\*")
_ITALIC_RE = re.compile(r"\*(.+?)\*")
_RULE_RE = re.compile(r"^---$", re.MULTILINE)
_BRACKET_RE = re.compile(r"[\[\]]")


def to_plain_text(markdown: str) -> str:
    """Strip the Markdown the template emits (headings, emphasis, rules, brackets)."""
    text = _HEADING_RE.sub("", markdown)
    text = _BOLD_RE.sub(r"\1", text)
    text = _ITALIC_RE.sub(r"\1", text)
    text = _RULE_RE.sub("", text)
    return _BRACKET_RE.sub("", text)


def calculate_word_count(markdown: str) -> int:
    return len(to_plain_text(markdown).split())
