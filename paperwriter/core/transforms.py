"""Named text transforms used to derive one field from its sources.

Every transform is a pure function of ``(values, country)``. Single-source
transforms read ``values[0]``; combining transforms read all of them. Blank
fragments are treated as "no value" everywhere.
"""

import re
from typing import Callable

from paperwriter.core.schemas_draft import DEFAULT_DELEGATION

Transform = Callable[[list[str], str], str]

TERMINAL_MARKS = (".", "!", "?")
ORDINALS = ["First", "Second", "Third", "Fourth", "Fifth"]

_BULLET_PREFIX_RE = re.compile(r"^[-•*]\s*")
_REPEATED_TERMINAL_RE = re.compile(r"([.!?])[.!?]+$")
_SENTENCE_SPLIT_RE = re.compile(r"[.!?]+")


def ensure_terminal_punctuation(text: str) -> str:
    """Trim and make the fragment end in exactly one terminal mark."""
    trimmed = text.strip()
    if not trimmed:
        return ""
    trimmed = _REPEATED_TERMINAL_RE.sub(r"\1", trimmed)
    if trimmed.endswith(TERMINAL_MARKS):
        return trimmed
    return trimmed + "."


def _lower_first(text: str) -> str:
    return text[:1].lower() + text[1:]


def bullets_to_array(bullets: str) -> list[str]:
    """Split a bullet list into its non-empty points, markers removed."""
    points = []
    for line in bullets.split("\n"):
        text = _BULLET_PREFIX_RE.sub("", line.strip()).strip()
        if text:
            points.append(text)
    return points


def bullets_to_text(bullets: str) -> str:
    """Turn a bullet list into flowing text, one sentence per bullet."""
    return " ".join(ensure_terminal_punctuation(point) for point in bullets_to_array(bullets))


def bullets_to_numbered_sentences(bullets: str, intro: str | None = None) -> str:
    """Turn bullets into "First, ... Second, ..." sentences."""
    points = bullets_to_array(bullets)
    if not points:
        return ""

    sentences = []
    for i, point in enumerate(points):
        ordinal = ORDINALS[i] if i < len(ORDINALS) else f"{i + 1}."
        sentences.append(f"{ordinal}, {ensure_terminal_punctuation(_lower_first(point))}")

    body = " ".join(sentences)
    return f"{intro} {body}" if intro else body


def text_to_bullets(text: str) -> str:
    """Split prose into one bullet per sentence."""
    sentences = [s.strip() for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    return "\n".join(f"• {sentence}" for sentence in sentences)


def combine_sentences(texts: list[str]) -> str:
    """Join fragments into prose, each ending in a single terminal mark."""
    return " ".join(ensure_terminal_punctuation(t) for t in texts if t and t.strip())


def combine_solutions(solutions: list[str], country: str) -> str:
    """Join solution fragments behind an intro naming the acting country."""
    valid = [s.strip() for s in solutions if s and s.strip()]
    if not valid:
        return ""

    actor = country.strip() or DEFAULT_DELEGATION
    intro = f"{actor} proposes the following solutions to address this issue."
    formatted = []
    for i, solution in enumerate(valid):
        ordinal = ORDINALS[i] if i < len(ORDINALS) else f"{i + 1}."
        formatted.append(ensure_terminal_punctuation(f"{ordinal}, {_lower_first(solution)}"))

    return f"{intro} {' '.join(formatted)}"


def combine_ideas(texts: list[str]) -> str:
    """Rough concatenation for idea formation; punctuation is left alone."""
    return " ".join(t.strip() for t in texts if t and t.strip())


def _first(values: list[str]) -> str:
    return values[0] if values else ""


TRANSFORMS: dict[str, Transform] = {
    "direct": lambda values, country: _first(values),
    "bullets-to-text": lambda values, country: bullets_to_text(_first(values)),
    "text-to-bullets": lambda values, country: text_to_bullets(_first(values)),
    "combine-sentences": lambda values, country: combine_sentences(values),
    "combine-solutions": lambda values, country: combine_solutions(values, country),
    "combine-ideas": lambda values, country: combine_ideas(values),
}

SINGLE_SOURCE_TRANSFORMS = frozenset({"direct", "bullets-to-text", "text-to-bullets"})


def apply_transform(value: str, transform: str | None = None) -> str:
    """Apply a single-source transform; unknown or missing names pass through."""
    if not transform or transform not in SINGLE_SOURCE_TRANSFORMS:
        return value
    return TRANSFORMS[transform]([value], "")


def run_transform(transform: str, values: list[str], country: str = "") -> str:
    """Run any registered transform over resolved source values."""
    if not any(v.strip() for v in values):
        return ""
    return TRANSFORMS[transform](values, country)
