"""Sanitization for text going into and coming out of the polish model.

Inbound: strip prompt-injection markers, cap lengths, detect obvious
instruction-override attempts. Outbound: drop wrapping quotes and the chatty
preambles small instruction-tuned models like to prepend.
"""

import re

# Chat-template control tokens some models honour inside user text
_INJECTION_MARKERS = [
    r"\[INST\]",
    r"\[/INST\]",
    r"<\|.*?\|>",
    r"<<SYS>>",
    r"<</SYS>>",
]
_INJECTION_MARKER_RE = re.compile("|".join(_INJECTION_MARKERS), re.IGNORECASE)

_INJECTION_PATTERNS = [
    r"ignore\s+(all\s+)?(previous|prior|above)\s+instructions",
    r"disregard\s+(all\s+)?(previous|prior|above)\s+instructions",
    r"forget\s+(all\s+)?(previous|prior|above)\s+instructions",
    r"new\s+instructions?:",
    r"you\s+are\s+now\s+a",
    r"pretend\s+(you\s+are|to\s+be)",
    r"act\s+as\s+(if|a)",
    r"from\s+now\s+on,?\s+you",
    r"instead,?\s+(please\s+)?give\s+me",
    r"actually,?\s+(please\s+)?(just\s+)?give\s+me",
    r"do\s+not\s+follow\s+the\s+(above|previous)",
    r"override\s+(the\s+)?(system|instructions)",
    r"system\s*prompt",
    r"jailbreak",
    r"dan\s+mode",
]
_INJECTION_RE = re.compile("|".join(f"(?:{p})" for p in _INJECTION_PATTERNS), re.IGNORECASE)

# The model declined instead of polishing
_REFUSAL_PATTERNS = [
    r"^I cannot create content",
    r"^I can't create content",
    r"^I cannot help with",
    r"^I can't help with",
    r"^I cannot assist with",
    r"^I'm not able to",
    r"^I am not able to",
    r"^This text could not be processed",
    r"^Sorry, (but )?I (cannot|can't)",
    r"^I apologize, (but )?I (cannot|can't)",
    r"Is there anything else I can help",
]
_REFUSAL_RE = re.compile("|".join(f"(?:{p})" for p in _REFUSAL_PATTERNS), re.IGNORECASE)

_APOSTROPHE = "['’]"

_PREAMBLE_NOUN = r"(?:paragraph|text|sentence|sample|version)"
_PREAMBLE_ADJ = r"(?:polished |rewritten |revised |expanded |combined |sample )?"

# Anything that could open a real sentence must end in a colon or an
# interjection mark to count as a preamble.
PREAMBLE_PATTERNS: list[re.Pattern] = [
    re.compile(
        rf"^Here{_APOSTROPHE}?s (?:a |the |your )?{_PREAMBLE_ADJ}{_PREAMBLE_NOUN}\s*:\s*",
        re.IGNORECASE,
    ),
    re.compile(
        r"^(?:The )?(?:polished |expanded |rewritten |revised )?(?:paragraph|text) "
        r"(?:is|reads|would be)\s*:\s*",
        re.IGNORECASE,
    ),
    re.compile(r"^Sure thing\b[,!.]\s*", re.IGNORECASE),
    re.compile(r"^Sure\b[,!.]\s*", re.IGNORECASE),
    re.compile(r"^Here you go\b[:!.,]\s*", re.IGNORECASE),
    re.compile(r"^Okay\b[,!.]\s*", re.IGNORECASE),
    re.compile(r"^Of course\b[,!.]\s*", re.IGNORECASE),
    re.compile(r"^Certainly\b[,!.]\s*", re.IGNORECASE),
    re.compile(r"^Absolutely\b[,!.]\s*", re.IGNORECASE),
    re.compile(
        r"^(?:(?:I've|I have) )?(?:polished|rewritten|revised|expanded|combined|created|written)\b[^:\n]{0,40}:\s*",
        re.IGNORECASE,
    ),
    re.compile(
        rf"^(?:This|The following) (?:is|would be)(?: (?:a |the |your ){_PREAMBLE_ADJ}{_PREAMBLE_NOUN})?\s*:\s*",
        re.IGNORECASE,
    ),
    re.compile(r"^(?:Based on|Using) (?:the |your )?(?:information|text|input)\s*:\s*", re.IGNORECASE),
    re.compile(
        rf"^Here (?:is|are)(?: (?:a |the |your )?{_PREAMBLE_ADJ}{_PREAMBLE_NOUN})?\s*:\s*",
        re.IGNORECASE,
    ),
    re.compile(rf"^(?:Polished|Rewritten|Revised|Expanded|Combined) {_PREAMBLE_NOUN}\s*:\s*", re.IGNORECASE),
    re.compile(r"^(?:A |Here's a )?(?:sample|example) (?:paragraph|text|sentence)\s*:\s*", re.IGNORECASE),
    re.compile(r"^(?:Let me|I'll|I will) (?:help you )?(?:rewrite|polish|expand|combine)[^:\n]{0,40}:\s*", re.IGNORECASE),
]


def sanitize_input(text: str | None, max_length: int = 10_000) -> str:
    """
    Clean user text before it is embedded in a prompt.

    Args:
        text: Raw user input
        max_length: Maximum characters kept

    Returns:
        Trimmed text without chat-template control markers
    """
    if not text:
        return ""
    cleaned = _INJECTION_MARKER_RE.sub("", text.strip())
    return cleaned[:max_length]


def detects_injection_attempt(text: str) -> bool:
    """True if the text tries to override the system instructions."""
    return bool(text and _INJECTION_RE.search(text))


def is_refusal(text: str) -> bool:
    """True if the model refused rather than polished."""
    return bool(text and _REFUSAL_RE.search(text.strip()))


def strip_wrapping_quotes(text: str) -> str:
    """Remove one layer of matching double or single quotes."""
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ('"', "'"):
        return text[1:-1].strip()
    return text


def strip_preambles(text: str) -> str:
    """Drop leading preambles until none applies.

    A preamble can hide another ("Sure! Here's a paragraph: ...").
    """
    previous = None
    while previous != text:
        previous = text
        for pattern in PREAMBLE_PATTERNS:
            text = pattern.sub("", text, count=1)
    return text


def clean_model_response(raw: str) -> str:
    """
    Post-process raw model output into displayable text.

    Processing order:
    1. Strip one layer of wrapping quotes
    2. Strip known preambles (case-insensitive)
    3. Strip wrapping quotes again, since preambles can hide a second layer

    Args:
        raw: Model output

    Returns:
        Cleaned text (may be empty)
    """
    if not raw:
        return ""

    text = strip_wrapping_quotes(raw.strip())
    text = strip_preambles(text).strip()
    text = strip_wrapping_quotes(text)
    return text.strip()
