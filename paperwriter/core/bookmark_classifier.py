"""Regex classification of bookmarked sections into comprehension categories.

Categories are the comprehension question ids, so a classified bookmark can be
shown next to the question it helps answer. Classification is local and
offline; anything without a confident match is filed under ``other``.
"""

import re
from typing import Optional

from pydantic import BaseModel

from paperwriter.core.questions import COMPREHENSION_CATEGORY_GROUPS
from paperwriter.core.schemas_draft import BookmarkSection, ClassifiedBookmark

OTHER_CATEGORY = "other"
MIN_CONFIDENT_SCORE = 0.8


class ClassifyResult(BaseModel):
    category: str
    confidence: float
    classified_by: str = "regex"


def _rule(weight: float, *patterns: str, flags: int = re.IGNORECASE) -> tuple[float, list[re.Pattern]]:
    return weight, [re.compile(p, flags) for p in patterns]


# category -> (weight, patterns); score = matched patterns * weight
CLASSIFICATION_RULES: dict[str, tuple[float, list[re.Pattern]]] = {
    # Topic fundamentals
    "topicDefinition": _rule(
        1.0,
        r"\b(definition|defined as|refers to|meaning of|what is)\b",
        r"\b(the issue of|the problem of|the topic of)\b",
        r"\b(overview|introduction to)\b",
    ),
    "keyTerms": _rule(
        0.8,
        r"\b(terminology|glossary|key terms|important terms)\b",
        r"\b(vocab|vocabulary|definitions)\b",
        r"\bmeans\b.*\bwhen\b",
    ),
    "scope": _rule(
        0.7,
        r"\b(scope|boundary|boundaries|extent|range)\b",
        r"\b(geographic|regional|global|worldwide|international)\b",
        r"\b(affects|impacts|covers)\s+(more than|over|approximately)\b",
    ),
    # Historical context
    "origin": _rule(
        0.9,
        r"\b(origin|originated|began|started|emerged)\b",
        r"\b(first (appeared|occurred|happened))\b",
        r"\b(roots|beginning|genesis)\b",
    ),
    "timeline": _rule(
        1.0,
        r"\b(19|20)\d{2}\b",
        r"\b(since|from|between|during)\s+\d{4}\b",
        r"\b(january|february|march|april|may|june|july|august|september|october|november|december)\s+\d{4}\b",
        r"\b(timeline|chronology|history of)\b",
    ),
    "evolution": _rule(
        0.8,
        r"\b(evolution|evolved|developed|changed over time)\b",
        r"\b(progress|progression|transformation)\b",
        r"\b(over the (years|decades)|historically)\b",
    ),
    # Current situation
    "presentState": _rule(
        0.9,
        r"\b(currently|today|now|present|ongoing)\b",
        r"\b(current (state|situation|status))\b",
        r"\b(as of \d{4}|this year)\b",
    ),
    "keyStatistics": _rule(
        1.0,
        r"\d+\s*(million|billion|trillion|percent|%)",
        r"\b(statistics|data shows|numbers|figures)\b",
        r"\b(approximately|about|around|nearly|over|more than)\s+\d+",
        r"\$\d+",
    ),
    "recentDevelopments": _rule(
        0.9,
        r"\b(recent|recently|latest|new|emerging)\b",
        r"\b(202[0-9])\b",
        r"\b(last (year|month|few years))\b",
        r"\b(development|breakthrough|announcement)\b",
    ),
    # Stakeholders
    "affectedPopulations": _rule(
        0.9,
        r"\b(affected|impacted|vulnerable)\s+(populations?|communities?|groups?|people)\b",
        r"\b(victims|refugees|displaced|marginalized)\b",
        r"\b(women|children|minorities|indigenous)\b",
    ),
    "keyActors": _rule(
        0.8,
        r"\b(key (actors|players|stakeholders))\b",
        r"\b(governments?|organizations?|NGOs?|agencies)\b",
        r"\b(leaders|officials|representatives)\b",
    ),
    "powerDynamics": _rule(
        0.7,
        r"\b(power|influence|control|dominance)\b",
        r"\b(geopolitical|political leverage|economic power)\b",
        r"\b(balance of power|hegemony)\b",
    ),
    # Existing efforts
    "unActions": _rule(
        1.0,
        r"\b(united nations|UN|U\.N\.)(?=\W|$)",
        r"\b(resolution|treaty|convention|protocol)\b",
        r"\b(UNICEF|WHO|UNESCO|UNHCR|UNDP|FAO|WFP)\b",
        r"\b(security council|general assembly)\b",
    ),
    "regionalEfforts": _rule(
        0.9,
        r"\b(regional|AU|EU|ASEAN|OAS|NATO|ECOWAS)\b",
        r"\b(regional (organization|initiative|agreement))\b",
        r"\b(African Union|European Union|Arab League)\b",
    ),
    "successStories": _rule(
        0.8,
        r"\b(success|successful|worked|effective|achieved)\b",
        r"\b(progress|improvement|milestone|breakthrough)\b",
        r"\b(model|example|best practice)\b",
    ),
    "failures": _rule(
        0.8,
        r"\b(failed|failure|unsuccessful|ineffective)\b",
        r"\b(challenges|obstacles|setbacks|limitations)\b",
        r"\b(criticism|critique|shortcomings)\b",
    ),
    # Points of contention
    "majorDebates": _rule(
        0.9,
        r"\b(debate|controversy|disagreement|dispute)\b",
        r"\b(contentious|contested|divisive)\b",
        r"\b(argument|differing views|opposing)\b",
    ),
    "competingInterests": _rule(
        0.8,
        r"\b(competing|conflicting)\s+(interests?|priorities|goals)\b",
        r"\b(economic interests|political interests|trade-off)\b",
        r"\b(tension between|versus|vs\.)",
    ),
    "barriers": _rule(
        0.8,
        r"\b(barriers?|obstacles?|impediments?|hindrances?)\b",
        r"\b(why (hasn't|hasn't been|has not been) (solved|resolved))\b",
        r"\b(preventing|blocking|hindering)\b",
    ),
    # Country specific
    "countryInvolvement": _rule(
        0.7,
        r"\b(involvement|involved|participation|role)\b",
        r"\b(directly (affected|involved|connected))\b",
        r"\b(domestic|national)\s+(policy|action|response)\b",
    ),
    "pastPositions": _rule(
        0.9,
        r"\b(voted|vote|voting record)\b",
        r"\b(position|stance|statement|declared)\b",
        r"\b(supported|opposed|abstained)\b",
    ),
    "countryInterests": _rule(
        0.8,
        r"\b(national interests?|strategic interests?)\b",
        r"\b(why (it|this) matters to)\b",
        r"\b(benefit|advantage|priority for)\b",
    ),
    "allies": _rule(
        0.8,
        r"\b(allies|allied|alliance|coalition)\b",
        r"\b(partners|partnership|cooperation with)\b",
        r"\b(similar (views|positions|stance))\b",
    ),
    "constraints": _rule(
        0.7,
        r"\b(constraints?|limitations?|restrictions?)\b",
        r"\b(economic (constraints|limitations)|political (constraints|limitations))\b",
        r"\b(cannot|unable to|limited by)\b",
    ),
}

_CATEGORY_GROUPS: dict[str, str] = {
    category: group for group, categories in COMPREHENSION_CATEGORY_GROUPS.items() for category in categories
}

_LABEL_OVERRIDES = {"unActions": "UN Actions"}
_CAMEL_SPLIT_RE = re.compile(r"(?<=[a-z])(?=[A-Z])")


def classify_bookmark_local(text: str) -> Optional[ClassifyResult]:
    """
    Classify text with the regex rules.

    Returns:
        The best category when its score reaches 0.8, else None. Confidence
        is higher the further the winner is ahead of the runner-up.
    """
    scores: list[tuple[str, float]] = []
    for category, (weight, patterns) in CLASSIFICATION_RULES.items():
        matches = sum(1 for pattern in patterns if pattern.search(text))
        if matches:
            scores.append((category, matches * weight))

    if not scores:
        return None

    scores.sort(key=lambda item: item[1], reverse=True)
    best_category, best_score = scores[0]
    if best_score < MIN_CONFIDENT_SCORE:
        return None

    if len(scores) == 1:
        confidence = min(best_score / 2, 1.0)
    else:
        confidence = min((best_score - scores[1][1]) / best_score + 0.5, 1.0)

    return ClassifyResult(category=best_category, confidence=confidence)


def classify_sections(sections: list[BookmarkSection]) -> list[ClassifiedBookmark]:
    """Classify each section by heading and content; unmatched ones become ``other``."""
    classified = []
    for section in sections:
        result = classify_bookmark_local(f"{section.heading_text} {section.content}")
        classified.append(
            ClassifiedBookmark(
                id=section.id,
                heading_text=section.heading_text,
                content=section.content,
                category=result.category if result else OTHER_CATEGORY,
                confidence=result.confidence if result else 0.0,
            )
        )
    return classified


def get_category_group(category: str) -> str:
    return _CATEGORY_GROUPS.get(category, OTHER_CATEGORY)


def get_category_label(category: str) -> str:
    """Human-readable label, e.g. ``keyStatistics`` -> ``Key Statistics``."""
    if category in _LABEL_OVERRIDES:
        return _LABEL_OVERRIDES[category]
    return " ".join(word.capitalize() for word in _CAMEL_SPLIT_RE.split(category))


def filter_bookmarks_by_categories(
    bookmarks: list[ClassifiedBookmark], categories: list[str]
) -> list[ClassifiedBookmark]:
    """Keep bookmarks in any of the categories; an empty list keeps everything."""
    if not categories:
        return bookmarks
    wanted = set(categories)
    return [bookmark for bookmark in bookmarks if bookmark.category in wanted]
