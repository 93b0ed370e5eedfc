"""Autofill of a layer's blank fields from earlier layers.

Handles:
- Change detection via a hash of the source layers
- Local autofill through the question graph transforms
- Optional AI polish of each filled value, falling back to the local value
- Cooldown tracking between runs
"""

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from paperwriter.core.logging import get_logger, log_with_context
from paperwriter.core.questions import QuestionDefinition, compute_local_value, get_questions_for_layer
from paperwriter.core.relevance import gather_prior_context
from paperwriter.core.schemas_draft import DEFAULT_DELEGATION, FIELD_LAYERS, LAYER_ORDER, Draft, Layer, PaperContext
from paperwriter.core.schemas_polish import AutofillResult
from paperwriter.services.polish_client import polish_text

logger = get_logger(__name__)

# update_answer(layer, question_id, value)
UpdateAnswer = Callable[[Layer, str, str], None]

AUTOFILL_COOLDOWN_SECONDS = 3

# Local transform -> AI transform; anything unmapped is never polished
AI_TRANSFORM_MAP: dict[str, str] = {
    "bullets-to-text": "bullets-to-paragraph",
    "combine-solutions": "combine-solutions",
    "combine-sentences": "formalize",
    "direct": "formalize",
}

_BASE36_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"


def map_to_ai_transform(local_transform: Optional[str]) -> Optional[str]:
    return AI_TRANSFORM_MAP.get(local_transform or "direct")


def _utf16_units(text: str):
    for ch in text:
        code = ord(ch)
        if code > 0xFFFF:
            code -= 0x10000
            yield 0xD800 + (code >> 10)
            yield 0xDC00 + (code & 0x3FF)
        else:
            yield code


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, remainder = divmod(value, 36)
        digits.append(_BASE36_DIGITS[remainder])
    return "".join(reversed(digits))


def djb2_hash(text: str) -> str:
    """32-bit djb2 over UTF-16 code units, rendered in base36."""
    value = 5381
    for unit in _utf16_units(text):
        value = ((value << 5) + value + unit) & 0xFFFFFFFF
    return _to_base36(value)


def compute_source_hash(target_layer: Layer, draft: Draft) -> str:
    """
    Hash every answer that can feed the target layer.

    Covers all field layers before ``target_layer`` (keys sorted) plus the
    country, which ``combine-solutions`` reads.

    Args:
        target_layer: Layer about to be autofilled
        draft: Current draft

    Returns:
        Compact hash string; equal inputs give equal hashes
    """
    target_layer = Layer(target_layer)
    source_data: list[str] = []
    target_index = LAYER_ORDER.index(target_layer)

    for layer in LAYER_ORDER[:target_index]:
        if layer not in FIELD_LAYERS:
            continue
        answers = draft.layers.field_map(layer)
        for key in sorted(answers):
            source_data.append(f"{layer.value}.{key}:{answers[key] or ''}")

    source_data.append(f"meta.country:{draft.country or ''}")
    return djb2_hash("|".join(source_data))


def _is_autofillable_layer(target_layer: Layer) -> bool:
    return target_layer in (Layer.IDEA_FORMATION, Layer.PARAGRAPH_COMPONENTS)


def _blank_candidates(target_layer: Layer, draft: Draft) -> list[QuestionDefinition]:
    return [
        question
        for question in get_questions_for_layer(target_layer)
        if question.auto_populate_from is not None and not draft.get_answer(target_layer, question.id).strip()
    ]


def _local_values(target_layer: Layer, draft: Draft) -> list[tuple[QuestionDefinition, str]]:
    """Compute the local value of every blank candidate, skipping blank results."""

    def accessor(layer: Layer, question_id: str) -> str:
        return draft.get_answer(layer, question_id)

    country = draft.country or DEFAULT_DELEGATION
    tasks = []
    for question in _blank_candidates(target_layer, draft):
        local_value = compute_local_value(question, accessor, country)
        if local_value.strip():
            tasks.append((question, local_value))
    return tasks


def perform_autofill(target_layer: Layer, draft: Draft, update_answer: UpdateAnswer) -> AutofillResult:
    """
    Fill the blank fields of a layer from earlier layers, without AI.

    Only fields that have a source definition, are blank, and resolve to a
    non-blank value are written. Comprehension and the final paper are never
    touched.

    Args:
        target_layer: Layer to fill
        draft: Current draft (read only)
        update_answer: Callback that persists one field

    Returns:
        AutofillResult listing the fields written
    """
    target_layer = Layer(target_layer)
    result = AutofillResult()
    if not _is_autofillable_layer(target_layer):
        return result

    for question, local_value in _local_values(target_layer, draft):
        update_answer(target_layer, question.id, local_value)
        result.record_update(question.id)

    log_with_context(
        logger,
        logging.INFO,
        "Local autofill complete",
        draft_id=draft.id,
        target_layer=target_layer.value,
        fields_updated=result.fields_updated,
    )
    return result


async def perform_autofill_with_ai(
    target_layer: Layer,
    draft: Draft,
    update_answer: UpdateAnswer,
    use_ai: bool = True,
    paper_context: Optional[PaperContext] = None,
) -> AutofillResult:
    """
    Fill the blank fields of a layer, polishing each value with AI.

    Polish calls run one at a time in field order. A failed polish keeps
    the local value and records a warning; the rest of the batch continues.

    Args:
        target_layer: Layer to fill
        draft: Current draft (read only)
        update_answer: Callback that persists one field
        use_ai: Set False to behave like ``perform_autofill``
        paper_context: Country, committee and topic; AI is skipped unless
            all three are present

    Returns:
        AutofillResult with the written fields, polish count and warnings
    """
    target_layer = Layer(target_layer)
    result = AutofillResult()
    if not _is_autofillable_layer(target_layer):
        return result

    can_use_ai = bool(use_ai and paper_context is not None and paper_context.is_complete())
    tasks = _local_values(target_layer, draft)

    log_with_context(
        logger,
        logging.INFO,
        "Starting autofill",
        draft_id=draft.id,
        target_layer=target_layer.value,
        use_ai=use_ai,
        can_use_ai=can_use_ai,
        candidates=len(tasks),
    )

    for question, local_value in tasks:
        final_value = local_value
        ai_transform = map_to_ai_transform(question.auto_populate_from.transform)

        if can_use_ai and ai_transform:
            prior_context = gather_prior_context(draft, f"{question.translation_key} {local_value}")
            try:
                polished = await polish_text(
                    local_value,
                    paper_context,
                    ai_transform,
                    prior_context=prior_context,
                    target_layer=target_layer.value,
                )
                if polished.success and polished.polished_text.strip():
                    final_value = polished.polished_text
                    result.ai_polished_count += 1
                elif polished.error:
                    log_with_context(
                        logger,
                        logging.WARNING,
                        "AI polish fell back to local value",
                        draft_id=draft.id,
                        question_id=question.id,
                        transform=ai_transform,
                        error=polished.error,
                    )
                    result.errors.append(f"AI polish warning for {question.id}: {polished.error}")
            except Exception as e:
                log_with_context(
                    logger,
                    logging.WARNING,
                    "AI polish raised, using local value",
                    draft_id=draft.id,
                    question_id=question.id,
                    transform=ai_transform,
                    error=str(e),
                )
                result.errors.append(f"AI polish failed for {question.id}: {e}")

        update_answer(target_layer, question.id, final_value)
        result.record_update(question.id)

    log_with_context(
        logger,
        logging.INFO,
        "Autofill complete",
        draft_id=draft.id,
        target_layer=target_layer.value,
        fields_updated=result.fields_updated,
        ai_polished=result.ai_polished_count,
        warnings=len(result.errors),
    )
    return result


def get_autofillable_field_count(target_layer: Layer, draft: Draft) -> int:
    """Count blank fields in a layer that have an autofill source."""
    target_layer = Layer(target_layer)
    if not _is_autofillable_layer(target_layer):
        return 0
    return len(_blank_candidates(target_layer, draft))


@dataclass
class AutofillTracker:
    """Cooldown and change detection between autofill runs."""

    last_autofill_at: Optional[float] = None
    last_source_hash: Optional[str] = None
    is_autofilling: bool = False
    cooldown_seconds: float = AUTOFILL_COOLDOWN_SECONDS

    def cooldown_remaining(self, now: Optional[float] = None) -> float:
        if self.last_autofill_at is None:
            return 0.0
        now = time.monotonic() if now is None else now
        return max(0.0, self.cooldown_seconds - (now - self.last_autofill_at))

    def should_autofill(self, target_layer: Layer, draft: Draft, now: Optional[float] = None) -> bool:
        """False while running, during cooldown, or when sources are unchanged."""
        if self.is_autofilling or self.cooldown_remaining(now) > 0:
            return False
        return compute_source_hash(target_layer, draft) != self.last_source_hash

    async def run(
        self,
        target_layer: Layer,
        draft: Draft,
        update_answer: UpdateAnswer,
        use_ai: bool = True,
        paper_context: Optional[PaperContext] = None,
        now: Optional[float] = None,
    ) -> Optional[AutofillResult]:
        """Run AI autofill if allowed; returns None when skipped."""
        if not self.should_autofill(target_layer, draft, now):
            return None

        source_hash = compute_source_hash(target_layer, draft)
        self.is_autofilling = True
        try:
            result = await perform_autofill_with_ai(
                target_layer, draft, update_answer, use_ai=use_ai, paper_context=paper_context
            )
        finally:
            self.is_autofilling = False
            self.last_autofill_at = time.monotonic() if now is None else now

        self.last_source_hash = source_hash
        return result
