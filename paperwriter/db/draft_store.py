"""File-backed draft persistence.

Layout under the store directory:

    drafts/<draft id>.json   one serialized draft (camelCase keys)
    index.json               draft ids, most recently created first
    current.json             {"currentDraftId": ...}

Only schema version 2 is read. Older drafts are never migrated; they are
removed by ``cleanup_legacy_drafts``.
"""

import json
import logging
import re
from datetime import datetime, timezone
from functools import lru_cache
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from paperwriter.core.config import get_settings
from paperwriter.core.logging import get_logger, log_with_context
from paperwriter.core.questions import get_questions_for_layer
from paperwriter.core.schemas_draft import DRAFT_SCHEMA_VERSION, FIELD_LAYERS, CamelModel, Draft, generate_draft_id

logger = get_logger(__name__)

# Shape produced by generate_draft_id; anything else never reaches the filesystem
DRAFT_ID_RE = re.compile(r"draft-\d+-[0-9a-z]+")


class InvalidDraftIdError(ValueError):
    """Raised when a draft id could name a path outside the store."""


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class DraftSummary(CamelModel):
    """Listing entry for the drafts sidebar."""

    id: str
    country: str
    committee: str
    topic: str
    updated_at: datetime
    completion_percentage: int


def create_empty_draft() -> Draft:
    """Create a new blank draft with a fresh id."""
    return Draft()


def calculate_completion(draft: Draft) -> int:
    """
    Percentage of answered fields across the field layers plus the final paper.

    Returns:
        Integer percentage, 0-100
    """
    answered = 0
    total = 0
    for layer in FIELD_LAYERS:
        answers = draft.layers.field_map(layer)
        questions = get_questions_for_layer(layer)
        total += len(questions)
        answered += sum(1 for q in questions if (answers.get(q.id) or "").strip())

    total += 1
    if draft.layers.final_paper.strip():
        answered += 1

    return round(answered / total * 100) if total else 0


def export_draft_to_json(draft: Draft) -> str:
    """Serialize a draft inside a versioned export envelope."""
    export_data = {
        "version": DRAFT_SCHEMA_VERSION,
        "exportedAt": _utc_now().isoformat(),
        "data": draft.model_dump(mode="json", by_alias=True),
    }
    return json.dumps(export_data, indent=2)


def import_draft_from_json(raw: str) -> Optional[Draft]:
    """
    Parse an exported draft (envelope or bare draft).

    The imported draft always gets a new id so it cannot overwrite an
    existing one.

    Returns:
        The draft, or None if the input is not a valid draft
    """
    try:
        parsed = json.loads(raw)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict):
        return None

    if parsed.get("version") is not None and isinstance(parsed.get("data"), dict):
        data = parsed["data"]
    elif parsed.get("id") and isinstance(parsed.get("layers"), dict):
        data = parsed
    else:
        return None

    try:
        draft = Draft.model_validate(data)
    except ValidationError as e:
        logger.warning(f"Rejected draft import: {e.error_count()} validation errors")
        return None

    now = _utc_now()
    draft.id = generate_draft_id()
    draft.version = DRAFT_SCHEMA_VERSION
    draft.created_at = now
    draft.updated_at = now
    return draft


class DraftStore:
    """Draft storage rooted at a directory."""

    def __init__(self, base_dir: str | Path):
        self.base_dir = Path(base_dir)
        self.drafts_dir = self.base_dir / "drafts"
        self.index_path = self.base_dir / "index.json"
        self.current_path = self.base_dir / "current.json"
        self.drafts_dir.mkdir(parents=True, exist_ok=True)

    def _draft_path(self, draft_id: str) -> Path:
        if not DRAFT_ID_RE.fullmatch(draft_id):
            raise InvalidDraftIdError(f"Invalid draft id: {draft_id!r}")
        return self.drafts_dir / f"{draft_id}.json"

    def _read_json(self, path: Path) -> Any:
        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except json.JSONDecodeError:
            logger.warning(f"Ignoring unreadable file: {path.name}")
            return None

    def _write_json(self, path: Path, data: Any) -> None:
        tmp_path = path.with_suffix(".tmp")
        tmp_path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        tmp_path.replace(path)

    def get_draft_ids(self) -> list[str]:
        ids = self._read_json(self.index_path)
        return [i for i in ids if isinstance(i, str)] if isinstance(ids, list) else []

    def _save_draft_ids(self, ids: list[str]) -> None:
        self._write_json(self.index_path, ids)

    def save(self, draft: Draft) -> Draft:
        """Persist a draft, stamping ``updated_at`` and indexing new ids first.

        Raises:
            InvalidDraftIdError: If the id is not a generated draft id
        """
        draft.updated_at = _utc_now()
        self._write_json(self._draft_path(draft.id), draft.model_dump(mode="json", by_alias=True))

        ids = self.get_draft_ids()
        if draft.id not in ids:
            ids.insert(0, draft.id)
            self._save_draft_ids(ids)

        log_with_context(logger, logging.DEBUG, "Saved draft", draft_id=draft.id, drafts=len(ids))
        return draft

    def load(self, draft_id: str) -> Optional[Draft]:
        """Load a version 2 draft; anything else reads as missing."""
        try:
            path = self._draft_path(draft_id)
        except InvalidDraftIdError:
            logger.warning(f"Refusing to load draft with invalid id: {draft_id!r}")
            return None

        data = self._read_json(path)
        if not isinstance(data, dict):
            return None
        if data.get("version") != DRAFT_SCHEMA_VERSION:
            log_with_context(logger, logging.INFO, "Skipping legacy draft", draft_id=draft_id, version=data.get("version"))
            return None

        try:
            return Draft.model_validate(data)
        except ValidationError as e:
            log_with_context(
                logger, logging.WARNING, "Draft failed validation", draft_id=draft_id, errors=e.error_count()
            )
            return None

    def delete(self, draft_id: str) -> None:
        """Remove a draft and its index entry.

        Raises:
            InvalidDraftIdError: If the id is not a generated draft id
        """
        self._draft_path(draft_id).unlink(missing_ok=True)
        self._save_draft_ids([i for i in self.get_draft_ids() if i != draft_id])

        if self.get_current_draft_id() == draft_id:
            self.set_current_draft_id(None)

    def get_current_draft_id(self) -> Optional[str]:
        data = self._read_json(self.current_path)
        if isinstance(data, dict) and isinstance(data.get("currentDraftId"), str):
            return data["currentDraftId"]
        return None

    def set_current_draft_id(self, draft_id: Optional[str]) -> None:
        if draft_id:
            self._write_json(self.current_path, {"currentDraftId": draft_id})
        else:
            self.current_path.unlink(missing_ok=True)

    def list_summaries(self) -> list[DraftSummary]:
        """Summaries of every loadable draft, in index order."""
        summaries = []
        for draft_id in self.get_draft_ids():
            draft = self.load(draft_id)
            if draft is None:
                continue
            summaries.append(
                DraftSummary(
                    id=draft.id,
                    country=draft.country or "Untitled",
                    committee=draft.committee,
                    topic=draft.topic,
                    updated_at=draft.updated_at,
                    completion_percentage=calculate_completion(draft),
                )
            )
        return summaries

    def cleanup_legacy_drafts(self) -> int:
        """
        Delete drafts saved with an older schema.

        Returns:
            Number of drafts removed
        """
        removed: list[str] = []
        for path in self.drafts_dir.glob("*.json"):
            data = self._read_json(path)
            if isinstance(data, dict) and data.get("version") == DRAFT_SCHEMA_VERSION:
                continue
            path.unlink(missing_ok=True)
            removed.append(path.stem)

        if removed:
            self._save_draft_ids([i for i in self.get_draft_ids() if i not in removed])
            if self.get_current_draft_id() in removed:
                self.set_current_draft_id(None)
            logger.info(f"Removed {len(removed)} legacy drafts")

        return len(removed)


@lru_cache
def get_draft_store() -> DraftStore:
    """Get the store configured by DRAFTS_DIR."""
    return DraftStore(get_settings().DRAFTS_DIR)
