"""
Persistence adapter for the in-progress interview and the archive of completed ones.
The durable store is only ever accessed through this narrow interface.
"""
import json
import logging
from typing import List, Optional

from pydantic import ValidationError

from models.schemas import CompletedSession, InProgressInterview
from storage.kv_store import StorageWriteError
from utils.config import config

logger = logging.getLogger(__name__)


class SessionPersistence:
    """
    Serializes sessions to a string-valued key-value store.

    Reads never raise: missing or malformed data is treated as absent.
    Writes report failure by returning False and leave callers' state untouched.
    """

    def __init__(
        self,
        store,
        max_question_index: int,
        in_progress_key: Optional[str] = None,
        completed_key: Optional[str] = None,
    ):
        """
        Args:
            store: Key-value store with get/set/remove
            max_question_index: Largest valid persisted question index
            in_progress_key: Slot for the interview in progress
            completed_key: Slot for the completed-interview archive
        """
        self.store = store
        self.max_question_index = max_question_index
        self.in_progress_key = in_progress_key or config.storage.in_progress_key
        self.completed_key = completed_key or config.storage.completed_key

    # ========================================
    # Low-level helpers
    # ========================================

    def _write(self, key: str, payload) -> bool:
        try:
            self.store.set(key, json.dumps(payload))
            return True
        except (StorageWriteError, OSError, TypeError, ValueError) as e:
            logger.warning(f"Failed to persist '{key}': {e}")
            return False

    def _read(self, key: str):
        raw = self.store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning(f"Stored '{key}' is not valid JSON, ignoring it: {e}")
            return None

    # ========================================
    # In-progress slot
    # ========================================

    def save_in_progress(self, session: InProgressInterview) -> bool:
        """Overwrite the in-progress slot with the session's persisted fields."""
        snapshot = InProgressInterview(
            transcript=session.transcript,
            next_question_index=session.next_question_index,
            candidate=session.candidate,
            pending_detail_field=session.pending_detail_field,
        )
        return self._write(self.in_progress_key, snapshot.model_dump(mode="json", by_alias=True))

    def load_in_progress(self) -> Optional[InProgressInterview]:
        data = self._read(self.in_progress_key)
        if data is None:
            return None

        try:
            saved = InProgressInterview.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Discarding malformed in-progress interview: {e.error_count()} errors")
            return None

        if saved.next_question_index > self.max_question_index:
            logger.warning(f"Discarding in-progress interview with question index {saved.next_question_index}")
            return None
        return saved

    def has_in_progress(self) -> bool:
        return self.load_in_progress() is not None

    def clear_in_progress(self) -> bool:
        try:
            self.store.remove(self.in_progress_key)
            return True
        except (StorageWriteError, OSError) as e:
            logger.warning(f"Failed to clear in-progress interview: {e}")
            return False

    # ========================================
    # Completed archive
    # ========================================

    def load_completed(self) -> List[CompletedSession]:
        data = self._read(self.completed_key)
        if data is None:
            return []
        if not isinstance(data, list):
            logger.warning(f"Stored '{self.completed_key}' is not a list, ignoring it")
            return []

        archive = []
        for i, record in enumerate(data):
            try:
                archive.append(CompletedSession.model_validate(record))
            except ValidationError as e:
                logger.warning(f"Skipping malformed archived interview #{i}: {e.error_count()} errors")
        return archive

    def save_completed(self, archive: List[CompletedSession]) -> bool:
        payload = [item.model_dump(mode="json", by_alias=True) for item in archive]
        return self._write(self.completed_key, payload)

    def append_completed(self, completed: CompletedSession) -> bool:
        archive = self.load_completed()
        archive.append(completed)
        saved = self.save_completed(archive)
        if saved:
            logger.info(f"Archived interview {completed.interview_id} (score {completed.score})")
        return saved
