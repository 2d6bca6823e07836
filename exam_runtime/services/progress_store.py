"""
services/progress_store.py

진행 상황(ProgressSnapshot) 저장/복원.
저장소 오류는 절대 세션을 막지 않는다:
  - 읽기 실패 → 이전 기록 없음(None)으로 처리, 경고 로그
  - 쓰기/삭제 실패 → 경고 로그 후 계속 진행
"""

import logging
from typing import Optional

from pydantic import ValidationError

from exam_runtime.errors import PersistenceError
from exam_runtime.models.session_state import ProgressSnapshot
from exam_runtime.storage.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

STORAGE_KEY_PREFIX = "exam_progress_"


def storage_key(exam_id: int) -> str:
    return f"{STORAGE_KEY_PREFIX}{exam_id}"


class ProgressStore:
    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    def load(self, exam_id: int) -> Optional[ProgressSnapshot]:
        """
        저장된 스냅샷을 읽는다.

        Returns:
            ProgressSnapshot: 정상 기록이 있고 examId가 일치할 때
            None:             기록 없음, 손상, 다른 시험의 기록
        """
        key = storage_key(exam_id)
        try:
            raw = self.store.get(key)
        except PersistenceError as e:
            logger.warning(f"진행 상황 읽기 실패 (exam={exam_id}): {e}")
            return None
        if raw is None:
            return None

        try:
            snapshot = ProgressSnapshot.model_validate_json(raw)
        except ValidationError as e:
            logger.warning(f"손상된 진행 상황 무시 (exam={exam_id}): {e.error_count()}개 오류")
            return None

        if snapshot.exam_id != exam_id:
            logger.warning(
                f"진행 상황의 examId({snapshot.exam_id})가 요청한 시험({exam_id})과 달라 무시합니다."
            )
            return None
        return snapshot

    def save(self, exam_id: int, snapshot: ProgressSnapshot) -> bool:
        try:
            self.store.set(storage_key(exam_id), snapshot.to_json())
        except PersistenceError as e:
            logger.warning(f"진행 상황 저장 실패 (exam={exam_id}): {e}")
            return False
        return True

    def clear(self, exam_id: int) -> None:
        try:
            self.store.delete(storage_key(exam_id))
        except PersistenceError as e:
            logger.warning(f"진행 상황 삭제 실패 (exam={exam_id}): {e}")
