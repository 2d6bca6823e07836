from __future__ import annotations

from functools import lru_cache

import config
from exam_runtime.services.exam_client import ExamService, HttpExamService
from exam_runtime.services.progress_store import ProgressStore
from exam_runtime.storage.kv_store import FileKeyValueStore, InMemoryKeyValueStore


@lru_cache
def get_exam_service() -> ExamService:
    return HttpExamService(
        config.EXAM_API_BASE_URL,
        token=config.EXAM_API_TOKEN,
        timeout=config.EXAM_API_TIMEOUT,
    )


@lru_cache
def get_progress_store() -> ProgressStore:
    backend = (config.PROGRESS_BACKEND or "file").lower()
    if backend == "memory":
        return ProgressStore(InMemoryKeyValueStore())
    return ProgressStore(FileKeyValueStore(config.PROGRESS_DIR))
