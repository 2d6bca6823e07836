"""
models/session_state.py

응시 진행 상태를 담는 모델.
Pydantic BaseModel 기반 — 직렬화/역직렬화 및 타입 안전성 확보.
UI 코드 없음.

  - Attachment      : 답안에 첨부한 파일 (메모리에만 존재, 저장되지 않음)
  - AnswerRecord    : 문제 하나에 대한 답안 (text / attachment)
  - ProgressSnapshot: 새로고침 후 이어 풀기를 위한 저장 형태
  - SessionView     : 화면 계층에 내려주는 읽기 전용 투영
"""

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from exam_runtime.models.exam_model import to_utc


class SessionStatus(str, Enum):
    idle = "idle"
    loading = "loading"
    active = "active"
    submitting = "submitting"
    submitted = "submitted"
    error = "error"


class Attachment(BaseModel):
    model_config = ConfigDict(frozen=True)

    filename: str = Field(..., min_length=1)
    content: bytes = Field(..., repr=False)
    content_type: str = "application/octet-stream"


class AnswerRecord(BaseModel):
    """
    문제 하나의 답안.
    text, attachment 중 하나라도 있으면 '응답함'으로 본다.
    """

    model_config = ConfigDict(frozen=True)

    text: Optional[str] = None
    attachment: Optional[Attachment] = None

    @property
    def is_answered(self) -> bool:
        return self.text is not None or self.attachment is not None


class StoredAnswer(BaseModel):
    """
    저장용 답안. 첨부 파일은 저장하지 않으므로 imageDataUrl은 항상 null로 기록하고,
    읽을 때 값이 있어도 복원하지 않는다.
    """

    model_config = ConfigDict(populate_by_name=True)

    text: Optional[str] = None
    image_data_url: Optional[str] = Field(None, alias="imageDataUrl")


class ProgressSnapshot(BaseModel):
    """
    저장소에 기록되는 진행 상황.

    Attributes:
        exam_id:       시험 ID (키와 내용이 어긋나면 스냅샷을 버린다)
        answers:       {question.id: StoredAnswer}
        current_index: 현재 문제 인덱스 (0-based)
        started_at:    응시 시작 시각. 한 번 기록되면 바뀌지 않는다 (응시 시간 기준점).
    """

    model_config = ConfigDict(populate_by_name=True)

    exam_id: int = Field(..., alias="examId")
    answers: Dict[int, StoredAnswer] = Field(default_factory=dict)
    current_index: int = Field(0, ge=0, alias="currentIndex")
    started_at: datetime = Field(..., alias="startedAt")

    @field_validator("started_at")
    @classmethod
    def normalize_tz(cls, v: datetime) -> datetime:
        return to_utc(v)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True)


class CurrentAnswerView(BaseModel):
    text: Optional[str] = None
    attachment_name: Optional[str] = None


class SessionView(BaseModel):
    """화면 계층용 읽기 전용 상태."""

    exam_id: int
    title: Optional[str] = None
    instructions: Optional[str] = None
    status: SessionStatus
    current_index: int = 0
    current_question: Optional[dict] = None
    current_answer: Optional[CurrentAnswerView] = None
    remaining_seconds: int = 0
    remaining_display: str = "00:00"
    is_danger: bool = False
    duration_minutes: int = 0
    answered_count: int = 0
    total_count: int = 0
    answered_indices: List[int] = Field(default_factory=list)
    is_submitting: bool = False
    is_expired: bool = False
    error: Optional[str] = None
