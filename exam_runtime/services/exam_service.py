"""
services/exam_service.py

제출 데이터 구성 로직.
순수 Python 함수로 구성 — 네트워크, 저장소, 전역 상태 변경 없음.
"""

import json
import math
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, Field

from exam_runtime.models.exam_model import ExamDefinition
from exam_runtime.models.session_state import Attachment
from exam_runtime.services.answer_ledger import AnswerLedger

ATTACHMENT_FIELD_PREFIX = "answer_image_"


class AnswerEntry(BaseModel):
    question: int
    answer_text: Optional[str] = None


class AttachmentPart(BaseModel):
    question: int
    file: Attachment

    @property
    def field_name(self) -> str:
        return f"{ATTACHMENT_FIELD_PREFIX}{self.question}"


class SubmissionPayload(BaseModel):
    time_spent_minutes: int = Field(..., ge=0)
    answers: List[AnswerEntry] = Field(default_factory=list)
    attachments: List[AttachmentPart] = Field(default_factory=list)


def compute_time_spent_minutes(
    exam: ExamDefinition,
    started_at: Optional[datetime],
    now: datetime,
) -> int:
    """
    소요 시간(분)을 계산한다.

    경과 시간(분, 내림)을 duration_minutes 로 제한한다.
    마감 이후의 수동 재제출도 실제 경과 시간을 그대로 보고한다.
    started_at 이 없으면 duration_minutes 를 그대로 쓴다.

    Returns:
        0 이상의 정수 분.
    """
    if started_at is None:
        return exam.duration_minutes

    elapsed = math.floor((now - started_at).total_seconds() / 60)
    return max(0, min(elapsed, exam.duration_minutes))


def build_submission_payload(
    exam: ExamDefinition,
    ledger: AnswerLedger,
    time_spent_minutes: int,
) -> SubmissionPayload:
    """
    답안지로 제출 데이터를 만든다.

    - answers: 시험 정의 순서대로 모든 문제에 대해 1개씩 (미응답은 answer_text=None)
    - attachments: 첨부가 있는 문제만
    """
    answers: List[AnswerEntry] = []
    attachments: List[AttachmentPart] = []

    for eq in exam.questions:
        qid = eq.question.id
        record = ledger.get(qid)
        answers.append(AnswerEntry(question=qid, answer_text=record.text))
        if record.attachment is not None:
            attachments.append(AttachmentPart(question=qid, file=record.attachment))

    return SubmissionPayload(
        time_spent_minutes=time_spent_minutes,
        answers=answers,
        attachments=attachments,
    )


def to_form_data(
    payload: SubmissionPayload,
) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, bytes, str]]]]:
    """
    multipart 요청 형태로 변환한다.

    Returns:
        (data, files)
        data  = {"time_spent_minutes": "12", "answers": "[{...}]"}
        files = [("answer_image_<id>", (filename, bytes, content_type)), ...]
    """
    data = {
        "time_spent_minutes": str(payload.time_spent_minutes),
        "answers": json.dumps([a.model_dump() for a in payload.answers], ensure_ascii=False),
    }
    files = [
        (part.field_name, (part.file.filename, part.file.content, part.file.content_type))
        for part in payload.attachments
    ]
    return data, files
