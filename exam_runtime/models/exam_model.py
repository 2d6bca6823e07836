from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def to_utc(value: datetime) -> datetime:
    """타임존 정보가 없는 시각은 UTC로 간주한다 (서버는 UTC ISO-8601 문자열을 내려준다)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class ExamStatus(str, Enum):
    waiting = "waiting"
    active = "active"
    completed = "completed"


class Difficulty(str, Enum):
    easy = "easy"
    medium = "medium"
    hard = "hard"


class QuestionType(str, Enum):
    mcq = "mcq"
    passage = "passage"
    short_answer = "short_answer"
    essay = "essay"


class McqOption(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    option_text: str


class MiniQuestion(BaseModel):
    """지문형(passage) 문제에 딸린 소문항."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    type_ans: QuestionType
    question_head: str
    mcq_options: List[Any] = Field(default_factory=list)


class Question(BaseModel):
    """
    시험에 포함되는 개별 문제.
    응시 화면에는 정답/해설이 내려오지 않으므로 해당 필드는 받지 않는다.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int = Field(..., description="문제 고유 식별자 (답안 키로 사용)")
    question_head: str = Field(..., description="발문")
    type_ans: QuestionType = Field(..., description="문제 유형")
    difficulty: Optional[Difficulty] = None
    image: Optional[str] = Field(None, description="문제 이미지 URL")
    points: float = 0
    mcq_options: List[McqOption] = Field(default_factory=list)
    mini_questions: List[MiniQuestion] = Field(default_factory=list)

    @field_validator("mcq_options", "mini_questions", mode="before")
    @classmethod
    def none_to_empty(cls, v):
        return v or []


class ExamQuestion(BaseModel):
    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int
    display_order: int = 0
    points: float = 0
    time_limit_minutes: Optional[int] = None
    question: Question


class ExamDefinition(BaseModel):
    """
    응시 세션에 로드되는 시험 정의.
    세션 동안 변경되지 않는다 (frozen).
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: int = Field(..., description="시험 ID")
    title: str = Field(..., min_length=1, description="시험 제목")
    instructions: Optional[str] = Field(None, description="응시 안내문")
    questions: List[ExamQuestion] = Field(default_factory=list)
    duration_minutes: int = Field(..., ge=0, description="1회 응시 허용 시간 (분)")
    deadline: datetime = Field(..., description="응시 마감 시각 (절대 시각)")
    start_time: Optional[datetime] = None
    status: ExamStatus = ExamStatus.active
    difficulty: Optional[Difficulty] = None
    level: Optional[int] = None
    klass: Optional[int] = None
    allowed_attempts: Optional[int] = None
    randomize_order_for_stud: bool = False
    auto_grade_release: bool = False
    prevent_cheating: bool = False
    created_at: Optional[datetime] = None

    @field_validator("deadline", "start_time", "created_at")
    @classmethod
    def normalize_tz(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_unique_questions(self) -> "ExamDefinition":
        """같은 문제가 두 번 들어가면 답안 키가 충돌한다."""
        ids = [eq.question.id for eq in self.questions]
        if len(ids) != len(set(ids)):
            raise ValueError(f"중복된 문제 ID가 있습니다: {ids}")
        return self

    @property
    def question_ids(self) -> List[int]:
        return [eq.question.id for eq in self.questions]


class SubmittedAnswer(BaseModel):
    model_config = ConfigDict(extra="ignore")

    question: int
    answer_text: Optional[str] = None
    answer_image: Optional[str] = None


class SubmissionAck(BaseModel):
    """제출 API 응답. 서버 구현에 따라 필드가 더 있을 수 있어 extra 허용."""

    model_config = ConfigDict(extra="allow")

    id: Optional[int] = None
    exam: Optional[int] = None
    submitted_at: Optional[datetime] = None
    time_spent_minutes: Optional[int] = None
    attempt_number: Optional[int] = None


class Submission(BaseModel):
    """제출 결과 조회 모델 (채점 결과 화면용)."""

    model_config = ConfigDict(extra="ignore")

    id: int
    exam: int
    student: Optional[int] = None
    submitted_at: datetime
    is_corrected: bool = False
    total_score: Optional[float] = None
    feedback: Optional[str] = None
    time_spent_minutes: int = 0
    attempt_number: int = 1
    answers: List[SubmittedAnswer] = Field(default_factory=list)
