import asyncio
from datetime import datetime, timedelta, timezone

from exam_runtime.errors import ExamServiceError, PersistenceError
from exam_runtime.models.exam_model import ExamDefinition, Submission, SubmissionAck
from exam_runtime.services.exam_client import ExamService
from exam_runtime.storage.kv_store import InMemoryKeyValueStore

T0 = datetime(2026, 10, 19, 9, 0, 0, tzinfo=timezone.utc)


class FakeClock:
    def __init__(self, now=T0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


def make_exam(exam_id=7, n_questions=3, duration_minutes=60, deadline=None, **extra):
    questions = []
    for i in range(n_questions):
        qid = 100 + i
        questions.append({
            "id": i + 1,
            "display_order": i,
            "points": 5,
            "question": {
                "id": qid,
                "question_head": f"Question {i + 1}",
                "type_ans": "mcq" if i % 2 == 0 else "short_answer",
                "points": 5,
                "mcq_options": [
                    {"id": 1, "option_text": "Paris"},
                    {"id": 2, "option_text": "Lyon"},
                ] if i % 2 == 0 else None,
            },
        })
    data = {
        "id": exam_id,
        "title": "Geography",
        "instructions": "Answer everything.",
        "questions": questions,
        "duration_minutes": duration_minutes,
        "deadline": (deadline or T0 + timedelta(minutes=120)).isoformat(),
        "status": "active",
    }
    data.update(extra)
    return ExamDefinition.model_validate(data)


class FakeExamService(ExamService):
    def __init__(self, exam=None, get_error=None, submit_errors=None, submit_delay=0.0):
        self.exam = exam
        self.get_error = get_error
        self.submit_errors = list(submit_errors or [])
        self.submit_delay = submit_delay
        self.get_calls = 0
        self.submit_calls = []

    async def get_exam(self, exam_id):
        self.get_calls += 1
        if self.get_error is not None:
            raise self.get_error
        return self.exam

    async def submit(self, exam_id, payload):
        self.submit_calls.append((exam_id, payload))
        if self.submit_delay:
            await asyncio.sleep(self.submit_delay)
        if self.submit_errors:
            raise self.submit_errors.pop(0)
        return SubmissionAck(id=len(self.submit_calls), exam=exam_id,
                             time_spent_minutes=payload.time_spent_minutes)

    async def get_submission(self, exam_id):
        if not self.submit_calls:
            raise ExamServiceError("not found", status_code=404)
        _, payload = self.submit_calls[-1]
        return Submission(
            id=len(self.submit_calls),
            exam=exam_id,
            submitted_at=T0,
            time_spent_minutes=payload.time_spent_minutes,
            answers=[a.model_dump() for a in payload.answers],
        )


class BrokenKeyValueStore(InMemoryKeyValueStore):
    """읽기/쓰기/삭제가 모두 실패하는 저장소."""

    def get(self, key):
        raise PersistenceError("disk on fire")

    def set(self, key, value):
        raise PersistenceError("disk full")

    def delete(self, key):
        raise PersistenceError("read-only")
