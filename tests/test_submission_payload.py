import json
from datetime import timedelta

from exam_runtime.models.session_state import Attachment
from exam_runtime.services.answer_ledger import AnswerLedger
from exam_runtime.services.exam_service import (
    build_submission_payload,
    compute_time_spent_minutes,
    to_form_data,
)
from fakes import T0, make_exam

SCAN = Attachment(filename="q2.jpg", content=b"jpeg-bytes", content_type="image/jpeg")


def test_text_and_attachment_only_answers():
    exam = make_exam(n_questions=2)
    ledger = AnswerLedger()
    ledger.set(100, "Paris")
    ledger.set(101, None, SCAN)

    payload = build_submission_payload(exam, ledger, 12)

    assert payload.time_spent_minutes == 12
    assert [(a.question, a.answer_text) for a in payload.answers] == [(100, "Paris"), (101, None)]
    assert len(payload.attachments) == 1
    assert payload.attachments[0].question == 101
    assert payload.attachments[0].field_name == "answer_image_101"


def test_unanswered_questions_still_listed_in_definition_order():
    exam = make_exam(n_questions=3)
    ledger = AnswerLedger()
    ledger.set(102, "last")
    ledger.set(999, "not in exam")

    payload = build_submission_payload(exam, ledger, 0)

    assert [a.question for a in payload.answers] == [100, 101, 102]
    assert [a.answer_text for a in payload.answers] == [None, None, "last"]
    assert payload.attachments == []


def test_time_spent_is_floored_elapsed_minutes():
    exam = make_exam(duration_minutes=60)
    now = T0 + timedelta(minutes=12, seconds=59)
    assert compute_time_spent_minutes(exam, T0, now) == 12


def test_time_spent_clamps_to_duration():
    exam = make_exam(duration_minutes=60, deadline=T0 + timedelta(hours=5))
    assert compute_time_spent_minutes(exam, T0, T0 + timedelta(hours=3)) == 60


def test_time_spent_ignores_deadline_before_duration():
    # 마감 후 수동 재제출: 실제 경과 시간을 보고
    exam = make_exam(duration_minutes=60, deadline=T0 + timedelta(minutes=5))
    assert compute_time_spent_minutes(exam, T0, T0 + timedelta(minutes=7)) == 7


def test_time_spent_never_negative():
    exam = make_exam(duration_minutes=60)
    assert compute_time_spent_minutes(exam, T0, T0 - timedelta(minutes=3)) == 0


def test_time_spent_without_start_is_full_duration():
    exam = make_exam(duration_minutes=45)
    assert compute_time_spent_minutes(exam, None, T0) == 45


def test_form_data_layout():
    exam = make_exam(n_questions=2)
    ledger = AnswerLedger()
    ledger.set(100, "Paris")
    ledger.set(101, None, SCAN)

    data, files = to_form_data(build_submission_payload(exam, ledger, 7))

    assert data["time_spent_minutes"] == "7"
    assert json.loads(data["answers"]) == [
        {"question": 100, "answer_text": "Paris"},
        {"question": 101, "answer_text": None},
    ]
    assert files == [("answer_image_101", ("q2.jpg", b"jpeg-bytes", "image/jpeg"))]
