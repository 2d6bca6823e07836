import asyncio
import json

import httpx
import pytest

from exam_runtime.errors import ExamServiceError
from exam_runtime.models.session_state import Attachment
from exam_runtime.services.answer_ledger import AnswerLedger
from exam_runtime.services.exam_client import HttpExamService
from exam_runtime.services.exam_service import build_submission_payload
from fakes import make_exam

EXAM_JSON = make_exam(n_questions=2).model_dump(mode="json")


def _service(handler, token="secret"):
    return HttpExamService(
        "https://demo.example.org/api/",
        token=token,
        transport=httpx.MockTransport(handler),
    )


def test_get_exam_parses_definition_and_sends_token():
    seen = {}

    def handler(request):
        seen["url"] = str(request.url)
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json={**EXAM_JSON, "unknown_field": "ignored"})

    exam = asyncio.run(_service(handler).get_exam(7))

    assert seen["url"] == "https://demo.example.org/api/exams/7/"
    assert seen["auth"] == "Bearer secret"
    assert exam.id == 7
    assert exam.question_ids == [100, 101]
    assert exam.deadline.tzinfo is not None


def test_no_token_no_authorization_header():
    seen = {}

    def handler(request):
        seen["auth"] = request.headers.get("Authorization")
        return httpx.Response(200, json=EXAM_JSON)

    asyncio.run(_service(handler, token=None).get_exam(7))
    assert seen["auth"] is None


def test_submit_sends_multipart_form():
    seen = {}

    def handler(request):
        seen["method"] = request.method
        seen["path"] = request.url.path
        seen["exam_id"] = request.url.params.get("exam_id")
        seen["content_type"] = request.headers["Content-Type"]
        seen["body"] = request.content
        return httpx.Response(201, json={"id": 55, "exam": 7, "time_spent_minutes": 9, "attempt_number": 1})

    ledger = AnswerLedger()
    ledger.set(100, "Paris")
    ledger.set(101, None, Attachment(filename="q2.png", content=b"PNGDATA", content_type="image/png"))
    payload = build_submission_payload(make_exam(n_questions=2), ledger, 9)

    ack = asyncio.run(_service(handler).submit(7, payload))

    assert ack.id == 55
    assert ack.time_spent_minutes == 9
    assert seen["method"] == "POST"
    assert seen["path"] == "/api/exams/submits/"
    assert seen["exam_id"] == "7"
    assert seen["content_type"].startswith("multipart/form-data")
    body = seen["body"]
    assert b'name="time_spent_minutes"' in body
    assert b'name="answers"' in body
    assert json.dumps([{"question": 100, "answer_text": "Paris"},
                       {"question": 101, "answer_text": None}]).encode() in body
    assert b'name="answer_image_101"; filename="q2.png"' in body
    assert b"PNGDATA" in body


def test_submit_without_attachments_is_still_multipart():
    seen = {}

    def handler(request):
        seen["content_type"] = request.headers["Content-Type"]
        return httpx.Response(201)

    payload = build_submission_payload(make_exam(n_questions=1), AnswerLedger(), 0)
    ack = asyncio.run(_service(handler).submit(7, payload))

    assert seen["content_type"].startswith("multipart/form-data")
    assert ack.id is None


def test_http_error_becomes_exam_service_error():
    def handler(request):
        return httpx.Response(500, json={"detail": "boom"})

    with pytest.raises(ExamServiceError) as exc:
        asyncio.run(_service(handler).get_exam(7))
    assert exc.value.status_code == 500


def test_transport_error_becomes_exam_service_error():
    def handler(request):
        raise httpx.ConnectError("unreachable", request=request)

    with pytest.raises(ExamServiceError) as exc:
        asyncio.run(_service(handler).get_exam(7))
    assert exc.value.status_code is None


def test_malformed_exam_becomes_exam_service_error():
    def handler(request):
        return httpx.Response(200, json={"id": 7})

    with pytest.raises(ExamServiceError):
        asyncio.run(_service(handler).get_exam(7))


def test_get_submission():
    def handler(request):
        assert request.url.path == "/api/exams/7/submit/"
        return httpx.Response(200, json={
            "id": 3,
            "exam": 7,
            "submitted_at": "2026-10-19T10:00:00Z",
            "is_corrected": True,
            "total_score": 8.5,
            "time_spent_minutes": 40,
            "attempt_number": 1,
            "answers": [{"question": 100, "answer_text": "Paris", "answer_image": None}],
        })

    submission = asyncio.run(_service(handler).get_submission(7))
    assert submission.total_score == 8.5
    assert submission.answers[0].answer_text == "Paris"
