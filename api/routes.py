"""
api/routes.py — FastAPI 엔드포인트

SessionController 에 대한 명령(답안 저장, 이동, 제출)과 읽기 전용 상태 조회를 제공한다.
"""

from typing import Callable, Optional

from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile
from pydantic import BaseModel

import config
import api.session as session
from api.wiring import get_exam_service, get_progress_store
from exam_runtime.errors import ExamServiceError, LoadError, SessionStateError
from exam_runtime.models.session_state import Attachment, SessionStatus
from exam_runtime.services.exam_client import ExamService
from exam_runtime.services.progress_store import ProgressStore
from exam_runtime.services.session_controller import SessionController

router = APIRouter()

MAX_ATTACHMENT_SIZE = 10 * 1024 * 1024  # 10 MB


# ── Pydantic request bodies ──────────────────────────────────────────────────

class SaveAnswerBody(BaseModel):
    question_id: int
    text: Optional[str] = None

class NavigateBody(BaseModel):
    index: int = 0


# ── 헬퍼 ─────────────────────────────────────────────────────────────────────

def _controller(request: Request, exam_id: int) -> SessionController:
    ctrl = session.get_controller(request.state.session_id, exam_id)
    if ctrl is None:
        raise HTTPException(status_code=404, detail="시험 세션이 없습니다. 먼저 시험을 시작하세요.")
    return ctrl


def _command(fn: Callable, *args):
    """컨트롤러 명령 실행 + 예외를 HTTP 오류로 변환."""
    try:
        return fn(*args)
    except SessionStateError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


def _progress(ctrl: SessionController) -> dict:
    answered, total = ctrl.progress()
    return {"index": ctrl.cursor.index, "answered_count": answered, "total": total}


# ── 세션 ─────────────────────────────────────────────────────────────────────

@router.post("/api/exams/{exam_id}/session")
async def start_session(
    exam_id: int,
    request: Request,
    exam_service: ExamService = Depends(get_exam_service),
    progress_store: ProgressStore = Depends(get_progress_store),
):
    sid = request.state.session_id
    ctrl = session.get_controller(sid, exam_id)
    if ctrl is None or ctrl.status == SessionStatus.submitted:
        ctrl = SessionController(
            exam_id,
            exam_service,
            progress_store,
            tick_interval=config.TICK_INTERVAL_SECONDS,
        )
        session.put_controller(sid, ctrl)

    try:
        await ctrl.start()
    except LoadError as e:
        raise HTTPException(status_code=502, detail=str(e))
    return ctrl.view()


@router.get("/api/exams/{exam_id}/session")
async def get_session_view(exam_id: int, request: Request):
    return _controller(request, exam_id).view()


@router.delete("/api/exams/{exam_id}/session")
async def close_session(exam_id: int, request: Request):
    removed = session.remove_controller(request.state.session_id, exam_id)
    return {"ok": removed}


@router.get("/api/exams/{exam_id}/question/{index}")
async def get_question(exam_id: int, index: int, request: Request):
    ctrl = _controller(request, exam_id)
    if ctrl.exam is None or not (0 <= index < len(ctrl.exam.questions)):
        raise HTTPException(status_code=404, detail="문제를 찾을 수 없습니다.")

    eq = ctrl.exam.questions[index]
    record = ctrl.ledger.get(eq.question.id)
    d = eq.model_dump(mode="json")
    d.update({
        "saved_answer": record.text,
        "saved_attachment": record.attachment.filename if record.attachment else None,
        "index": index,
        "total": len(ctrl.exam.questions),
    })
    return d


# ── 답안 ─────────────────────────────────────────────────────────────────────

@router.post("/api/exams/{exam_id}/answer")
async def save_answer(exam_id: int, body: SaveAnswerBody, request: Request):
    ctrl = _controller(request, exam_id)
    record = _command(ctrl.set_text, body.question_id, body.text)
    return {"ok": True, "answered": record.is_answered, **_progress(ctrl)}


@router.post("/api/exams/{exam_id}/attachment/{question_id}")
async def upload_attachment(
    exam_id: int,
    question_id: int,
    request: Request,
    file: UploadFile = File(...),
):
    ctrl = _controller(request, exam_id)
    content = await file.read()
    if len(content) > MAX_ATTACHMENT_SIZE:
        raise HTTPException(status_code=413, detail="첨부 파일이 너무 큽니다 (최대 10MB).")
    if not content:
        raise HTTPException(status_code=400, detail="빈 파일입니다.")

    attachment = Attachment(
        filename=file.filename or f"answer_{question_id}",
        content=content,
        content_type=file.content_type or "application/octet-stream",
    )
    _command(ctrl.set_attachment, question_id, attachment)
    return {"ok": True, "filename": attachment.filename, **_progress(ctrl)}


@router.delete("/api/exams/{exam_id}/attachment/{question_id}")
async def remove_attachment(exam_id: int, question_id: int, request: Request):
    ctrl = _controller(request, exam_id)
    record = _command(ctrl.set_attachment, question_id, None)
    return {"ok": True, "answered": record.is_answered, **_progress(ctrl)}


# ── 이동 ─────────────────────────────────────────────────────────────────────

@router.post("/api/exams/{exam_id}/navigate")
async def navigate(exam_id: int, body: NavigateBody, request: Request):
    ctrl = _controller(request, exam_id)
    moved = _command(ctrl.go_to, body.index)
    return {"ok": True, "moved": moved, "index": ctrl.cursor.index}


@router.post("/api/exams/{exam_id}/next")
async def next_question(exam_id: int, request: Request):
    ctrl = _controller(request, exam_id)
    moved = _command(ctrl.next)
    return {"ok": True, "moved": moved, "index": ctrl.cursor.index}


@router.post("/api/exams/{exam_id}/prev")
async def prev_question(exam_id: int, request: Request):
    ctrl = _controller(request, exam_id)
    moved = _command(ctrl.prev)
    return {"ok": True, "moved": moved, "index": ctrl.cursor.index}


# ── 제출 ─────────────────────────────────────────────────────────────────────

@router.post("/api/exams/{exam_id}/submit")
async def submit_exam(exam_id: int, request: Request):
    ctrl = _controller(request, exam_id)
    if ctrl.status == SessionStatus.submitted:
        raise HTTPException(status_code=409, detail="이미 제출된 시험입니다.")
    if ctrl.is_submitting:
        raise HTTPException(status_code=409, detail="제출이 진행 중입니다.")

    if not await ctrl.submit():
        if ctrl.status == SessionStatus.submitted:
            raise HTTPException(status_code=409, detail="이미 제출된 시험입니다.")
        detail = str(ctrl.error) if ctrl.error else "제출할 수 없는 상태입니다."
        raise HTTPException(status_code=502, detail=detail)

    return {"ok": True, "submission": ctrl.ack.model_dump(mode="json") if ctrl.ack else None}


@router.get("/api/exams/{exam_id}/submission")
async def get_submission(
    exam_id: int,
    exam_service: ExamService = Depends(get_exam_service),
):
    try:
        submission = await exam_service.get_submission(exam_id)
    except ExamServiceError as e:
        status = 404 if e.status_code == 404 else 502
        raise HTTPException(status_code=status, detail=str(e))
    return submission.model_dump(mode="json")


@router.post("/api/reset")
async def reset_session(request: Request):
    session.reset(request.state.session_id)
    return {"ok": True}
