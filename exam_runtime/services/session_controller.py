"""
services/session_controller.py

응시 세션 전체를 관리하는 컨트롤러.

  1. start()  : 시험 정의 로드 → 저장된 진행 상황 복원(없으면 새로 시작) → 타이머 시작
  2. 명령     : set_answer / set_text / set_attachment / go_to / next / prev
                변경될 때마다 진행 상황을 저장소에 다시 기록한다.
  3. submit() : 제출 중 플래그로 중복 제출을 막고, 성공 시 진행 상황을 지운다.
  4. 시간 만료 시 submit() 을 한 번 자동 호출한다.

모든 상태 변경은 하나의 asyncio 이벤트 루프에서 일어난다 (락 없음).
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from exam_runtime.errors import (
    ExamSessionError,
    LoadError,
    SessionStateError,
    SubmissionError,
)
from exam_runtime.models.exam_model import ExamDefinition, ExamQuestion, Submission, SubmissionAck
from exam_runtime.models.session_state import (
    AnswerRecord,
    Attachment,
    CurrentAnswerView,
    ProgressSnapshot,
    SessionStatus,
    SessionView,
)
from exam_runtime.services.answer_ledger import AnswerLedger
from exam_runtime.services.countdown import (
    CountdownClock,
    format_time_remaining,
    get_remaining_time,
    is_danger,
    utcnow,
)
from exam_runtime.services.exam_client import ExamService
from exam_runtime.services.exam_service import build_submission_payload, compute_time_spent_minutes
from exam_runtime.services.navigation import NavigationCursor
from exam_runtime.services.progress_store import ProgressStore

logger = logging.getLogger(__name__)

Listener = Callable[["SessionController"], None]


class SessionController:
    def __init__(
        self,
        exam_id: int,
        exam_service: ExamService,
        progress_store: ProgressStore,
        now: Callable[[], datetime] = utcnow,
        tick_interval: float = 1.0,
    ) -> None:
        self.exam_id = exam_id
        self.exam_service = exam_service
        self.progress_store = progress_store
        self.tick_interval = tick_interval
        self._now = now

        self.status = SessionStatus.idle
        self.exam: Optional[ExamDefinition] = None
        self.ledger = AnswerLedger()
        self.cursor = NavigationCursor(0)
        self.started_at: Optional[datetime] = None
        self.clock: Optional[CountdownClock] = None
        self.error: Optional[ExamSessionError] = None
        self.ack: Optional[SubmissionAck] = None

        self._submitting = False
        self._closed = False
        self._auto_submit_task: Optional[asyncio.Task] = None
        self._listeners: List[Listener] = []

    # ── 관찰자 ──────────────────────────────────────────────────────────────

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """상태가 바뀔 때마다 listener(self) 호출. 반환값을 호출하면 구독 해제."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener(self)

    # ── 시작 ────────────────────────────────────────────────────────────────

    async def start(self) -> None:
        """
        시험을 로드하고 응시를 시작(또는 이어서)한다.

        Raises:
            LoadError: 시험 정의를 가져오지 못한 경우. 다시 start()를 호출하면 재시도한다.
        """
        if self.status not in (SessionStatus.idle, SessionStatus.error) or self._closed:
            return

        self.status = SessionStatus.loading
        self.error = None
        self._notify()

        try:
            exam = await self.exam_service.get_exam(self.exam_id)
        except Exception as e:
            self.status = SessionStatus.error
            self.error = LoadError(f"시험을 불러오지 못했습니다 (exam={self.exam_id}): {e}")
            logger.error(str(self.error))
            self._notify()
            raise self.error from e

        self.exam = exam
        self.cursor = NavigationCursor(len(exam.questions))
        self.ledger = AnswerLedger(exam.question_ids)

        snapshot = self.progress_store.load(self.exam_id)
        if snapshot is not None:
            self.ledger.restore(snapshot.answers)
            self.cursor.reset(snapshot.current_index)
            self.started_at = snapshot.started_at
            logger.info(
                f"진행 상황 복원 (exam={self.exam_id}, 답안 {len(snapshot.answers)}개, "
                f"문제 {self.cursor.index + 1}, 시작 {self.started_at.isoformat()})"
            )
        else:
            # 첫 답안 전에 종료돼도 응시 시작 시각이 남도록 즉시 저장
            self.started_at = self._now()
            self._persist()
            logger.info(f"새 응시 시작 (exam={self.exam_id}, 문제 {len(exam.questions)}개)")

        remaining = get_remaining_time(
            exam.deadline, exam.duration_minutes, self.started_at, self._now()
        )
        self.clock = CountdownClock(remaining, self._on_expire, self.tick_interval)
        self.status = SessionStatus.active
        self._notify()
        self.clock.start()

    # ── 저장 ────────────────────────────────────────────────────────────────

    def snapshot(self) -> ProgressSnapshot:
        return ProgressSnapshot(
            exam_id=self.exam_id,
            answers=self.ledger.to_stored(),
            current_index=self.cursor.index,
            started_at=self.started_at,
        )

    def _persist(self) -> bool:
        return self.progress_store.save(self.exam_id, self.snapshot())

    # ── 명령 ────────────────────────────────────────────────────────────────

    def _require_active(self) -> None:
        if self._closed:
            raise SessionStateError("종료된 세션입니다.")
        if self.status == SessionStatus.submitting:
            raise SessionStateError("제출 중에는 답안을 변경할 수 없습니다.")
        if self.status != SessionStatus.active:
            raise SessionStateError(f"진행 중인 시험이 아닙니다 (상태: {self.status.value}).")

    def _require_question(self, question_id: int) -> None:
        if question_id not in self.exam.question_ids:
            raise ValueError(f"시험에 없는 문제입니다: {question_id}")

    def set_answer(
        self, question_id: int, text: Optional[str], attachment: Optional[Attachment] = None
    ) -> AnswerRecord:
        """답안을 통째로 교체한다. 첨부를 유지하려면 현재 첨부를 함께 넘긴다."""
        self._require_active()
        self._require_question(question_id)
        record = self.ledger.set(question_id, text, attachment)
        self._persist()
        self._notify()
        return record

    def set_text(self, question_id: int, text: Optional[str]) -> AnswerRecord:
        """텍스트만 바꾸고 첨부는 유지."""
        current = self.ledger.get(question_id)
        return self.set_answer(question_id, text, current.attachment)

    def set_attachment(self, question_id: int, attachment: Optional[Attachment]) -> AnswerRecord:
        """첨부만 바꾸고 텍스트는 유지. None 이면 첨부 삭제."""
        current = self.ledger.get(question_id)
        return self.set_answer(question_id, current.text, attachment)

    def _moved(self, changed: bool) -> bool:
        if changed:
            self._persist()
            self._notify()
        return changed

    def go_to(self, index: int) -> bool:
        self._require_active()
        return self._moved(self.cursor.go_to(index))

    def next(self) -> bool:
        self._require_active()
        return self._moved(self.cursor.next())

    def prev(self) -> bool:
        self._require_active()
        return self._moved(self.cursor.prev())

    # ── 제출 ────────────────────────────────────────────────────────────────

    @property
    def is_submitting(self) -> bool:
        return self._submitting

    async def submit(self) -> bool:
        """
        답안을 제출한다.

        Returns:
            True  — 제출 성공 (진행 상황 삭제, 타이머 정지)
            False — 이미 제출 중이거나 제출 불가 상태, 또는 제출 실패
                    (실패 시 진행 상황은 그대로, self.error 에 SubmissionError)
        """
        if self._submitting or self.exam is None or self.status != SessionStatus.active:
            return False

        # 첫 await 전에 플래그를 세워 동시에 들어온 두 번째 호출을 막는다
        self._submitting = True
        self.status = SessionStatus.submitting
        try:
            self._notify()
            time_spent = compute_time_spent_minutes(self.exam, self.started_at, self._now())
            payload = build_submission_payload(self.exam, self.ledger, time_spent)
            ack = await self.exam_service.submit(self.exam_id, payload)
        except Exception as e:
            self.error = SubmissionError(f"제출에 실패했습니다. 다시 시도해 주세요: {e}")
            self.status = SessionStatus.active
            logger.error(f"답안 제출 실패 (exam={self.exam_id}): {e}")
            return False
        finally:
            self._submitting = False
            self._notify()

        self.progress_store.clear(self.exam_id)
        if self.clock is not None:
            self.clock.stop()
        self.ack = ack
        self.error = None
        self.status = SessionStatus.submitted
        logger.info(f"답안 제출 완료 (exam={self.exam_id}, 소요 {time_spent}분)")
        self._notify()
        return True

    def _on_expire(self) -> None:
        logger.warning(f"시간 만료, 자동 제출 (exam={self.exam_id})")
        self._auto_submit_task = asyncio.get_running_loop().create_task(self._auto_submit())

    async def _auto_submit(self) -> bool:
        ok = await self.submit()
        if not ok and self.status == SessionStatus.active:
            # 자동 재시도 없음. 수동 제출만 가능
            logger.error(f"자동 제출 실패 (exam={self.exam_id}). 수동 제출을 기다립니다.")
        return ok

    @property
    def auto_submit_task(self) -> Optional[asyncio.Task]:
        return self._auto_submit_task

    async def fetch_submission(self) -> Submission:
        return await self.exam_service.get_submission(self.exam_id)

    # ── 종료 ────────────────────────────────────────────────────────────────

    def close(self) -> None:
        """타이머를 정리한다. 이미 진행 중인 제출은 취소하지 않는다."""
        if self.clock is not None:
            self.clock.stop()
        self._closed = True
        self._listeners.clear()

    # ── 조회 ────────────────────────────────────────────────────────────────

    @property
    def remaining_seconds(self) -> int:
        return self.clock.remaining_seconds if self.clock is not None else 0

    @property
    def is_expired(self) -> bool:
        return self.clock is not None and self.clock.expired

    @property
    def current_question(self) -> Optional[ExamQuestion]:
        if self.exam is None or not self.exam.questions:
            return None
        return self.exam.questions[self.cursor.index]

    def progress(self) -> tuple:
        """(답한 문제 수, 전체 문제 수)"""
        if self.exam is None:
            return 0, 0
        return self.ledger.answered_count(), self.ledger.total_count()

    def view(self) -> SessionView:
        exam = self.exam
        answered, total = self.progress()
        remaining = self.remaining_seconds
        current = self.current_question
        current_answer = None
        if current is not None:
            record = self.ledger.get(current.question.id)
            current_answer = CurrentAnswerView(
                text=record.text,
                attachment_name=record.attachment.filename if record.attachment else None,
            )

        return SessionView(
            exam_id=self.exam_id,
            title=exam.title if exam else None,
            instructions=exam.instructions if exam else None,
            status=self.status,
            current_index=self.cursor.index,
            current_question=current.model_dump(mode="json") if current else None,
            current_answer=current_answer,
            remaining_seconds=remaining,
            remaining_display=format_time_remaining(remaining),
            is_danger=is_danger(remaining),
            duration_minutes=exam.duration_minutes if exam else 0,
            answered_count=answered,
            total_count=total,
            answered_indices=self.ledger.answered_indices(),
            is_submitting=self._submitting,
            is_expired=self.is_expired,
            error=str(self.error) if self.error else None,
        )
