"""
errors.py

시험 세션 런타임의 예외 계층.

  - LoadError         : 시험 정의 로드 실패. 세션 시작이 중단되며 start()를 다시 호출해 재시도.
  - PersistenceError  : 저장소 읽기/쓰기 실패. 항상 비치명적이며 ProgressStore 내부에서 로그만 남긴다.
  - SubmissionError   : 제출 실패. 세션은 제출 전 상태로 돌아가고 재시도 가능.
  - ExamServiceError  : 시험 서비스(HTTP) 호출 자체의 실패.
  - SessionStateError : 현재 세션 상태에서 허용되지 않는 명령.
"""

from typing import Optional


class ExamSessionError(Exception):
    """시험 세션 관련 예외의 공통 부모."""


class LoadError(ExamSessionError):
    pass


class PersistenceError(ExamSessionError):
    pass


class SubmissionError(ExamSessionError):
    pass


class SessionStateError(ExamSessionError):
    pass


class ExamServiceError(ExamSessionError):
    """원격 시험 서비스 호출 실패. HTTP 응답이 있었다면 status_code를 담는다."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code
