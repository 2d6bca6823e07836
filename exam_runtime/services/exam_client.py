from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Any, Optional

import httpx
from pydantic import ValidationError

from exam_runtime.errors import ExamServiceError
from exam_runtime.models.exam_model import ExamDefinition, Submission, SubmissionAck
from exam_runtime.services.exam_service import SubmissionPayload, to_form_data

logger = logging.getLogger(__name__)


class ExamService(ABC):
    @abstractmethod
    async def get_exam(self, exam_id: int) -> ExamDefinition:
        raise NotImplementedError

    @abstractmethod
    async def submit(self, exam_id: int, payload: SubmissionPayload) -> SubmissionAck:
        raise NotImplementedError

    @abstractmethod
    async def get_submission(self, exam_id: int) -> Submission:
        raise NotImplementedError


class HttpExamService(ExamService):
    """
    원격 시험 API 클라이언트 (httpx).

      GET  {base}/exams/{id}/
      POST {base}/exams/submits/?exam_id={id}   multipart/form-data
      GET  {base}/exams/{id}/submit/
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _client(self) -> httpx.AsyncClient:
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            async with self._client() as client:
                r = await client.request(method, path, **kwargs)
                r.raise_for_status()
                if not r.content:
                    return None
                return r.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            raise ExamServiceError(f"{method} {path} 실패 (HTTP {status})", status_code=status) from e
        except httpx.HTTPError as e:
            raise ExamServiceError(f"{method} {path} 요청 오류: {e}") from e
        except ValueError as e:
            raise ExamServiceError(f"{method} {path} 응답 JSON 파싱 실패: {e}") from e

    async def get_exam(self, exam_id: int) -> ExamDefinition:
        data = await self._request("GET", f"/exams/{exam_id}/")
        try:
            return ExamDefinition.model_validate(data)
        except ValidationError as e:
            raise ExamServiceError(f"시험 정의 형식 오류 (exam={exam_id}): {e.error_count()}개 오류") from e

    async def submit(self, exam_id: int, payload: SubmissionPayload) -> SubmissionAck:
        data, files = to_form_data(payload)
        # 첨부가 없어도 multipart 로 보낸다 (filename=None 이면 일반 form 필드)
        parts = [(name, (None, value)) for name, value in data.items()] + files
        logger.info(
            f"답안 제출 요청 (exam={exam_id}, 답안 {len(payload.answers)}개, 첨부 {len(files)}개)"
        )
        body = await self._request("POST", "/exams/submits/", params={"exam_id": exam_id}, files=parts)
        try:
            return SubmissionAck.model_validate(body or {})
        except ValidationError as e:
            raise ExamServiceError(f"제출 응답 형식 오류 (exam={exam_id})") from e

    async def get_submission(self, exam_id: int) -> Submission:
        data = await self._request("GET", f"/exams/{exam_id}/submit/")
        try:
            return Submission.model_validate(data)
        except ValidationError as e:
            raise ExamServiceError(f"제출 기록 형식 오류 (exam={exam_id})") from e
