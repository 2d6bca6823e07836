from typing import Dict, Iterable, List, Optional

from exam_runtime.models.session_state import AnswerRecord, Attachment, StoredAnswer


class AnswerLedger:
    """
    문제 ID → 답안(AnswerRecord) 답안지.
    question_ids 는 시험에 포함된 문제 순서. 진행률의 분모가 된다.
    내용 검증(파일 형식, 글자 수 등)은 하지 않는다.
    """

    def __init__(self, question_ids: Iterable[int] = ()) -> None:
        self.question_ids: List[int] = list(question_ids)
        self._records: Dict[int, AnswerRecord] = {}

    def set(self, question_id: int, text: Optional[str], attachment: Optional[Attachment] = None) -> AnswerRecord:
        """
        답안을 통째로 교체한다.
        첨부를 유지하려면 호출 측이 현재 첨부를 그대로 넘겨야 한다.
        빈 문자열은 미응답(None)으로 취급한다.
        """
        record = AnswerRecord(text=text or None, attachment=attachment)
        self._records[question_id] = record
        return record

    def get(self, question_id: int) -> AnswerRecord:
        return self._records.get(question_id) or AnswerRecord()

    def is_answered(self, question_id: int) -> bool:
        return self.get(question_id).is_answered

    def answered_count(self, question_ids: Optional[Iterable[int]] = None) -> int:
        ids = self.question_ids if question_ids is None else question_ids
        return sum(1 for qid in ids if self.is_answered(qid))

    def answered_indices(self, question_ids: Optional[Iterable[int]] = None) -> List[int]:
        ids = self.question_ids if question_ids is None else question_ids
        return [i for i, qid in enumerate(ids) if self.is_answered(qid)]

    def total_count(self) -> int:
        """시험의 전체 문제 수 (답안 기록 수가 아님)."""
        return len(self.question_ids)

    def restore(self, answers: Dict[int, StoredAnswer]) -> None:
        """저장본에서 복원. 첨부 파일은 저장되지 않으므로 항상 비어 있다."""
        self._records = {
            qid: AnswerRecord(text=stored.text or None) for qid, stored in answers.items()
        }

    def to_stored(self) -> Dict[int, StoredAnswer]:
        return {qid: StoredAnswer(text=record.text) for qid, record in self._records.items()}
