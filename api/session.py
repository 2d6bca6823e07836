"""
api/session.py — 멀티유저 인메모리 세션 (쿠키 기반)

각 사용자에게 UUID 세션 ID를 발급하고, 세션마다 시험별 SessionController 를 보관한다.
TTL(기본 4시간) 경과 시 자동 만료되며, 만료/삭제되는 컨트롤러는 close() 로 타이머를 정리한다.
답안 자체는 ProgressStore 에 남아 있으므로 세션이 만료돼도 다시 시작하면 이어서 풀 수 있다.
"""

import threading
import time
import uuid
from typing import Dict, List, Optional

from config import SESSION_TTL
from exam_runtime.services.session_controller import SessionController

_lock = threading.Lock()
_sessions: Dict[str, Dict[int, SessionController]] = {}
_timestamps: Dict[str, float] = {}


def _close_all(controllers: Dict[int, SessionController]) -> None:
    for ctrl in controllers.values():
        ctrl.close()


def create_session() -> str:
    """새 세션을 생성하고 세션 ID를 반환."""
    sid = uuid.uuid4().hex
    with _lock:
        _sessions[sid] = {}
        _timestamps[sid] = time.time()
    return sid


def get_session(sid: str) -> Optional[Dict[int, SessionController]]:
    """세션 ID로 세션 데이터를 가져옴. 만료되었거나 없으면 None."""
    with _lock:
        if sid not in _sessions:
            return None
        if time.time() - _timestamps[sid] > SESSION_TTL:
            _close_all(_sessions.pop(sid))
            del _timestamps[sid]
            return None
        _timestamps[sid] = time.time()  # 접근 시 갱신
        return _sessions[sid]


def get_controller(sid: str, exam_id: int) -> Optional[SessionController]:
    session = get_session(sid)
    if session is None:
        return None
    return session.get(exam_id)


def put_controller(sid: str, controller: SessionController) -> None:
    """세션에 컨트롤러 등록. 같은 시험의 기존 컨트롤러는 정리한다."""
    with _lock:
        if sid not in _sessions:
            return
        old = _sessions[sid].get(controller.exam_id)
        if old is not None and old is not controller:
            old.close()
        _sessions[sid][controller.exam_id] = controller
        _timestamps[sid] = time.time()


def remove_controller(sid: str, exam_id: int) -> bool:
    with _lock:
        ctrl = _sessions.get(sid, {}).pop(exam_id, None)
    if ctrl is None:
        return False
    ctrl.close()
    return True


def reset(sid: str) -> None:
    """세션의 모든 시험 컨트롤러 정리 (세션 ID는 유지)."""
    with _lock:
        if sid in _sessions:
            _close_all(_sessions[sid])
            _sessions[sid] = {}
            _timestamps[sid] = time.time()


def cleanup_expired() -> int:
    """만료된 세션을 정리. 제거된 수 반환."""
    now = time.time()
    removed = 0
    with _lock:
        expired = [sid for sid, ts in _timestamps.items() if now - ts > SESSION_TTL]
        for sid in expired:
            _close_all(_sessions.pop(sid))
            del _timestamps[sid]
            removed += 1
    return removed


def close_all() -> List[str]:
    """서버 종료 시 모든 세션 정리."""
    with _lock:
        sids = list(_sessions)
        for sid in sids:
            _close_all(_sessions.pop(sid))
            del _timestamps[sid]
    return sids
