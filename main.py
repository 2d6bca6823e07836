"""
main.py — 시험 응시 런타임 진입점

로컬 FastAPI 서버(uvicorn)를 띄운다. 클라이언트는 /api/exams/{id}/session 으로 응시를 시작한다.
"""

import logging
import socket
import sys

from config import DEFAULT_HOST, DEFAULT_PORT, EXAM_API_BASE_URL, LOG_FILE, PROGRESS_BACKEND

# ── 로깅 설정 ────────────────────────────────────────────────────────────────
try:
    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s [%(levelname)s] %(message)s',
        handlers=[
            logging.FileHandler(LOG_FILE, encoding='utf-8'),
            logging.StreamHandler(sys.stdout)
        ]
    )
except PermissionError:
    # 로그 파일 점유 시 콘솔 출력만 사용
    logging.basicConfig(level=logging.INFO)

logger = logging.getLogger(__name__)

# ── 서버 및 네트워크 유틸 ───────────────────────────────────────────────────

def _port_available(port: int) -> bool:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        try:
            s.bind((DEFAULT_HOST, port))
        except OSError:
            return False
    return True

def _find_free_port() -> int:
    if _port_available(DEFAULT_PORT):
        return DEFAULT_PORT
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind((DEFAULT_HOST, 0))
        return s.getsockname()[1]

def run(port: int) -> None:
    import uvicorn
    from api.app import create_app

    logger.info(f"Uvicorn 서버 시작 - http://{DEFAULT_HOST}:{port}/api/exams/<id>/session")
    uvicorn.run(create_app(), host=DEFAULT_HOST, port=port, log_level="warning")

# ── 메인 실행 ────────────────────────────────────────────────────────────────

if __name__ == "__main__":
    logger.info("=== Exam Session Runtime Started ===")
    logger.info(f"시험 API: {EXAM_API_BASE_URL} / 진행 상황 저장소: {PROGRESS_BACKEND}")

    port = _find_free_port()
    if port != DEFAULT_PORT:
        logger.warning(f"포트 {DEFAULT_PORT} 사용 중. {port} 번으로 시작합니다.")
    try:
        run(port)
    except KeyboardInterrupt:
        logger.info("사용자에 의해 종료되었습니다.")
