"""
api/app.py — FastAPI 앱 인스턴스 + 세션 미들웨어 + 만료 세션 정리
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware

from config import SESSION_CLEANUP_INTERVAL
from api.routes import router
import api.session as session

SESSION_COOKIE = "cbt_session"

logger = logging.getLogger(__name__)


async def _cleanup_loop() -> None:
    # 만료 세션 주기적 정리. 타이머 태스크 정리를 위해 이벤트 루프 안에서 실행
    while True:
        await asyncio.sleep(SESSION_CLEANUP_INTERVAL)
        removed = session.cleanup_expired()
        if removed:
            logger.info(f"만료 세션 {removed}개 정리")


@asynccontextmanager
async def lifespan(app: FastAPI):
    task = asyncio.create_task(_cleanup_loop())
    try:
        yield
    finally:
        task.cancel()
        closed = session.close_all()
        if closed:
            logger.info(f"서버 종료: 세션 {len(closed)}개 정리")


def create_app() -> FastAPI:
    app = FastAPI(title="Exam Session Runtime", docs_url=None, redoc_url=None, lifespan=lifespan)

    # CORS (모바일 브라우저 등 다양한 출처 허용)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # 세션 미들웨어: 쿠키에서 세션 ID를 읽고, 없으면 새로 발급
    @app.middleware("http")
    async def session_middleware(request: Request, call_next):
        sid = request.cookies.get(SESSION_COOKIE)
        if not sid or session.get_session(sid) is None:
            sid = session.create_session()

        request.state.session_id = sid
        response: Response = await call_next(request)
        response.set_cookie(
            key=SESSION_COOKIE,
            value=sid,
            httponly=True,
            samesite="lax",
            max_age=session.SESSION_TTL,
        )
        return response

    app.include_router(router)

    return app
