"""
services/countdown.py

남은 시험 시간 계산과 1초 단위 카운트다운.

남은 시간은 두 기준 중 먼저 끝나는 쪽으로 정해진다.
  - 응시 시간 창: started_at + duration_minutes
  - 마감 시각:    deadline
"""

from __future__ import annotations

import asyncio
import logging
import math
from datetime import datetime, timedelta, timezone
from typing import Callable, Optional

from config import DANGER_THRESHOLD_SECONDS

logger = logging.getLogger(__name__)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def get_remaining_time(
    deadline: datetime,
    duration_minutes: int,
    started_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> int:
    """
    남은 시간(초)을 계산한다.

    Args:
        deadline:         응시 마감 시각
        duration_minutes: 1회 응시 허용 시간 (분)
        started_at:       응시 시작 시각. 없으면 마감 시각만 기준으로 한다.
        now:              현재 시각 (테스트용 주입, 기본값은 현재 UTC)

    Returns:
        0 이상의 정수 초.
    """
    now = now or utcnow()
    end = deadline
    if started_at is not None:
        end = min(started_at + timedelta(minutes=duration_minutes), deadline)
    return max(0, math.floor((end - now).total_seconds()))


def format_time_remaining(seconds: int) -> str:
    """MM:SS, 1시간 이상이면 HH:MM:SS."""
    seconds = max(0, int(seconds))
    hours, rest = divmod(seconds, 3600)
    minutes, secs = divmod(rest, 60)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{minutes:02d}:{secs:02d}"


def is_danger(seconds: int) -> bool:
    return seconds <= DANGER_THRESHOLD_SECONDS


class CountdownClock:
    """
    1초마다 remaining_seconds 를 정확히 1씩 줄이는 타이머.

    0에 도달하는 순간 on_expire 를 한 번만 호출한다 (edge-triggered).
    이후 tick 이 더 들어와도 다시 호출하지 않는다.
    """

    def __init__(
        self,
        remaining_seconds: int,
        on_expire: Callable[[], None],
        interval: float = 1.0,
    ) -> None:
        self.remaining_seconds = max(0, int(remaining_seconds))
        self.interval = interval
        self._on_expire = on_expire
        self._expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def expired(self) -> bool:
        return self._expired

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    def tick(self) -> int:
        if self.remaining_seconds > 0:
            self.remaining_seconds -= 1
            if self.remaining_seconds == 0:
                self._fire_expiry()
        return self.remaining_seconds

    def _fire_expiry(self) -> None:
        if self._expired:
            return
        self._expired = True
        logger.info("시험 시간이 종료되었습니다.")
        self._on_expire()

    def start(self) -> None:
        """이벤트 루프 안에서 호출해야 한다. 이미 0이면 즉시 만료를 알린다."""
        if self.running:
            return
        if self.remaining_seconds == 0:
            self._fire_expiry()
            return
        self._task = asyncio.get_running_loop().create_task(self._run())

    async def _run(self) -> None:
        while self.remaining_seconds > 0:
            await asyncio.sleep(self.interval)
            self.tick()

    def stop(self) -> None:
        if self._task is not None:
            self._task.cancel()
            self._task = None
