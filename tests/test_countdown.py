import asyncio
from datetime import timedelta

import pytest

from exam_runtime.services.countdown import (
    CountdownClock,
    format_time_remaining,
    get_remaining_time,
    is_danger,
)
from fakes import T0


def test_fresh_start_uses_full_duration():
    remaining = get_remaining_time(T0 + timedelta(minutes=120), 60, started_at=T0, now=T0)
    assert remaining == 3600


def test_resumed_after_ten_minutes():
    now = T0 + timedelta(minutes=10)
    remaining = get_remaining_time(T0 + timedelta(minutes=120), 60, started_at=T0, now=now)
    assert remaining == 3000


def test_deadline_binds_before_duration():
    remaining = get_remaining_time(T0 + timedelta(minutes=5), 60, started_at=T0, now=T0)
    assert remaining == 300


def test_without_started_at_falls_back_to_deadline():
    remaining = get_remaining_time(T0 + timedelta(minutes=5), 60, started_at=None, now=T0)
    assert remaining == 300


def test_past_end_clamps_to_zero():
    now = T0 + timedelta(hours=3)
    assert get_remaining_time(T0 + timedelta(minutes=120), 60, started_at=T0, now=now) == 0


@pytest.mark.parametrize("elapsed_s, deadline_min, duration_min", [
    (0, 120, 60),
    (59.5, 120, 60),
    (1799.9, 30, 60),
    (3599, 90, 60),
    (125, 1, 60),
])
def test_remaining_matches_window_formula(elapsed_s, deadline_min, duration_min):
    now = T0 + timedelta(seconds=elapsed_s)
    deadline = T0 + timedelta(minutes=deadline_min)
    end = min(T0 + timedelta(minutes=duration_min), deadline)
    expected = max(0, int((end - now).total_seconds() // 1))
    assert get_remaining_time(deadline, duration_min, started_at=T0, now=now) == expected


@pytest.mark.parametrize("seconds, text", [
    (0, "00:00"),
    (59, "00:59"),
    (600, "10:00"),
    (3599, "59:59"),
    (3600, "01:00:00"),
    (3725, "01:02:05"),
])
def test_format_time_remaining(seconds, text):
    assert format_time_remaining(seconds) == text


def test_danger_is_last_three_minutes():
    assert is_danger(180)
    assert is_danger(0)
    assert not is_danger(181)


def test_tick_decrements_by_one_and_expires_once():
    fired = []
    clock = CountdownClock(2, lambda: fired.append(True))

    assert clock.tick() == 1
    assert fired == []
    assert clock.tick() == 0
    assert fired == [True]

    # 0에 머무는 동안 추가 tick 은 다시 만료를 알리지 않는다
    clock.tick()
    clock.tick()
    assert clock.remaining_seconds == 0
    assert fired == [True]
    assert clock.expired


def test_running_clock_stops_at_zero():
    fired = []

    async def scenario():
        clock = CountdownClock(3, lambda: fired.append(True), interval=0.001)
        clock.start()
        await asyncio.sleep(0.2)
        return clock

    clock = asyncio.run(scenario())
    assert clock.remaining_seconds == 0
    assert fired == [True]
    assert not clock.running


def test_clock_seeded_at_zero_expires_on_start():
    fired = []

    async def scenario():
        clock = CountdownClock(0, lambda: fired.append(True))
        clock.start()
        clock.start()
        return clock

    clock = asyncio.run(scenario())
    assert fired == [True]
    assert not clock.running


def test_stop_cancels_ticking():
    async def scenario():
        clock = CountdownClock(1000, lambda: None, interval=0.01)
        clock.start()
        await asyncio.sleep(0.05)
        clock.stop()
        frozen = clock.remaining_seconds
        await asyncio.sleep(0.05)
        return frozen, clock

    frozen, clock = asyncio.run(scenario())
    assert clock.remaining_seconds == frozen
    assert frozen < 1000
    assert not clock.running
    clock.stop()
