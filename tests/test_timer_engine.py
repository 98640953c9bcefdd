from interview_backend.app.services.timer_engine import CountdownTimer, TimerState


def test_advance_consumes_whole_seconds():
    timer = CountdownTimer()
    timer.reset(20, now=0.0)

    result = timer.advance_to(5.0)
    assert result.ticks == 5
    assert not result.expired
    assert timer.remaining == 15
    assert timer.state == TimerState.RUNNING

    # fractions accumulate until a full second has passed
    assert timer.advance_to(5.9).ticks == 0
    assert timer.advance_to(6.1).ticks == 1
    assert timer.remaining == 14


def test_late_sample_fires_once_at_expiry_instant():
    timer = CountdownTimer()
    timer.reset(20, now=100.0)

    result = timer.advance_to(145.0)
    assert result.expired_at == 120.0
    assert result.ticks == 20
    assert timer.remaining == 0
    assert timer.armed is False
    assert timer.state == TimerState.EXPIRED

    assert timer.advance_to(500.0).expired is False


def test_tick_fires_exactly_once():
    timer = CountdownTimer()
    timer.reset(2, now=0.0)

    assert timer.tick() is False
    assert timer.tick() is True
    assert timer.tick() is False


def test_reset_cancels_and_rearms():
    timer = CountdownTimer()
    timer.reset(20, now=0.0)
    timer.advance_to(10.0)

    timer.reset(60, now=10.0)
    assert timer.remaining == 60
    assert timer.advance_to(69.0).expired is False
    assert timer.advance_to(70.0).expired_at == 70.0


def test_reset_without_now_stays_idle():
    timer = CountdownTimer()
    timer.reset(20)
    assert timer.state == TimerState.IDLE
    assert timer.advance_to(1_000.0).ticks == 0
    assert timer.remaining == 20


def test_loaded_timer_waits_for_arm():
    timer = CountdownTimer()
    timer.load(12)
    assert timer.advance_to(50.0).ticks == 0

    timer.arm(50.0)
    timer.advance_to(54.0)
    assert timer.remaining == 8


def test_armed_with_nothing_left_fires_on_next_sync():
    timer = CountdownTimer()
    timer.load(0)
    timer.arm(10.0)

    result = timer.advance_to(10.0)
    assert result.expired_at == 10.0
    assert result.ticks == 0


def test_cancel_prevents_timeout():
    timer = CountdownTimer()
    timer.reset(5, now=0.0)
    timer.cancel()
    assert timer.advance_to(60.0).expired is False
    assert timer.remaining == 5


def test_tick_and_advance_share_one_countdown():
    timer = CountdownTimer()
    timer.reset(3, now=0.0)

    assert timer.tick() is False
    assert timer.advance_to(2.5).ticks == 1
    assert timer.remaining == 1

    result = timer.advance_to(3.0)
    assert result.expired_at == 3.0
    assert timer.tick() is False
