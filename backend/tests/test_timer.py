from jackofhearts.services.games.timer import DeadlineTimer


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


def _timer(clock, target, **kwargs):
    fired = []
    timer = DeadlineTimer(target, on_complete=lambda: fired.append(clock()), clock=clock, **kwargs)
    return timer, fired


def test_fires_once_at_deadline():
    clock = FakeClock()
    timer, fired = _timer(clock, clock() + 5)
    for _ in range(4):
        clock.advance(1)
        assert timer.tick() > 0
    assert fired == []
    clock.advance(1)
    assert timer.tick() == 0
    clock.advance(1)
    timer.tick()
    assert len(fired) == 1


def test_resume_after_background_fires_exactly_once():
    clock = FakeClock()
    timer, fired = _timer(clock, clock() + 5)
    timer.tick()
    # Suspended well past the deadline: no ticks happened meanwhile
    clock.advance(60)
    timer.resume()
    timer.resume()
    timer.tick()
    assert len(fired) == 1


def test_remaining_follows_wall_clock_not_ticks():
    clock = FakeClock()
    timer, _ = _timer(clock, clock() + 90)
    clock.advance(30.5)
    assert timer.remaining() == 59.5
    assert timer.formatted == '00:59'
    assert (timer.minutes, timer.seconds) == (0, 59)


def test_retarget_rearms_the_timer():
    clock = FakeClock()
    timer, fired = _timer(clock, clock() + 1)
    clock.advance(2)
    timer.tick()
    timer.retarget(clock() + 1)
    clock.advance(1)
    timer.tick()
    timer.tick()
    assert len(fired) == 2


def test_disabled_or_cancelled_timer_never_fires():
    clock = FakeClock()
    disabled, fired_disabled = _timer(clock, clock() + 1, enabled=False)
    cancelled, fired_cancelled = _timer(clock, clock() + 1)
    cancelled.cancel()
    clock.advance(5)
    assert disabled.tick() == 0
    cancelled.tick()
    assert fired_disabled == [] and fired_cancelled == []
    assert disabled.progress == 0.0


def test_progress_is_clamped():
    clock = FakeClock()
    timer, _ = _timer(clock, clock() + 10)
    assert timer.progress == 0.0
    clock.advance(2.5)
    assert timer.progress == 0.25
    clock.advance(100)
    assert timer.progress == 1.0


def test_formatted_pads_minutes_and_seconds():
    clock = FakeClock()
    timer, _ = _timer(clock, clock() + 600)
    assert timer.formatted == '10:00'
    clock.advance(535)
    assert timer.formatted == '01:05'


def test_run_ticks_until_fired():
    clock = FakeClock()
    timer, fired = _timer(clock, clock() + 3)
    sleeps = []

    def fake_sleep(seconds):
        sleeps.append(seconds)
        clock.advance(seconds)

    timer.run(sleep=fake_sleep, interval=1.0)
    assert len(fired) == 1
    assert sleeps == [1.0, 1.0, 1.0]


def test_retarget_to_same_deadline_keeps_it_fired():
    clock = FakeClock()
    timer, fired = _timer(clock, clock() + 1)
    clock.advance(2)
    timer.tick()
    timer.retarget(timer.target)
    timer.tick()
    assert len(fired) == 1
    # Toggling enabled does re-arm
    timer.retarget(timer.target, enabled=False)
    timer.retarget(timer.target, enabled=True)
    timer.tick()
    assert len(fired) == 2
