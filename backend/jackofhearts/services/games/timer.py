import time


class DeadlineTimer:
    """Count down to an absolute wall-clock deadline.

    Remaining time is always recomputed from ``clock()`` rather than from
    the number of ticks seen, so a worker that was suspended (or a client
    coming back from the background) reads the right value on its next
    ``tick``/``resume``. ``on_complete`` fires once per activation; changing
    the target or re-enabling re-arms it.
    """

    def __init__(self, target=None, on_complete=None, enabled=True, start=None, clock=time.time):
        self.on_complete = on_complete
        self.clock = clock
        self.cancelled = False
        self.target = None
        self.enabled = None
        self.retarget(target, enabled=enabled, start=start)

    def retarget(self, target, enabled=True, start=None):
        """Point at a new deadline. The same (target, enabled) pair is a no-op."""
        if (target, enabled) == (self.target, self.enabled):
            return
        self.target = target
        self.enabled = enabled
        self.start = self.clock() if start is None else start
        self.fired = False

    def cancel(self):
        self.cancelled = True

    @property
    def active(self):
        return bool(self.enabled and self.target and not self.cancelled)

    def remaining(self):
        if not self.active:
            return 0.0
        return max(0.0, self.target - self.clock())

    def tick(self):
        remaining = self.remaining()
        if self.active and remaining == 0 and not self.fired:
            self.fired = True
            if self.on_complete:
                self.on_complete()
        return remaining

    def resume(self):
        """Re-read the clock after the owner was suspended."""
        return self.tick()

    @property
    def progress(self):
        if not self.active:
            return 0.0
        span = self.target - self.start
        if span <= 0:
            return 1.0
        elapsed = self.clock() - self.start
        return min(1.0, max(0.0, elapsed / span))

    @property
    def minutes(self):
        return int(self.remaining() // 60)

    @property
    def seconds(self):
        return int(self.remaining() % 60)

    @property
    def formatted(self):
        remaining = int(self.remaining())
        return f"{remaining // 60:02d}:{remaining % 60:02d}"

    def run(self, sleep=time.sleep, interval=1.0, on_tick=None):
        """Tick every ``interval`` seconds until fired or cancelled."""
        while self.active and not self.fired:
            remaining = self.tick()
            if self.fired or not self.active:
                break
            if on_tick:
                on_tick(remaining)
            sleep(min(interval, remaining) if remaining > 0 else interval)
