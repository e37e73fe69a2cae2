from crm_portal.core.rate_limit import SlidingWindowRateLimiter


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


def test_allows_up_to_limit_then_blocks():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=3, window_seconds=60, clock=clock)

    results = [limiter.check("u1") for _ in range(3)]
    assert [r.allowed for r in results] == [True, True, True]
    assert [r.remaining for r in results] == [2, 1, 0]

    blocked = limiter.check("u1")
    assert blocked.allowed is False
    assert blocked.retry_after == 60


def test_window_slides():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.check("u1")
    clock.now += 30
    limiter.check("u1")
    assert limiter.check("u1").allowed is False

    clock.now += 31
    result = limiter.check("u1")
    assert result.allowed is True
    assert result.remaining == 0


def test_keys_are_independent():
    limiter = SlidingWindowRateLimiter(limit=1, window_seconds=60, clock=FakeClock())
    assert limiter.check("u1").allowed is True
    assert limiter.check("u2").allowed is True
    assert limiter.check("u1").allowed is False


def test_idle_keys_are_swept_after_window():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=5, window_seconds=60, clock=clock)
    for key in ("u1", "u2", "u3"):
        limiter.check(key)
    assert len(limiter) == 3

    clock.now += 61
    limiter.check("u4")
    assert len(limiter) == 1


def test_active_keys_survive_sweep():
    clock = FakeClock()
    limiter = SlidingWindowRateLimiter(limit=2, window_seconds=60, clock=clock)
    limiter.check("u1")
    clock.now += 50
    limiter.check("u2")
    clock.now += 15
    limiter.check("u3")
    assert len(limiter) == 2
    assert limiter.check("u2").remaining == 0
