from moyofy.search.breaker import QuotaBreaker


def test_not_blocked_initially(clock):
    breaker = QuotaBreaker(clock=clock)
    assert breaker.is_blocked() is False
    assert breaker.remaining() == 0.0


def test_block_then_expire(clock):
    breaker = QuotaBreaker(clock=clock)
    assert breaker.block(1800) == 1800

    assert breaker.is_blocked() is True
    clock.advance(1799)
    assert breaker.is_blocked() is True
    assert breaker.remaining() == 1

    clock.advance(1)
    assert breaker.is_blocked() is False
    assert breaker.remaining() == 0.0


def test_shorter_block_never_shortens_active_block(clock):
    breaker = QuotaBreaker(clock=clock)
    breaker.block(1800)

    clock.advance(100)
    assert breaker.block(60) == 1700
    assert breaker.remaining() == 1700


def test_longer_block_extends(clock):
    breaker = QuotaBreaker(clock=clock)
    breaker.block(60)
    breaker.block(600)
    assert breaker.remaining() == 600


def test_reset(clock):
    breaker = QuotaBreaker(clock=clock)
    breaker.block(600)
    breaker.reset()
    assert breaker.is_blocked() is False
