"""Tests for SlidingWindowLimiter."""

import threading

import pytest

from hotline.limiters.sliding import SlidingWindowLimiter


def _limiter(clock, max_requests: int = 3, window: float = 60.0) -> SlidingWindowLimiter:
    return SlidingWindowLimiter(max_requests, window, clock=clock)


class TestAdmission:
    def test_first_n_admitted_then_rejected(self, clock) -> None:
        limiter = _limiter(clock)
        results = [limiter.check("1.2.3.4").allowed for _ in range(4)]
        assert results == [True, True, True, False]

    def test_remaining_counts_down(self, clock) -> None:
        limiter = _limiter(clock)
        assert [limiter.check("a").remaining for _ in range(3)] == [2, 1, 0]

    def test_identities_are_independent(self, clock) -> None:
        limiter = _limiter(clock, max_requests=1)
        assert limiter.check("a").allowed
        assert not limiter.check("a").allowed
        assert limiter.check("b").allowed

    def test_rejection_reports_retry_after(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(3):
            limiter.check("a")
            clock.advance(10)
        rejected = limiter.check("a")
        assert not rejected.allowed
        # oldest stamp at t0, now t0+30, window 60
        assert rejected.retry_after == pytest.approx(30)

    def test_rejected_attempts_do_not_extend_the_window(self, clock) -> None:
        limiter = _limiter(clock, max_requests=1)
        limiter.check("a")
        for _ in range(5):
            clock.advance(10)
            assert not limiter.check("a").allowed
        clock.advance(10.5)
        assert limiter.check("a").allowed

    @pytest.mark.asyncio
    async def test_admit_matches_check(self, clock) -> None:
        limiter = _limiter(clock, max_requests=1)
        assert (await limiter.admit("a")).allowed
        assert not (await limiter.admit("a")).allowed


class TestWindowSlides:
    def test_admissible_again_after_window(self, clock) -> None:
        limiter = _limiter(clock)
        for _ in range(3):
            limiter.check("a")
        assert not limiter.check("a").allowed
        clock.advance(60.01)
        assert limiter.check("a").allowed

    def test_stamp_exactly_one_window_old_still_counts(self, clock) -> None:
        limiter = _limiter(clock, max_requests=1)
        assert limiter.check("a").allowed
        clock.advance(60)
        assert not limiter.check("a").allowed
        clock.advance(0.01)
        assert limiter.check("a").allowed

    def test_only_expired_stamps_free_slots(self, clock) -> None:
        limiter = _limiter(clock)
        limiter.check("a")  # t=0
        clock.advance(30)
        limiter.check("a")  # t=30
        limiter.check("a")  # t=30
        clock.advance(31)  # t=61: the t=0 stamp has left the window
        assert limiter.check("a").allowed
        assert not limiter.check("a").allowed


class TestSweep:
    def test_idle_records_dropped(self, clock) -> None:
        limiter = _limiter(clock)
        limiter.check("a")
        limiter.check("b")
        assert len(limiter) == 2
        clock.advance(61)
        assert limiter.sweep() == 2
        assert len(limiter) == 0

    def test_active_records_kept(self, clock) -> None:
        limiter = _limiter(clock)
        limiter.check("a")
        clock.advance(50)
        limiter.check("b")
        clock.advance(20)
        assert limiter.sweep() == 1
        assert len(limiter) == 1

    def test_sweep_runs_on_check_after_a_window(self, clock) -> None:
        limiter = _limiter(clock)
        limiter.check("a")
        clock.advance(61)
        limiter.check("b")
        assert len(limiter) == 1

    def test_swept_identity_starts_fresh(self, clock) -> None:
        limiter = _limiter(clock, max_requests=1)
        limiter.check("a")
        clock.advance(61)
        limiter.sweep()
        assert limiter.check("a").allowed


def test_invalid_configuration_rejected() -> None:
    with pytest.raises(ValueError):
        SlidingWindowLimiter(0, 60)
    with pytest.raises(ValueError):
        SlidingWindowLimiter(1, 0)


def test_concurrent_checks_never_over_admit() -> None:
    limiter = SlidingWindowLimiter(50, 3600)
    barrier = threading.Barrier(8)
    admitted: list[bool] = []
    guard = threading.Lock()

    def worker() -> None:
        barrier.wait()
        for _ in range(25):
            allowed = limiter.check("203.0.113.9").allowed
            with guard:
                admitted.append(allowed)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert len(admitted) == 200
    assert sum(admitted) == 50
