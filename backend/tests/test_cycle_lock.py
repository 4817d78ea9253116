from datetime import timedelta

from conftest import NOW
from cycle_lock import acquire_lease, current_holder, release_lease, renew_lease

LEASE = "test-lease"
TTL = timedelta(hours=1)


class TestCycleLease:
    def test_first_acquire_wins(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert current_holder(db, LEASE) == "a"

    def test_second_holder_blocked_until_release(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert not acquire_lease(db, LEASE, "b", TTL, NOW + timedelta(minutes=5))
            assert release_lease(db, LEASE, "a")
            assert acquire_lease(db, LEASE, "b", TTL, NOW + timedelta(minutes=6))
            assert current_holder(db, LEASE) == "b"

    def test_expired_lease_can_be_taken_over(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "crashed", TTL, NOW)
            assert acquire_lease(db, LEASE, "b", TTL, NOW + TTL)
            assert current_holder(db, LEASE) == "b"

    def test_holder_can_renew(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert acquire_lease(db, LEASE, "a", TTL, NOW + timedelta(minutes=30))

    def test_release_by_non_holder_is_ignored(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert not release_lease(db, LEASE, "b")
            assert current_holder(db, LEASE) == "a"

    def test_leases_are_independent_by_name(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, "one", "a", TTL, NOW)
            assert acquire_lease(db, "two", "b", TTL, NOW)

    def test_renew_extends_expiry(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert renew_lease(db, LEASE, "a", TTL, NOW + timedelta(minutes=50))
            # Past the original expiry, but inside the renewed one.
            assert not acquire_lease(db, LEASE, "b", TTL, NOW + timedelta(minutes=90))
            assert current_holder(db, LEASE) == "a"

    def test_renew_fails_after_takeover(self, session_factory):
        with session_factory() as db:
            assert acquire_lease(db, LEASE, "a", TTL, NOW)
            assert acquire_lease(db, LEASE, "b", TTL, NOW + TTL)
            assert not renew_lease(db, LEASE, "a", TTL, NOW + TTL + timedelta(minutes=1))
            assert current_holder(db, LEASE) == "b"

    def test_renew_without_lease_fails(self, session_factory):
        with session_factory() as db:
            assert not renew_lease(db, LEASE, "a", TTL, NOW)
            assert current_holder(db, LEASE) is None
