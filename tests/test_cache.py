"""Tests for the delivery dedupe window."""

from hookcord.cache import RecentDeliveries


class TestRecentDeliveries:
    def test_first_seen_then_duplicate(self):
        deliveries = RecentDeliveries()
        assert deliveries.check_and_mark("abc") is False
        assert deliveries.check_and_mark("abc") is True
        assert "abc" in deliveries
        assert deliveries.size == 1

    def test_missing_id_never_duplicate(self):
        deliveries = RecentDeliveries()
        assert deliveries.check_and_mark(None) is False
        assert deliveries.check_and_mark("") is False
        assert deliveries.size == 0

    def test_bounded(self):
        deliveries = RecentDeliveries(maxsize=2)
        for i in range(5):
            deliveries.check_and_mark(str(i))
        assert deliveries.size == 2

    def test_forget_allows_reprocessing(self):
        deliveries = RecentDeliveries()
        deliveries.check_and_mark("abc")
        deliveries.forget("abc")
        assert "abc" not in deliveries
        assert deliveries.check_and_mark("abc") is False
        deliveries.forget(None)
        deliveries.forget("never-seen")
