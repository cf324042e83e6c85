from __future__ import annotations

import pytest

from pickora.raffle.errors import InvalidArgumentError
from pickora.raffle.models import AnalyticsCounters, DrawRecord


class TestDrawRecord:
    def test_from_submission_defaults(self):
        record = DrawRecord.from_submission("abc123", ["@a", "@b"])
        assert record.count == 2
        assert record.seed is None
        assert record.timestamp.endswith("Z")
        assert record.created_at

    def test_from_submission_keeps_given_fields(self):
        record = DrawRecord.from_submission("abc123", ["@a"], timestamp="t0", seed="beef", count=1)
        assert (record.timestamp, record.seed, record.count) == ("t0", "beef", 1)

    @pytest.mark.parametrize("winners", [[], None, "@a", ["@a", 2]])
    def test_from_submission_rejects_bad_winners(self, winners):
        with pytest.raises(InvalidArgumentError):
            DrawRecord.from_submission("abc123", winners)

    def test_count_must_match(self):
        with pytest.raises(InvalidArgumentError):
            DrawRecord.from_submission("abc123", ["@a", "@b"], count=3)

    def test_dict_round_trip(self):
        record = DrawRecord.from_submission("abc123", ["@a"], seed="01020304")
        assert DrawRecord.from_dict(record.to_dict()) == record

    def test_from_dict_tolerates_legacy_shape(self):
        record = DrawRecord.from_dict({"winners": ["@a", "@b"], "timestamp": "t"}, result_id="xyz789")
        assert record.id == "xyz789"
        assert record.count == 2
        assert record.created_at == "t"


class TestAnalyticsCounters:
    def test_bump(self):
        counters = AnalyticsCounters()
        counters.bump("draw")
        counters.bump("view")
        counters.bump("view")
        data = counters.to_dict()
        assert data["totalDraws"] == 1
        assert data["resultViews"] == 2
        assert data["lastDraw"] and data["lastView"]

    def test_unknown_kind(self):
        with pytest.raises(InvalidArgumentError):
            AnalyticsCounters().bump("click")

    def test_partial_stored_shape(self):
        counters = AnalyticsCounters.from_dict({"totalDraws": 4})
        assert (counters.total_draws, counters.result_views) == (4, 0)
        assert AnalyticsCounters.from_dict(None).to_dict() == {"totalDraws": 0, "resultViews": 0}
